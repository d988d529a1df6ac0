import os
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from wolo.services import export_service, sales_service
from wolo.services.export_service import CURRENCY_FORMAT, NO_DATA_TEXT, write_report


def _rows(path):
    ws = load_workbook(path).active
    return ws, [list(r) for r in ws.iter_rows(values_only=True)]


def test_write_report_header_rows_and_totals(tmp_path):
    dest = tmp_path / "report.xlsx"
    rows = [
        {"product_name": "Tea", "quantity": 2, "subtotal": Decimal("2.50")},
        {"product_name": "Sugar", "quantity": 1, "subtotal": Decimal("4.00")},
    ]

    write_report(rows, str(dest), money_columns=("subtotal",))

    ws, values = _rows(dest)
    assert values[0] == ["Product Name", "Quantity", "Subtotal"]
    assert values[1] == ["Tea", 2, 2.5]
    assert values[3] == ["TOTAL", None, 6.5]
    assert ws["A4"].font.bold
    assert ws["C2"].number_format == CURRENCY_FORMAT
    assert ws["C4"].number_format == CURRENCY_FORMAT


def test_write_report_without_rows_has_placeholder(tmp_path):
    dest = tmp_path / "empty.xlsx"

    write_report([], str(dest), columns=("sale_id", "subtotal"), money_columns=("subtotal",))

    ws, values = _rows(dest)
    assert values[0] == ["Sale Id", "Subtotal"]
    assert values[1][0] == NO_DATA_TEXT
    assert len(values) == 2
    assert "A2:B2" in [str(r) for r in ws.merged_cells.ranges]


def test_write_report_with_empty_records_has_placeholder(tmp_path):
    dest = tmp_path / "blank.xlsx"

    write_report([{}], str(dest), money_columns=("subtotal",))

    _, values = _rows(dest)
    assert values == [[NO_DATA_TEXT]]


@pytest.fixture
def two_sales(make_product):
    tea = make_product("Tea", quantity_in_stock=10, barcode="111", category="Beverages")
    gauze = make_product("Gauze", quantity_in_stock=10, barcode="222", category="Health Care")
    sales_service.record_sale(
        items=[
            {"product_id": tea.id, "quantity": 2, "unit_price": "1.25"},
            {"product_id": gauze.id, "quantity": 1, "unit_price": "3.00"},
        ],
        customer_info={"name": "Kofi"},
    )
    sales_service.record_sale(items=[{"product_id": tea.id, "quantity": 4, "unit_price": "1.25"}])
    return tea, gauze


def test_export_sales_excel(app, two_sales):
    result = export_service.export_sales_excel()

    assert result.success, result.error
    path = result.data["path"]
    assert os.path.dirname(path) == app.config["EXPORT_DIR"]
    assert os.path.basename(path).startswith("Sales_Report_")
    assert result.data["row_count"] == 3

    _, values = _rows(path)
    header = values[0]
    assert header[:3] == ["Sale Id", "Sale Date", "Invoice Number"]
    assert values[-1][0] == "TOTAL"
    subtotal_idx = header.index("Subtotal")
    assert values[-1][subtotal_idx] == 10.5


def test_export_sales_excel_filters_by_category(two_sales):
    result = export_service.export_sales_excel(category="health care")

    assert result.data["row_count"] == 1
    _, values = _rows(result.data["path"])
    assert values[1][values[0].index("Product Name")] == "Gauze"
    assert values[1][values[0].index("Barcode")] == "222"
    assert values[1][values[0].index("Customer Name")] == "Kofi"


def test_export_sales_excel_with_no_sales(db_session):
    result = export_service.export_sales_excel("2020-01-01", "2020-01-31")

    assert result.success
    assert result.data["row_count"] == 0
    _, values = _rows(result.data["path"])
    assert values[1][0] == NO_DATA_TEXT


def test_export_sales_excel_rejects_bad_dates(db_session):
    result = export_service.export_sales_excel("yesterday", "today")

    assert not result.success
    assert result.error_type == "ValidationError"


def test_export_inventory_excel(make_product):
    make_product("Tea", quantity_in_stock=4, cost_price=Decimal("1.50"))
    make_product("Rice", quantity_in_stock=2, cost_price=Decimal("10.00"))

    result = export_service.export_inventory_excel()

    assert result.success
    assert os.path.basename(result.data["path"]).startswith("Inventory_Report_")
    _, values = _rows(result.data["path"])
    value_idx = values[0].index("Value")
    assert values[-1][0] == "TOTAL"
    assert values[-1][value_idx] == 26.0


def test_export_sales_excel_reports_payment_status(two_sales):
    result = export_service.export_sales_excel()

    _, values = _rows(result.data["path"])
    header = values[0]
    assert header[-2:] == ["Payment Method", "Payment Status"]
    assert values[1][header.index("Payment Status")] == "paid"
