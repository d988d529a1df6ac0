# Overview: Excel report writer (openpyxl) for sales and inventory exports.

from __future__ import annotations

import os
from decimal import Decimal
from typing import Iterable, Sequence

from flask import current_app
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from ..money import quantize
from ..results import returns_result
from ..time_utils import to_utc_z, utcnow
from ..validation import StorageError
from .reporting_service import build_inventory_report, category_filter

CURRENCY_FORMAT = "#,##0.00"
NO_DATA_TEXT = "No data found"
TOTAL_LABEL = "TOTAL"
MAX_COLUMN_WIDTH = 50

SALES_COLUMNS = (
    "sale_id", "sale_date", "invoice_number", "customer_name",
    "product_name", "barcode", "quantity", "unit_price", "subtotal",
    "payment_method", "payment_status",
)
SALES_MONEY_COLUMNS = ("unit_price", "subtotal")

INVENTORY_COLUMNS = (
    "name", "category", "sku", "quantity_in_stock", "reorder_level",
    "selling_price", "unit_cost", "value", "status",
)
INVENTORY_MONEY_COLUMNS = ("selling_price", "unit_cost", "value")


def humanize(key: str) -> str:
    return key.replace("_", " ").strip().title()


def _cell_value(value):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (list, dict)):
        return str(value)
    return value


def write_report(
    rows: Iterable[dict],
    destination: str,
    *,
    columns: Sequence[str] | None = None,
    money_columns: Sequence[str] = (),
    title: str = "Report",
) -> str:
    """
    Write `rows` to a single-sheet workbook at `destination`.

    One humanized header row, one row per record, then a bold TOTAL row that
    sums every money column. With no rows (or no columns to show) the sheet
    carries a "No data found" placeholder instead of totals. Returns the
    destination path.
    """
    rows = list(rows)
    if columns is None:
        columns = list(rows[0].keys()) if rows else []
    columns = list(columns)
    money = [c for c in money_columns if c in columns]

    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]

    if columns:
        ws.append([humanize(c) for c in columns])
        for cell in ws[1]:
            cell.font = Font(bold=True)

    if not rows or not columns:
        row_idx = ws.max_row + 1 if columns else 1
        ws.cell(row=row_idx, column=1, value=NO_DATA_TEXT)
        ws.cell(row=row_idx, column=1).alignment = Alignment(horizontal="center")
        if len(columns) > 1:
            ws.merge_cells(start_row=row_idx, start_column=1, end_row=row_idx, end_column=len(columns))
    else:
        totals = {c: Decimal("0") for c in money}
        for record in rows:
            ws.append([_cell_value(record.get(c)) for c in columns])
            for c in money:
                totals[c] += quantize(record.get(c))

        for c in money:
            col_idx = columns.index(c) + 1
            for row in ws.iter_rows(min_row=2, min_col=col_idx, max_col=col_idx):
                row[0].number_format = CURRENCY_FORMAT

        # Computed sums, not formulas, so readers without a calc engine see them
        total_row = [None] * len(columns)
        total_row[0] = TOTAL_LABEL
        for c in money:
            total_row[columns.index(c)] = float(totals[c])
        ws.append(total_row)
        last = ws.max_row
        for cell in ws[last]:
            cell.font = Font(bold=True)
        for c in money:
            ws.cell(row=last, column=columns.index(c) + 1).number_format = CURRENCY_FORMAT

    for idx, c in enumerate(columns, start=1):
        width = max([len(humanize(c))] + [len(str(r.get(c) or "")) for r in rows])
        ws.column_dimensions[get_column_letter(idx)].width = min(width + 2, MAX_COLUMN_WIDTH)

    try:
        parent = os.path.dirname(os.path.abspath(destination))
        os.makedirs(parent, exist_ok=True)
        wb.save(destination)
    except OSError as exc:
        raise StorageError("Failed to write export file", {"path": destination, "detail": str(exc)})
    return destination


def _export_path(prefix: str) -> str:
    export_dir = current_app.config["EXPORT_DIR"]
    stamp = utcnow().strftime("%Y%m%d_%H%M%S_%f")
    return os.path.join(export_dir, f"{prefix}_{stamp}.xlsx")


def sales_line_rows(start_date=None, end_date=None, category: str | None = None) -> list[dict]:
    """One row per sale line, newest sale first, optionally limited to a category."""
    from .sales_service import query_sales

    rows = []
    for sale in query_sales(start=start_date, end=end_date):
        for item in sale.items:
            product = item.product
            rows.append({
                "sale_id": sale.id,
                "sale_date": to_utc_z(sale.sale_date),
                "invoice_number": sale.invoice_number,
                "customer_name": sale.customer_name or "",
                "product_name": item.product_name or (product.name if product else ""),
                "barcode": (product.barcode if product else None) or "",
                "category": product.category if product else None,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "subtotal": item.total_price,
                "payment_method": sale.payment_method,
                "payment_status": sale.payment_status,
            })
    return category_filter(rows, category)


@returns_result
def export_sales_excel(start_date=None, end_date=None, category: str | None = None) -> dict:
    """Write Sales_Report_<timestamp>.xlsx to the export directory."""
    rows = sales_line_rows(start_date, end_date, category)
    path = write_report(
        rows,
        _export_path("Sales_Report"),
        columns=SALES_COLUMNS,
        money_columns=SALES_MONEY_COLUMNS,
        title="Sales Report",
    )
    current_app.logger.info("Exported %d sale lines to %s", len(rows), path)
    return {"path": path, "row_count": len(rows)}


@returns_result
def export_inventory_excel(category: str | None = None) -> dict:
    report = build_inventory_report(category)
    path = write_report(
        report["rows"],
        _export_path("Inventory_Report"),
        columns=INVENTORY_COLUMNS,
        money_columns=INVENTORY_MONEY_COLUMNS,
        title="Inventory Report",
    )
    current_app.logger.info("Exported %d inventory rows to %s", len(report["rows"]), path)
    return {"path": path, "row_count": len(report["rows"])}
