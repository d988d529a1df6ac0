"""
HTTP surface tests: response shape, status codes and the camelCase adapter.
"""

import os

import pytest

from wolo.routes.payloads import canonical


def _product(client, **fields):
    payload = {"name": "Widget", "selling_price": 2, "quantity_in_stock": 10}
    payload.update(fields)
    resp = client.post("/api/products", json=payload)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["data"]["product"]


def test_canonical_maps_legacy_keys():
    payload = {
        "paymentMethod": "card",
        "customerInfo": {"fullName": "Ama"},
        "items": [{"productId": "p1", "unitPrice": 2, "quantity": 1}],
        "notes": "x",
    }

    assert canonical(payload) == {
        "payment_method": "card",
        "customer_info": {"fullName": "Ama"},
        "items": [{"product_id": "p1", "unit_price": 2, "quantity": 1}],
        "notes": "x",
    }


def test_canonical_prefers_snake_case_twin():
    assert canonical({"start_date": "2024-01-02", "startDate": "2024-01-01"}) == {"start_date": "2024-01-02"}
    assert canonical({"startDate": "2024-01-01", "start_date": "2024-01-02"}) == {"start_date": "2024-01-02"}


def test_health(client, db_session):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["checks"]["database"]["status"] == "healthy"


def test_product_crud_over_http(client, db_session):
    product = _product(client, name="Kettle")

    resp = client.get(f"/api/products/{product['id']}")
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "data": product}

    resp = client.put(f"/api/products/{product['id']}", json={"updates": {"selling_price": 3.5}})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["selling_price"] == 3.5

    resp = client.delete(f"/api/products/{product['id']}")
    assert resp.status_code == 200

    resp = client.get(f"/api/products/{product['id']}")
    assert resp.status_code == 404
    assert resp.get_json()["error_type"] == "NotFoundError"


def test_create_product_validation_error_shape(client, db_session):
    resp = client.post("/api/products", json={"selling_price": 1})

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["success"] is False
    assert body["error_type"] == "ValidationError"
    assert "name" in body["error"]


def test_check_duplicate_route(client, db_session):
    product = _product(client, name="Aspirin 500mg", barcode="123")

    resp = client.post("/api/products/check-duplicate", json={"name": "ASPIRIN 500MG"})
    assert resp.get_json()["data"]["id"] == product["id"]

    resp = client.post("/api/products/check-duplicate", json={"id": product["id"], "name": "aspirin 500mg"})
    assert resp.get_json()["data"] is None


def test_categories_and_names(client, db_session):
    _product(client, name="Gauze", category="Health Care")

    categories = client.get("/api/products/categories").get_json()["data"]
    names = client.get("/api/products/names").get_json()["data"]

    assert categories == [{"id": "health-care", "name": "Health Care"}]
    assert [n["name"] for n in names] == ["Gauze"]


def test_record_sale_with_legacy_keys(client, db_session):
    a = _product(client, name="A", quantity_in_stock=10)
    b = _product(client, name="B", quantity_in_stock=10)

    resp = client.post("/api/sales", json={
        "items": [
            {"productId": a["id"], "quantity": 3, "unitPrice": 10},
            {"productId": b["id"], "quantity": 1, "unitPrice": 5},
        ],
        "paymentMethod": "mobile_money",
        "customerInfo": {"name": "Esi"},
    })

    assert resp.status_code == 201, resp.get_json()
    sale = resp.get_json()["data"]
    assert sale["total_amount"] == 35.0
    assert sale["payment_method"] == "mobile_money"
    assert sale["customer_name"] == "Esi"

    stock = client.get(f"/api/products/{a['id']}").get_json()["data"]["quantity_in_stock"]
    assert stock == 7

    history = client.get(f"/api/sales?productId={a['id']}").get_json()["data"]
    assert [s["id"] for s in history] == [sale["id"]]

    fetched = client.get(f"/api/sales/{sale['id']}").get_json()["data"]
    assert len(fetched["items"]) == 2


def test_record_sale_unknown_product_is_404(client, db_session):
    resp = client.post("/api/sales", json={"items": [{"product_id": "nope", "quantity": 1, "unit_price": 1}]})

    assert resp.status_code == 404
    assert resp.get_json()["error_type"] == "NotFoundError"


def test_sales_by_date_range_requires_dates(client, db_session):
    resp = client.get("/api/sales/by-date-range?startDate=2024-01-01")

    assert resp.status_code == 400


def test_low_stock_route(client, db_session):
    _product(client, name="Low", quantity_in_stock=2)
    _product(client, name="High", quantity_in_stock=50)

    resp = client.get("/api/reports/low-stock?threshold=5")
    assert [p["name"] for p in resp.get_json()["data"]] == ["Low"]

    resp = client.get("/api/reports/low-stock?threshold=five")
    assert resp.status_code == 400


@pytest.mark.parametrize("path", [
    "/api/reports/expiring",
    "/api/reports/inventory",
    "/api/reports/inventory-value",
    "/api/reports/dashboard",
])
def test_report_routes_answer(client, db_session, path):
    resp = client.get(path)

    assert resp.status_code == 200
    assert resp.get_json()["success"] is True


def test_export_routes(client, db_session):
    _product(client, name="Tea")

    sales = client.post("/api/reports/sales/export", json={"startDate": "2024-01-01", "endDate": "2024-01-31"})
    inventory = client.post("/api/reports/inventory/export", json={})

    assert sales.status_code == 201
    assert inventory.status_code == 201
    assert os.path.isfile(sales.get_json()["data"]["path"])
    assert inventory.get_json()["data"]["row_count"] == 1


def test_settings_routes(client, db_session):
    resp = client.get("/api/settings/theme")
    assert resp.get_json()["data"] == {"found": False, "value": None}

    resp = client.put("/api/settings/theme", json={"value": "dark"})
    assert resp.status_code == 200

    resp = client.get("/api/settings/theme")
    assert resp.get_json()["data"] == {"found": True, "value": "dark"}

    resp = client.get("/api/settings?keys=theme,absent")
    assert resp.get_json()["data"] == {"theme": "dark", "absent": None}


def test_supplier_routes(client, db_session):
    resp = client.post("/api/suppliers", json={"name": "Acme Pharma", "phone": "0300000000"})
    assert resp.status_code == 201
    supplier_id = resp.get_json()["data"]["id"]

    resp = client.put(f"/api/suppliers/{supplier_id}", json={"contactPerson": "Yaw"})
    assert resp.get_json()["data"]["contact_person"] == "Yaw"

    assert client.delete(f"/api/suppliers/{supplier_id}").status_code == 200
    assert client.get("/api/suppliers").get_json()["data"] == []


def test_backup_route_needs_file_database(client, db_session):
    resp = client.post("/api/system/backup")

    assert resp.status_code == 500
    body = resp.get_json()
    assert body["error_type"] == "StorageError"
    assert "details" not in body


def test_unknown_route_is_json_404(client):
    resp = client.get("/api/nothing-here")

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False
