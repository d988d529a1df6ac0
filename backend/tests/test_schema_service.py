"""
Schema manager tests against SQLite files: fresh databases, repeated runs,
and databases created by older releases with missing tables and columns.
"""

import sqlalchemy as sa

from wolo.extensions import db
from wolo.models import SchemaMigration, Setting
from wolo.services import products_service, reporting_service, sales_service
from wolo.services.schema_service import SCHEMA_STEPS, ensure_schema, schema_status

LEGACY_PRODUCTS_DDL = """
CREATE TABLE products (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    quantity_in_stock INTEGER DEFAULT 0,
    selling_price REAL DEFAULT 0
)
"""


def test_fresh_database_gets_every_step(file_app):
    with file_app.app_context():
        status = schema_status()
        versions = [row.version for row in db.session.query(SchemaMigration).all()]
        defaults = {s.key: s.value for s in db.session.query(Setting).all()}

    assert status["pending"] == []
    assert sorted(versions) == [step.version for step in SCHEMA_STEPS]
    assert defaults == {"developer_mode": "false", "low_stock_threshold": "10"}


def test_second_run_changes_nothing(file_app):
    with file_app.app_context():
        first = ensure_schema()
        second = ensure_schema()

    assert not first.changed
    assert not second.changed
    assert second.skipped_columns == []


def test_existing_settings_are_not_overwritten(make_app):
    app = make_app()
    with app.app_context():
        db.session.get(Setting, "low_stock_threshold").value = "3"
        db.session.commit()
        db.session.remove()
        db.engine.dispose()

    again = make_app()
    with again.app_context():
        assert db.session.get(Setting, "low_stock_threshold").value == "3"
        db.session.remove()
        db.engine.dispose()


def test_legacy_database_is_patched(tmp_path, make_app):
    path = tmp_path / "legacy.db"
    engine = sa.create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.execute(sa.text(LEGACY_PRODUCTS_DDL))
        conn.execute(sa.text("INSERT INTO products (id, name, quantity_in_stock) VALUES ('p1', 'Old Stock', 4)"))
    engine.dispose()

    app = make_app("legacy.db")
    with app.app_context():
        inspector = sa.inspect(db.engine)
        tables = set(inspector.get_table_names())
        columns = {c["name"] for c in inspector.get_columns("products")}

        result = products_service.get_product("p1")

        db.session.remove()
        db.engine.dispose()

    assert {"products", "sales", "sale_items", "suppliers", "settings"} <= tables
    assert {"barcode", "images", "variants", "is_active", "reorder_level", "created_at"} <= columns

    assert result.success, result.error
    product = result.data
    assert product["name"] == "Old Stock"
    assert product["quantity_in_stock"] == 4
    assert product["is_active"] is True
    assert product["reorder_level"] == 10
    assert product["images"] == []
    assert product["created_at"] is not None


def test_schema_status_reports_pending_steps(make_app):
    app = make_app(AUTO_MIGRATE=False)
    with app.app_context():
        before = schema_status()
        ensure_schema()
        after = schema_status()
        db.session.remove()
        db.engine.dispose()

    assert before == {"applied": [], "pending": [step.version for step in SCHEMA_STEPS]}
    assert after["pending"] == []


LEGACY_SALES_DDL = """
CREATE TABLE sales (
    id TEXT PRIMARY KEY,
    sale_date TEXT NOT NULL,
    customer_name TEXT,
    customer_phone TEXT,
    subtotal REAL NOT NULL,
    tax_amount REAL NOT NULL,
    discount_amount REAL DEFAULT 0,
    total_amount REAL NOT NULL,
    payment_method TEXT,
    payment_status TEXT,
    status TEXT,
    notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


def test_legacy_iso_timestamps_are_normalized(tmp_path, make_app):
    path = tmp_path / "legacy_sales.db"
    engine = sa.create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.execute(sa.text(LEGACY_SALES_DDL))
        conn.execute(sa.text(
            "INSERT INTO sales (id, sale_date, subtotal, tax_amount, total_amount, payment_status, "
            "status, created_at, updated_at) VALUES ('s1', '2024-01-15T10:00:00.000Z', 12, 0, 12, "
            "'paid', 'completed', '2024-01-15T10:00:00.000Z', '2024-01-15T10:00:00.000Z')"
        ))
    engine.dispose()

    app = make_app("legacy_sales.db")
    with app.app_context():
        stored = db.session.execute(sa.text("SELECT sale_date, created_at FROM sales")).one()
        same_day = reporting_service.sales_by_date_range("2024-01-15", "2024-01-15")
        history = sales_service.get_sales_history(start_date="2024-01-01", end_date="2024-01-15")
        db.session.remove()
        db.engine.dispose()

    assert stored.sale_date.startswith("2024-01-15 10:00:00")
    assert stored.created_at.startswith("2024-01-15 10:00:00")

    assert same_day.success, same_day.error
    assert [s["id"] for s in same_day.data] == ["s1"]
    assert same_day.data[0]["sale_date"] == "2024-01-15T10:00:00Z"
    assert [s["id"] for s in history.data] == ["s1"]
