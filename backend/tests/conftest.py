"""
Pytest fixtures for Wolo backend tests.

Provides an in-memory application, per-test table cleanup, a test client,
file-backed applications for backup/schema tests, and small data builders.
"""

from decimal import Decimal

import pytest

from wolo import create_app
from wolo.extensions import db
from wolo.ids import new_id
from wolo.models import Product, SchemaMigration
from wolo.time_utils import utcnow


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    data_dir = tmp_path_factory.mktemp("wolo-data")
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'DATA_DIR': str(data_dir),
        'EXPORT_DIR': str(data_dir / "exports"),
        'BACKUP_DIR': str(data_dir / "backups"),
        'LOW_STOCK_THRESHOLD': 10,
    })

    with app.app_context():
        yield app
        db.session.remove()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every data table; the schema and its step history stay."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            if table.name == SchemaMigration.__tablename__:
                continue
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def make_app(tmp_path):
    """Factory for applications backed by a SQLite file under tmp_path."""
    def _make(db_name: str = "wolo-inventory.db", **overrides):
        config = {
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / db_name}",
            'DATA_DIR': str(tmp_path),
            'EXPORT_DIR': str(tmp_path / "exports"),
            'BACKUP_DIR': str(tmp_path / "backups"),
        }
        config.update(overrides)
        return create_app(config)

    return _make


@pytest.fixture(scope='function')
def file_app(make_app):
    app = make_app()
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture(scope='function')
def make_product(db_session):
    """Insert an active product directly; keyword arguments override defaults."""
    def _make(name: str = "Widget", **fields):
        now = utcnow()
        values = {
            "id": new_id(),
            "name": name,
            "quantity_in_stock": 0,
            "quantity_on_shelf": 0,
            "cost_price": Decimal("0"),
            "selling_price": Decimal("0"),
            "total_bulk_cost": Decimal("0"),
            "quantity_purchased": 0,
            "reorder_level": 10,
            "images": "[]",
            "variants": "[]",
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        values.update(fields)
        product = Product(**values)
        db_session.add(product)
        db_session.commit()
        return product

    return _make
