"""
Backup tests run against file-backed SQLite databases under tmp_path.
"""

import os

from wolo.extensions import db
from wolo.models import Product
from wolo.services import backup_service, products_service


def test_backup_requires_file_database(app):
    result = backup_service.create_backup()

    assert not result.success
    assert result.error_type == "StorageError"


def test_create_and_list_backups(file_app):
    with file_app.app_context():
        first = backup_service.create_backup()
        second = backup_service.create_backup()
        listed = backup_service.list_backups()

    assert first.success, first.error
    assert os.path.isfile(first.data["path"])
    assert os.path.dirname(first.data["path"]) == file_app.config["BACKUP_DIR"]
    assert [b["path"] for b in listed.data] == [second.data["path"], first.data["path"]]


def test_restore_brings_back_earlier_state(file_app):
    with file_app.app_context():
        products_service.create_product({"name": "Kept"})
        backup = backup_service.create_backup().data["path"]

        products_service.create_product({"name": "Added Later"})
        assert db.session.query(Product).count() == 2

        result = backup_service.restore_backup(backup)

        assert result.success, result.error
        names = [p["name"] for p in products_service.list_products().data]

    assert names == ["Kept"]


def test_restore_rejects_non_database_files(file_app, tmp_path):
    bogus = tmp_path / "notes.txt"
    bogus.write_text("not a database")

    with file_app.app_context():
        missing = backup_service.restore_backup(str(tmp_path / "absent.db"))
        wrong = backup_service.restore_backup(str(bogus))
        count = db.session.query(Product).count()

    assert missing.error_type == "ValidationError"
    assert wrong.error_type == "ValidationError"
    assert count == 0
