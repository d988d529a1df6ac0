# Overview: File-level backup and restore of the SQLite database.

"""
Backups are plain copies of the live SQLite file, named
wolo-inventory_<UTC timestamp>.db, kept in BACKUP_DIR.

Restore replaces the live file and re-runs the schema manager so that an
older backup is brought up to the current model before the next request.
Only file-backed SQLite databases are supported.
"""
from __future__ import annotations

import os
import shutil
from datetime import datetime, timezone

from flask import current_app

from ..extensions import db
from ..results import returns_result
from ..time_utils import to_utc_z, utcnow
from ..validation import StorageError, ValidationError
from .schema_service import ensure_schema

BACKUP_PREFIX = "wolo-inventory_"
BACKUP_SUFFIX = ".db"
SQLITE_HEADER = b"SQLite format 3\x00"


def database_path() -> str:
    """Absolute path of the live SQLite file."""
    url = db.engine.url
    if url.get_backend_name() != "sqlite":
        raise StorageError("Backups are only supported for SQLite databases")
    if not url.database or url.database == ":memory:":
        raise StorageError("Backups require a file-backed SQLite database")
    return os.path.abspath(url.database)


def _backup_dir() -> str:
    path = current_app.config["BACKUP_DIR"]
    os.makedirs(path, exist_ok=True)
    return path


def _is_sqlite_file(path: str) -> bool:
    with open(path, "rb") as fh:
        return fh.read(len(SQLITE_HEADER)) == SQLITE_HEADER


@returns_result
def create_backup() -> dict:
    source = database_path()
    if not os.path.isfile(source):
        raise StorageError("Database file does not exist", {"path": source})

    # Flush pending work so the file on disk is current
    db.session.commit()

    name = f"{BACKUP_PREFIX}{utcnow():%Y%m%d_%H%M%S_%f}{BACKUP_SUFFIX}"
    target = os.path.join(_backup_dir(), name)
    try:
        shutil.copy2(source, target)
    except OSError as exc:
        raise StorageError("Failed to create backup", {"detail": str(exc)})

    size = os.path.getsize(target)
    current_app.logger.info("Backup created: %s (%d bytes)", target, size)
    return {"path": target, "size_bytes": size}


@returns_result
def list_backups() -> list[dict]:
    """Existing backups, newest first."""
    root = _backup_dir()
    backups = []
    for name in os.listdir(root):
        path = os.path.join(root, name)
        if not (os.path.isfile(path) and name.startswith(BACKUP_PREFIX) and name.endswith(BACKUP_SUFFIX)):
            continue
        stat = os.stat(path)
        backups.append({
            "name": name,
            "path": path,
            "size_bytes": stat.st_size,
            "modified_at": to_utc_z(datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)),
        })
    # Names embed the timestamp
    backups.sort(key=lambda b: b["name"], reverse=True)
    return backups


@returns_result
def restore_backup(path: str) -> dict:
    """
    Replace the live database with the backup at `path`.

    Open connections are disposed first; the schema manager runs on the
    restored file afterwards.
    """
    if not path or not isinstance(path, str):
        raise ValidationError("Backup path is required")
    path = os.path.abspath(path)
    if not os.path.isfile(path):
        raise ValidationError("Backup file not found", {"path": path})
    if not _is_sqlite_file(path):
        raise ValidationError("File is not a SQLite database", {"path": path})

    target = database_path()
    if path == target:
        raise ValidationError("Backup path is the live database")

    db.session.remove()
    db.engine.dispose()
    try:
        shutil.copy2(path, target)
    except OSError as exc:
        raise StorageError("Failed to restore backup", {"detail": str(exc)})

    current_app.logger.warning("Database restored from %s", path)
    report = ensure_schema()
    return {"path": path, "schema": report.to_dict()}
