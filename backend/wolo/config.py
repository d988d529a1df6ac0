# backend/wolo/config.py
from __future__ import annotations
import os

# Local data directory (SQLite file, exports, backups)
DATA_DIR = os.path.abspath(os.environ.get("WOLO_DATA_DIR", os.path.join(os.getcwd(), "instance")))


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    DATA_DIR = DATA_DIR

    # SQLite DB stored in <data dir>/wolo-inventory.db
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///" + os.path.join(DATA_DIR, "wolo-inventory.db"), #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    EXPORT_DIR = os.environ.get("WOLO_EXPORT_DIR", os.path.join(DATA_DIR, "exports"))
    BACKUP_DIR = os.environ.get("WOLO_BACKUP_DIR", os.path.join(DATA_DIR, "backups"))

    LOG_LEVEL = os.environ.get("WOLO_LOG_LEVEL", "INFO")

    # Run the schema manager when the app is created
    AUTO_MIGRATE = os.environ.get("AUTO_MIGRATE", "true").lower() == "true"

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))
