from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Setting(db.Model):
    """
    Key/value application setting.

    Values are opaque text; callers serialize structured values and parse
    them on read (see services.settings_service for the typed helpers).
    """
    __tablename__ = "settings"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "value": self.value,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SchemaMigration(db.Model):
    """One row per versioned schema step that has been applied."""
    __tablename__ = "schema_migrations"

    version = db.Column(db.String(64), primary_key=True)
    description = db.Column(db.String(255), nullable=True)
    applied_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "description": self.description,
            "applied_at": to_utc_z(self.applied_at),
        }
