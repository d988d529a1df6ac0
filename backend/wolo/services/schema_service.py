# Overview: Startup schema manager; versioned, additive, idempotent schema steps.

"""
Schema manager.

Runs once at startup (see create_app) and from `flask db-schema ensure`.

Steps are an ordered list of idempotent operations. Each step that runs is
recorded in schema_migrations and is skipped on later starts. After the
versioned steps, missing tables and columns are reconciled against the model
metadata on every start, so a database restored from an older backup is
patched up as well.

Failure policy:
- A wholly missing core table (products, sales, sale_items) that cannot be
  created is fatal: StorageError propagates and the app does not start.
- A failed additive column change is logged and skipped.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import sqlalchemy as sa
from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext
from flask import current_app
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.elements import False_, True_

from ..extensions import db
from ..models import SchemaMigration, Setting
from ..time_utils import parse_iso_datetime, utcnow
from ..validation import StorageError

CORE_TABLES = frozenset({"products", "sales", "sale_items"})

DEFAULT_SETTINGS = {
    "developer_mode": "false",
    "low_stock_threshold": "10",
}


@dataclass
class SchemaReport:
    created_tables: list[str] = field(default_factory=list)
    added_columns: list[str] = field(default_factory=list)
    skipped_columns: list[str] = field(default_factory=list)
    applied_steps: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created_tables or self.added_columns or self.applied_steps)

    def to_dict(self) -> dict:
        return {
            "created_tables": list(self.created_tables),
            "added_columns": list(self.added_columns),
            "skipped_columns": list(self.skipped_columns),
            "applied_steps": list(self.applied_steps),
        }


@dataclass(frozen=True)
class SchemaStep:
    version: str
    description: str
    apply: Callable[[Connection, SchemaReport], None]


def _create_missing_tables(conn: Connection, report: SchemaReport) -> None:
    existing = set(sa.inspect(conn).get_table_names())
    for table in db.metadata.sorted_tables:
        if table.name in existing:
            continue
        try:
            table.create(bind=conn)
        except SQLAlchemyError as exc:
            if table.name in CORE_TABLES:
                raise StorageError(f"Failed to create core table {table.name}", {"detail": str(exc)}) from exc
            current_app.logger.warning("Could not create table %s: %s", table.name, exc)
            continue
        current_app.logger.info("Created table %s", table.name)
        report.created_tables.append(table.name)


def _additive_column(col: sa.Column) -> sa.Column:
    """
    Copy of a model column that ALTER TABLE ADD COLUMN can accept.

    Constraints are left out (SQLite cannot add UNIQUE or FK columns in
    place). Only constant server defaults are kept; anything else (e.g.
    CURRENT_TIMESTAMP) makes the column nullable and is backfilled after.
    """
    server_default = None
    default = col.server_default.arg if col.server_default is not None else None
    if isinstance(default, str):
        server_default = default
    elif isinstance(default, True_):
        server_default = "1"
    elif isinstance(default, False_):
        server_default = "0"

    nullable = col.nullable if server_default is not None else True
    return sa.Column(col.name, col.type, nullable=nullable, server_default=server_default)


def _reconcile_columns(conn: Connection, report: SchemaReport) -> None:
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())
    ops = Operations(MigrationContext.configure(conn))

    for table in db.metadata.sorted_tables:
        if table.name not in existing_tables:
            continue
        present = {c["name"] for c in inspector.get_columns(table.name)}
        for col in table.columns:
            if col.name in present:
                continue
            label = f"{table.name}.{col.name}"
            try:
                ops.add_column(table.name, _additive_column(col))
            except SQLAlchemyError as exc:
                current_app.logger.warning("Skipping column %s: %s", label, exc)
                report.skipped_columns.append(label)
                continue

            if isinstance(col.type, sa.DateTime) and col.server_default is not None:
                backfill = sa.text(
                    f'UPDATE "{table.name}" SET "{col.name}" = :now WHERE "{col.name}" IS NULL'
                ).bindparams(sa.bindparam("now", type_=sa.DateTime()))
                conn.execute(backfill, {"now": utcnow()})
            current_app.logger.info("Added column %s", label)
            report.added_columns.append(label)


def _seed_default_settings(conn: Connection, report: SchemaReport) -> None:
    settings = Setting.__table__
    now = utcnow()
    for key, value in DEFAULT_SETTINGS.items():
        exists = conn.execute(sa.select(settings.c.key).where(settings.c.key == key)).first()
        if exists:
            continue
        conn.execute(
            settings.insert().values(key=key, value=value, created_at=now, updated_at=now)
        )


def _normalize_timestamps(conn: Connection, report: SchemaReport) -> None:
    """
    Rewrite ISO-8601 text ("2024-01-15T10:00:00.000Z") in DateTime columns
    to the "YYYY-MM-DD HH:MM:SS.ffffff" form SQLAlchemy stores.

    SQLite compares these columns as text, so mixed forms break range filters.
    """
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    for table in db.metadata.sorted_tables:
        if table.name not in existing_tables or len(table.primary_key.columns) != 1:
            continue
        pk = next(iter(table.primary_key.columns)).name
        present = {c["name"] for c in inspector.get_columns(table.name)}

        for col in table.columns:
            if not isinstance(col.type, sa.DateTime) or col.name not in present:
                continue
            rows = conn.execute(
                sa.text(f'SELECT "{pk}", "{col.name}" FROM "{table.name}" WHERE "{col.name}" GLOB \'*T*\'')
            ).all()
            update = sa.text(
                f'UPDATE "{table.name}" SET "{col.name}" = :value WHERE "{pk}" = :pk'
            ).bindparams(sa.bindparam("value", type_=sa.DateTime()))
            fixed = 0
            for key, raw in rows:
                try:
                    value = parse_iso_datetime(raw)
                except ValueError:
                    current_app.logger.warning(
                        "Leaving unparseable timestamp %s.%s=%r (id=%s)", table.name, col.name, raw, key
                    )
                    continue
                conn.execute(update, {"value": value, "pk": key})
                fixed += 1
            if fixed:
                current_app.logger.info("Normalized %d timestamps in %s.%s", fixed, table.name, col.name)


SCHEMA_STEPS: list[SchemaStep] = [
    SchemaStep("0001_core_tables", "Create products, suppliers, sales, sale_items, settings", _create_missing_tables),
    SchemaStep("0002_reconcile_columns", "Add columns missing from pre-existing tables", _reconcile_columns),
    SchemaStep("0003_default_settings", "Seed developer_mode and low_stock_threshold", _seed_default_settings),
    SchemaStep("0004_normalize_timestamps", "Rewrite ISO-8601 timestamp text to storage form", _normalize_timestamps),
]


def _applied_versions(conn: Connection) -> set[str]:
    table = SchemaMigration.__table__
    return set(conn.execute(sa.select(table.c.version)).scalars())


def ensure_schema() -> SchemaReport:
    """
    Bring the database up to the current model.

    Safe to run any number of times; a second run reports no changes.
    """
    report = SchemaReport()
    engine = db.engine

    with engine.begin() as conn:
        if not sa.inspect(conn).has_table(SchemaMigration.__tablename__):
            try:
                SchemaMigration.__table__.create(bind=conn)
            except SQLAlchemyError as exc:
                raise StorageError("Failed to create schema_migrations table", {"detail": str(exc)}) from exc
            report.created_tables.append(SchemaMigration.__tablename__)

    for step in SCHEMA_STEPS:
        with engine.begin() as conn:
            if step.version in _applied_versions(conn):
                continue
            current_app.logger.info("Applying schema step %s", step.version)
            step.apply(conn, report)
            conn.execute(
                SchemaMigration.__table__.insert().values(
                    version=step.version,
                    description=step.description,
                    applied_at=utcnow(),
                )
            )
            report.applied_steps.append(step.version)

    # Unversioned safety net: restored or hand-edited databases
    with engine.begin() as conn:
        _create_missing_tables(conn, report)
    with engine.begin() as conn:
        _reconcile_columns(conn, report)

    if report.changed:
        current_app.logger.info("Schema updated: %s", report.to_dict())
    return report


def schema_status() -> dict:
    """Applied and pending schema steps."""
    with db.engine.connect() as conn:
        if not sa.inspect(conn).has_table(SchemaMigration.__tablename__):
            applied = {}
        else:
            table = SchemaMigration.__table__
            rows = conn.execute(sa.select(table.c.version, table.c.applied_at)).all()
            applied = {row.version: row.applied_at for row in rows}
    return {
        "applied": sorted(applied),
        "pending": [step.version for step in SCHEMA_STEPS if step.version not in applied],
    }
