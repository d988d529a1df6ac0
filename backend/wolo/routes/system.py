# Overview: Flask API routes for system operations; health checks, schema status, backup and restore.

"""
System health, schema and backup endpoints.

GET /api/health checks database connectivity and whether every schema step
has been applied. Backup endpoints only work against a file-backed SQLite
database.
"""
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product, Sale
from ..results import Result, result_response
from ..services import backup_service
from ..services.schema_service import schema_status
from ..time_utils import to_utc_z, utcnow
from .payloads import json_body

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        product_count = db.session.query(Product).count()
        sale_count = db.session.query(Sale).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "sales": sale_count,
            },
        }
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_schema_health() -> dict:
    """Degraded while schema steps are pending; the app still serves."""
    try:
        status = schema_status()
    except SQLAlchemyError:
        current_app.logger.exception("Schema health check failed")
        return {"status": "unhealthy", "error": "Schema check failed"}

    if status["pending"]:
        return {
            "status": "degraded",
            "warning": f"Pending schema steps: {', '.join(status['pending'])}",
            "details": status,
        }
    return {"status": "healthy", "details": status}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    schema_health = check_schema_health()

    all_checks = [database_health, schema_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    total_elapsed_ms = (time.time() - start_time) * 1000
    body = {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "schema": schema_health,
        },
    }
    return jsonify({"success": http_status == 200, "data": body}), http_status


@system_bp.get("/system/schema")
def schema():
    return result_response(Result.ok(schema_status()))


@system_bp.post("/system/backup")
def create_backup():
    return result_response(backup_service.create_backup(), success_status=201)


@system_bp.get("/system/backups")
def list_backups():
    return result_response(backup_service.list_backups())


@system_bp.post("/system/restore")
def restore_backup():
    """Body: {"path": "<backup file>"}."""
    payload = json_body()
    return result_response(backup_service.restore_backup(payload.get("path")))
