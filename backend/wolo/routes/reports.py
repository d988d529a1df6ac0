# Overview: Flask API routes for reports operations; parses input and returns JSON responses.

"""
Reporting and export routes.

Reports are recomputed on every request. Exports write an .xlsx file to the
configured export directory and answer with its path.
"""
from flask import Blueprint

from ..results import Result, result_response
from ..services import export_service, reporting_service
from ..validation import ValidationError
from .payloads import json_body, query_args

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/low-stock")
def low_stock():
    """
    Query params:
    - threshold: int (optional) - defaults to the low_stock_threshold setting
    - category: str (optional)
    """
    args = query_args()
    threshold = args.get("threshold")
    if threshold not in (None, ""):
        try:
            threshold = int(threshold)
        except ValueError:
            return result_response(Result.fail(ValidationError("threshold must be an integer")))
    else:
        threshold = None
    return result_response(reporting_service.low_stock_items(threshold, category=args.get("category")))


@reports_bp.get("/expiring")
def expiring():
    args = query_args()
    result = reporting_service.expiring_products(
        args.get("start_date"),
        args.get("end_date"),
        category=args.get("category"),
    )
    return result_response(result)


@reports_bp.get("/inventory")
def inventory():
    return result_response(reporting_service.inventory_report(category=query_args().get("category")))


@reports_bp.get("/inventory-value")
def inventory_value():
    return result_response(reporting_service.inventory_value(category=query_args().get("category")))


@reports_bp.get("/dashboard")
def dashboard():
    return result_response(reporting_service.dashboard_summary())


@reports_bp.post("/sales/export")
def export_sales():
    """Body: {start_date?, end_date?, category?}."""
    payload = json_body()
    result = export_service.export_sales_excel(
        payload.get("start_date"),
        payload.get("end_date"),
        payload.get("category"),
    )
    return result_response(result, success_status=201)


@reports_bp.post("/inventory/export")
def export_inventory():
    payload = json_body()
    return result_response(export_service.export_inventory_excel(payload.get("category")), success_status=201)
