# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales routes.

POST /api/sales is the register checkout: the body carries the line items
({product_id, quantity, unit_price}) plus payment and customer details.
Legacy camelCase keys are accepted and normalized in .payloads.
"""
from flask import Blueprint

from ..results import result_response
from ..services import reporting_service, sales_service
from .payloads import json_body, query_args

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
def record_sale_route():
    payload = json_body()
    result = sales_service.record_sale(
        items=payload.get("items"),
        payment_method=payload.get("payment_method"),
        customer_info=payload.get("customer_info"),
        notes=payload.get("notes"),
    )
    return result_response(result, success_status=201)


@sales_bp.get("")
def sales_history():
    """
    Query params (all optional): start_date, end_date, product_id.
    """
    args = query_args()
    result = sales_service.get_sales_history(
        start_date=args.get("start_date"),
        end_date=args.get("end_date"),
        product_id=args.get("product_id"),
    )
    return result_response(result)


@sales_bp.get("/by-date-range")
def sales_by_date_range():
    """start_date and end_date are required; sales include their items."""
    args = query_args()
    result = reporting_service.sales_by_date_range(
        args.get("start_date"),
        args.get("end_date"),
        product_id=args.get("product_id"),
    )
    return result_response(result)


@sales_bp.get("/<sale_id>")
def get_sale(sale_id: str):
    return result_response(sales_service.get_sale(sale_id))


@sales_bp.delete("/<sale_id>")
def delete_sale_route(sale_id: str):
    return result_response(sales_service.delete_sale(sale_id))
