# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product catalog routes.

Every handler delegates to products_service and renders its Result; the
service owns validation, soft-delete filtering and duplicate rules.
"""
from flask import Blueprint

from ..results import result_response
from ..services import products_service
from .payloads import json_body

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """Active products ordered by name."""
    return result_response(products_service.list_products())


@products_bp.get("/categories")
def list_categories():
    return result_response(products_service.list_categories())


@products_bp.get("/names")
def list_product_names():
    return result_response(products_service.list_product_names())


@products_bp.get("/<product_id>")
def get_product(product_id: str):
    return result_response(products_service.get_product(product_id))


@products_bp.post("")
def create_product_route():
    payload = json_body()
    return result_response(products_service.create_product(payload), success_status=201)


@products_bp.put("/<product_id>")
def update_product_route(product_id: str):
    """
    Patch a product.

    Accepts the changes either as the body itself or wrapped as
    {"updates": {...}}.
    """
    payload = json_body()
    if isinstance(payload.get("updates"), dict):
        payload = payload["updates"]
    return result_response(products_service.update_product(product_id, payload))


@products_bp.delete("/<product_id>")
def delete_product_route(product_id: str):
    return result_response(products_service.delete_product(product_id))


@products_bp.post("/check-duplicate")
def check_duplicate_route():
    """
    Body: {"id"?, "name"?, "barcode"?}. data is null when there is no clash.
    """
    payload = json_body()
    result = products_service.check_duplicate(
        id=payload.get("id"),
        name=payload.get("name"),
        barcode=payload.get("barcode"),
    )
    return result_response(result)
