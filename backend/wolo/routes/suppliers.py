# Overview: Flask API routes for suppliers operations; parses input and returns JSON responses.

from flask import Blueprint

from ..results import result_response
from ..services import suppliers_service
from .payloads import json_body

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
def list_suppliers():
    return result_response(suppliers_service.list_suppliers())


@suppliers_bp.get("/<supplier_id>")
def get_supplier(supplier_id: str):
    return result_response(suppliers_service.get_supplier(supplier_id))


@suppliers_bp.post("")
def create_supplier_route():
    return result_response(suppliers_service.create_supplier(json_body()), success_status=201)


@suppliers_bp.put("/<supplier_id>")
def update_supplier_route(supplier_id: str):
    return result_response(suppliers_service.update_supplier(supplier_id, json_body()))


@suppliers_bp.delete("/<supplier_id>")
def delete_supplier_route(supplier_id: str):
    return result_response(suppliers_service.delete_supplier(supplier_id))
