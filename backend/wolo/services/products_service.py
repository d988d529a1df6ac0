# backend/wolo/services/products_service.py
"""
Product store.

All reads filter on is_active: a soft-deleted product is invisible to
listing, lookup, and duplicate detection, but its row stays in place for the
sale_items that reference it.

Every public function returns a Result (see wolo.results).
"""
from __future__ import annotations

import json

from flask import current_app
from sqlalchemy import func, update

from ..extensions import db
from ..ids import new_id
from ..models import PRODUCT_LIST_FIELDS, Product
from ..results import returns_result
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from .reporting_service import normalize_category

PRODUCT_MUTABLE_FIELDS = frozenset({
    "name", "description", "barcode", "sku", "category", "category_id",
    "total_bulk_cost", "quantity_purchased", "profit_margin",
    "quantity_in_stock", "quantity_on_shelf",
    "cost_price", "selling_price", "wholesale_price", "tax_rate", "reorder_level",
    "supplier_id", "supplier_name", "supplier_contact",
    "manufacturer", "brand", "unit_of_measure", "location",
    "manufactured_date", "expiry_date", "photo_path", "notes",
    "images", "variants",
})

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_MUTABLE_FIELDS,
    required_on_create=frozenset({"name"}),
)

# Absent or null on create -> 0
ZERO_DEFAULT_FIELDS = (
    "quantity_in_stock", "quantity_on_shelf", "cost_price", "selling_price",
    "total_bulk_cost", "quantity_purchased", "profit_margin", "tax_rate",
)

# Optional text references where "" means "not set"
BLANK_AS_NULL_FIELDS = ("barcode", "supplier_id", "expiry_date", "manufactured_date")


def _active_query():
    return db.session.query(Product).filter(Product.is_active.is_(True))


def _get_active_product(product_id: str) -> Product:
    if not product_id:
        raise ValidationError("Product ID is required")
    p = _active_query().filter(Product.id == product_id).first()
    if p is None:
        raise NotFoundError("Product not found")
    return p


def _normalize_payload(data: dict | None) -> dict:
    if data is not None and not isinstance(data, dict):
        raise ValidationError("Product data must be an object")
    payload = dict(data or {})
    for field in BLANK_AS_NULL_FIELDS:
        if field in payload and isinstance(payload[field], str) and not payload[field].strip():
            payload[field] = None
    return payload


def _serialize_list_fields(patch: dict) -> dict:
    values = dict(patch)
    for field in PRODUCT_LIST_FIELDS:
        if field in values:
            items = values[field]
            values[field] = json.dumps(list(items)) if items is not None else json.dumps([])
    return values


def _ensure_barcode_free(barcode: str, *, exclude_id: str | None = None) -> None:
    # Any row counts, active or not: the column is unique
    q = db.session.query(Product.id).filter(Product.barcode == barcode)
    if exclude_id:
        q = q.filter(Product.id != exclude_id)
    if q.first() is not None:
        raise ConflictError("Barcode already in use by another product", {"barcode": barcode})


@returns_result
def list_products() -> list[dict]:
    """Active products ordered by name."""
    products = _active_query().order_by(Product.name.asc(), Product.id.asc()).all()
    return [p.to_dict() for p in products]


@returns_result
def get_product(product_id: str) -> dict:
    return _get_active_product(product_id).to_dict()


@returns_result
def create_product(data: dict) -> dict:
    """
    Create a product from client data.

    Quantity and price fields default to zero, reorder_level to 10.
    Returns {"id", "product"}.
    """
    payload = _normalize_payload(data)
    product_id = payload.pop("id", None) or new_id()

    for field in ZERO_DEFAULT_FIELDS:
        if payload.get(field) in (None, ""):
            payload[field] = 0
    if payload.get("reorder_level") in (None, ""):
        payload.pop("reorder_level", None)

    patch = validate_payload(
        model=Product,
        payload=payload,
        policy=PRODUCT_POLICY,
        partial=False,
        passthrough=frozenset(PRODUCT_LIST_FIELDS),
    )
    enforce_rules_product(patch)

    if db.session.get(Product, str(product_id)) is not None:
        raise ConflictError("Product ID already exists", {"id": product_id})
    if patch.get("barcode"):
        _ensure_barcode_free(patch["barcode"])

    now = utcnow()
    values = _serialize_list_fields(patch)
    for field in PRODUCT_LIST_FIELDS:
        values.setdefault(field, json.dumps([]))

    p = Product(id=str(product_id), is_active=True, created_at=now, updated_at=now, **values)
    db.session.add(p)
    db.session.commit()

    current_app.logger.info("Created product id=%s name=%r", p.id, p.name)
    return {"id": p.id, "product": p.to_dict()}


@returns_result
def update_product(product_id: str, changes: dict) -> dict:
    """Patch an active product. Unknown fields are rejected."""
    _get_active_product(product_id)

    payload = _normalize_payload(changes)
    if payload.get("id") not in (None, product_id):
        raise ValidationError("Product ID cannot be changed")
    payload.pop("id", None)

    patch = validate_payload(
        model=Product,
        payload=payload,
        policy=PRODUCT_POLICY,
        partial=True,
        passthrough=frozenset(PRODUCT_LIST_FIELDS),
    )
    enforce_rules_product(patch)
    if not patch:
        raise ValidationError("No changes supplied")

    if patch.get("barcode"):
        _ensure_barcode_free(patch["barcode"], exclude_id=product_id)

    values = _serialize_list_fields(patch)
    values["updated_at"] = utcnow()

    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.is_active.is_(True))
        .values(**values)
    )
    if result.rowcount == 0:
        raise NotFoundError("Product not found or no changes made")
    db.session.commit()

    current_app.logger.info("Updated product id=%s fields=%s", product_id, ", ".join(sorted(patch)))
    return db.session.get(Product, product_id).to_dict()


@returns_result
def delete_product(product_id: str) -> dict:
    """
    Soft-delete: flip is_active and stamp updated_at.

    The row is never removed; historic sale_items keep referencing it.
    """
    if not product_id:
        raise ValidationError("Product ID is required for deletion")

    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.is_active.is_(True))
        .values(is_active=False, updated_at=utcnow())
    )
    if result.rowcount == 0:
        raise NotFoundError("Product not found")
    db.session.commit()

    current_app.logger.info("Soft-deleted product id=%s", product_id)
    return {"id": product_id}


@returns_result
def check_duplicate(*, id: str | None = None, name: str | None = None, barcode: str | None = None) -> dict | None:
    """
    First active product (other than `id`) clashing on name or barcode.

    Name is compared case-insensitively and wins over barcode; barcode must
    match exactly. Returns None when there is no conflict.
    """
    for field_name, value in (("name", name), ("barcode", barcode)):
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{field_name} must be a string")
    exclude_id = id or ""

    if name and name.strip():
        clash = (
            _active_query()
            .filter(func.lower(Product.name) == name.strip().lower(), Product.id != exclude_id)
            .order_by(Product.created_at.asc())
            .first()
        )
        if clash is not None:
            return {"id": clash.id, "name": clash.name, "field": "name"}

    if barcode and barcode.strip():
        clash = (
            _active_query()
            .filter(Product.barcode == barcode.strip(), Product.id != exclude_id)
            .first()
        )
        if clash is not None:
            return {"id": clash.id, "barcode": clash.barcode, "field": "barcode"}

    return None


@returns_result
def list_categories() -> list[dict]:
    """Distinct categories of active products, as {id (normalized), name}."""
    rows = (
        db.session.query(Product.category)
        .filter(Product.is_active.is_(True), Product.category.isnot(None), Product.category != "")
        .distinct()
        .all()
    )
    seen: dict[str, str] = {}
    for (category,) in rows:
        seen.setdefault(normalize_category(category), category)
    return [{"id": key, "name": name} for key, name in sorted(seen.items(), key=lambda kv: kv[1].lower())]


@returns_result
def list_product_names() -> list[dict]:
    """Lightweight id/name/barcode listing for autocomplete."""
    rows = (
        db.session.query(Product.id, Product.name, Product.barcode)
        .filter(Product.is_active.is_(True))
        .order_by(Product.name.asc())
        .all()
    )
    return [{"id": r.id, "name": r.name, "barcode": r.barcode} for r in rows]
