# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

"""
Supplier store.

Suppliers follow the same soft-delete rule as products: delete flips
is_active and listings never show inactive rows. Products keep their
supplier_id after a supplier is deactivated.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..ids import new_id
from ..models import Supplier
from ..results import returns_result
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({
        "name", "contact_person", "email", "phone", "address",
        "tax_id", "payment_terms", "notes",
    }),
    required_on_create=frozenset({"name"}),
)


def _get_active_supplier(supplier_id: str) -> Supplier:
    if not supplier_id:
        raise ValidationError("Supplier ID is required")
    s = (
        db.session.query(Supplier)
        .filter(Supplier.id == supplier_id, Supplier.is_active.is_(True))
        .first()
    )
    if s is None:
        raise NotFoundError("Supplier not found")
    return s


@returns_result
def list_suppliers() -> list[dict]:
    suppliers = (
        db.session.query(Supplier)
        .filter(Supplier.is_active.is_(True))
        .order_by(Supplier.name.asc())
        .all()
    )
    return [s.to_dict() for s in suppliers]


@returns_result
def get_supplier(supplier_id: str) -> dict:
    return _get_active_supplier(supplier_id).to_dict()


@returns_result
def create_supplier(data: dict) -> dict:
    payload = dict(data or {})
    supplier_id = payload.pop("id", None) or new_id()
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)

    if db.session.get(Supplier, str(supplier_id)) is not None:
        raise ConflictError("Supplier ID already exists", {"id": supplier_id})

    now = utcnow()
    s = Supplier(id=str(supplier_id), is_active=True, created_at=now, updated_at=now, **patch)
    db.session.add(s)
    db.session.commit()

    current_app.logger.info("Created supplier id=%s name=%r", s.id, s.name)
    return {"id": s.id, "supplier": s.to_dict()}


@returns_result
def update_supplier(supplier_id: str, changes: dict) -> dict:
    _get_active_supplier(supplier_id)

    payload = dict(changes or {})
    payload.pop("id", None)
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)
    if not patch:
        raise ValidationError("No changes supplied")

    result = db.session.execute(
        update(Supplier)
        .where(Supplier.id == supplier_id, Supplier.is_active.is_(True))
        .values(updated_at=utcnow(), **patch)
    )
    if result.rowcount == 0:
        raise NotFoundError("Supplier not found")
    db.session.commit()
    return db.session.get(Supplier, supplier_id).to_dict()


@returns_result
def delete_supplier(supplier_id: str) -> dict:
    if not supplier_id:
        raise ValidationError("Supplier ID is required")
    result = db.session.execute(
        update(Supplier)
        .where(Supplier.id == supplier_id, Supplier.is_active.is_(True))
        .values(is_active=False, updated_at=utcnow())
    )
    if result.rowcount == 0:
        raise NotFoundError("Supplier not found")
    db.session.commit()

    current_app.logger.info("Soft-deleted supplier id=%s", supplier_id)
    return {"id": supplier_id}
