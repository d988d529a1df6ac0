from __future__ import annotations

import json

from ..extensions import db
from ..money import to_money
from ..time_utils import to_iso_date, to_utc_z

# Product columns holding ordered lists, persisted as JSON text
PRODUCT_LIST_FIELDS = ("images", "variants")


def load_json_list(raw: str | None) -> list:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        return []
    return value if isinstance(value, list) else []


class Supplier(db.Model):
    """Supplier master data. Soft-deleted via is_active."""
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_active_name", "is_active", "name"),
    )

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact_person = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.Text, nullable=True)
    tax_id = db.Column(db.String(64), nullable=True)
    payment_terms = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, server_default=db.true())

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Supplier id={self.id!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_person": self.contact_person,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "tax_id": self.tax_id,
            "payment_terms": self.payment_terms,
            "notes": self.notes,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Product catalog entry.

    Products are never physically deleted: historic sale_items reference
    them, so delete flips is_active and every listing filters on it.

    images / variants are ordered lists stored as JSON text; the service
    layer serializes on write and to_dict() deserializes on read.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_active_name", "is_active", "name"),
        db.Index("ix_products_active_stock", "is_active", "quantity_in_stock"),
    )

    id = db.Column(db.String(64), primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    barcode = db.Column(db.String(128), nullable=True, unique=True)
    sku = db.Column(db.String(64), nullable=True)
    category = db.Column(db.String(128), nullable=True, index=True)
    category_id = db.Column(db.String(128), nullable=True)

    # Bulk purchase data; used to derive a unit cost when cost_price is unset
    total_bulk_cost = db.Column(db.Numeric(12, 2), nullable=False, default=0, server_default="0")
    quantity_purchased = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    profit_margin = db.Column(db.Numeric(12, 2), nullable=False, default=0, server_default="0")

    # Not constrained to >= 0: a sale may drive stock negative
    quantity_in_stock = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    quantity_on_shelf = db.Column(db.Integer, nullable=False, default=0, server_default="0")

    cost_price = db.Column(db.Numeric(12, 2), nullable=False, default=0, server_default="0")
    selling_price = db.Column(db.Numeric(12, 2), nullable=False, default=0, server_default="0")
    wholesale_price = db.Column(db.Numeric(12, 2), nullable=True)
    tax_rate = db.Column(db.Numeric(6, 2), nullable=False, default=0, server_default="0")
    reorder_level = db.Column(db.Integer, nullable=False, default=10, server_default="10")

    supplier_id = db.Column(db.String(64), db.ForeignKey("suppliers.id"), nullable=True, index=True)
    supplier_name = db.Column(db.String(255), nullable=True)
    supplier_contact = db.Column(db.String(255), nullable=True)

    manufacturer = db.Column(db.String(255), nullable=True)
    brand = db.Column(db.String(255), nullable=True)
    unit_of_measure = db.Column(db.String(32), nullable=True)
    location = db.Column(db.String(128), nullable=True)

    manufactured_date = db.Column(db.Date, nullable=True)
    expiry_date = db.Column(db.Date, nullable=True, index=True)

    photo_path = db.Column(db.String(512), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    images = db.Column(db.Text, nullable=True)
    variants = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, server_default=db.true())

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    supplier = db.relationship("Supplier", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id!r} name={self.name!r} stock={self.quantity_in_stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "barcode": self.barcode,
            "sku": self.sku,
            "category": self.category,
            "category_id": self.category_id,
            "total_bulk_cost": to_money(self.total_bulk_cost),
            "quantity_purchased": self.quantity_purchased,
            "profit_margin": to_money(self.profit_margin),
            "quantity_in_stock": self.quantity_in_stock,
            "quantity_on_shelf": self.quantity_on_shelf,
            "cost_price": to_money(self.cost_price),
            "selling_price": to_money(self.selling_price),
            "wholesale_price": to_money(self.wholesale_price),
            "tax_rate": to_money(self.tax_rate),
            "reorder_level": self.reorder_level,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier_name,
            "supplier_contact": self.supplier_contact,
            "manufacturer": self.manufacturer,
            "brand": self.brand,
            "unit_of_measure": self.unit_of_measure,
            "location": self.location,
            "manufactured_date": to_iso_date(self.manufactured_date),
            "expiry_date": to_iso_date(self.expiry_date),
            "photo_path": self.photo_path,
            "notes": self.notes,
            "images": load_json_list(self.images),
            "variants": load_json_list(self.variants),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
