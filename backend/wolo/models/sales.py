from __future__ import annotations

import json

from ..extensions import db
from ..money import to_money
from ..time_utils import to_utc_z


class Sale(db.Model):
    """
    Sale header. Line items live in sale_items and are removed with the sale.

    customer_info keeps the caller's structured customer data as JSON text;
    customer_name / customer_phone are lifted out of it for reporting.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_sale_date", "sale_date"),
    )

    id = db.Column(db.String(64), primary_key=True)
    invoice_number = db.Column(db.String(64), nullable=True, unique=True)
    sale_date = db.Column(db.DateTime, nullable=False)

    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(64), nullable=True)
    customer_info = db.Column(db.Text, nullable=True)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0, server_default="0")
    tax_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0, server_default="0")
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0, server_default="0")
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0, server_default="0")

    payment_method = db.Column(db.String(32), nullable=True)
    payment_status = db.Column(db.String(16), nullable=False, default="paid", server_default="paid")
    status = db.Column(db.String(16), nullable=False, default="completed", server_default="completed")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    items = db.relationship(
        "SaleItem",
        backref="sale",
        lazy=True,
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SaleItem.line_number",
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id!r} invoice={self.invoice_number!r} total={self.total_amount}>"

    def to_dict(self, *, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "sale_date": to_utc_z(self.sale_date),
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_info": json.loads(self.customer_info) if self.customer_info else None,
            "subtotal": to_money(self.subtotal),
            "tax_amount": to_money(self.tax_amount),
            "discount_amount": to_money(self.discount_amount),
            "total_amount": to_money(self.total_amount),
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """Individual line items on a sale."""
    __tablename__ = "sale_items"

    id = db.Column(db.String(64), primary_key=True)
    sale_id = db.Column(db.String(64), db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.String(64), db.ForeignKey("products.id"), nullable=False, index=True)
    # Name at time of sale; the product may be renamed or soft-deleted later
    product_name = db.Column(db.String(255), nullable=False)
    # Position within the sale, 1-based
    line_number = db.Column(db.Integer, nullable=False, default=1, server_default="1")

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_price = db.Column(db.Numeric(12, 2), nullable=False)

    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0, server_default="0")
    tax_rate = db.Column(db.Numeric(6, 2), nullable=False, default=0, server_default="0")
    tax_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0, server_default="0")

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "line_number": self.line_number,
            "quantity": self.quantity,
            "unit_price": to_money(self.unit_price),
            "total_price": to_money(self.total_price),
            "discount": to_money(self.discount),
            "tax_rate": to_money(self.tax_rate),
            "tax_amount": to_money(self.tax_amount),
            "created_at": to_utc_z(self.created_at),
        }
