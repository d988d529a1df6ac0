"""
Sales recorder.

record_sale is the one compound write in the system: the sale header, its
line items, and the stock decrement of every referenced product are written
in a single transaction. If any part fails (unknown product, storage error)
the session is rolled back and nothing is persisted.

Stock is allowed to go negative; whether to block oversells is a business
policy left to the caller.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal

from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..ids import new_id, new_invoice_number
from ..models import Product, Sale, SaleItem
from ..money import quantize, to_money
from ..results import returns_result
from ..time_utils import parse_range_bound, utcnow
from ..validation import NotFoundError, ValidationError, to_decimal, to_int
from .concurrency import run_with_retry

DEFAULT_PAYMENT_METHOD = "cash"


@dataclass(frozen=True)
class SaleLineInput:
    product_id: str
    quantity: int
    unit_price: Decimal

    @property
    def total(self) -> Decimal:
        return quantize(self.unit_price * self.quantity)


def _validate_items(items) -> list[SaleLineInput]:
    if not isinstance(items, (list, tuple)) or not items:
        raise ValidationError("At least one sale item is required")

    lines = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {index} must be an object")
        product_id = item.get("product_id")
        if not product_id or not str(product_id).strip():
            raise ValidationError(f"Item {index}: product_id is required")
        if item.get("quantity") is None:
            raise ValidationError(f"Item {index}: quantity is required")
        if item.get("unit_price") is None:
            raise ValidationError(f"Item {index}: unit_price is required")

        quantity = to_int(item["quantity"], f"items[{index}].quantity")
        if quantity <= 0:
            raise ValidationError(f"Item {index}: quantity must be > 0")
        unit_price = to_decimal(item["unit_price"], f"items[{index}].unit_price")
        if unit_price < 0:
            raise ValidationError(f"Item {index}: unit_price must be >= 0")

        lines.append(SaleLineInput(str(product_id).strip(), quantity, quantize(unit_price)))
    return lines


def _customer_fields(customer_info) -> dict:
    if customer_info in (None, "", {}):
        return {"customer_name": None, "customer_phone": None, "customer_info": None}
    if isinstance(customer_info, str):
        customer_info = {"name": customer_info.strip()}
    if not isinstance(customer_info, dict):
        raise ValidationError("customer_info must be an object or a name")
    return {
        "customer_name": customer_info.get("name") or None,
        "customer_phone": customer_info.get("phone") or None,
        "customer_info": json.dumps(customer_info),
    }


def sale_summary(sale: Sale, *, include_items: bool = True) -> dict:
    """Sale dict annotated with item ids, count and line total sum."""
    data = sale.to_dict(include_items=include_items)
    data["item_ids"] = [item.id for item in sale.items]
    data["item_count"] = len(sale.items)
    data["items_total"] = to_money(sum((item.total_price for item in sale.items), Decimal("0")))
    return data


def query_sales(*, start=None, end=None, product_id: str | None = None) -> list[Sale]:
    """Sales within the inclusive [start, end] range, newest first."""
    try:
        start_dt = parse_range_bound(start)
        end_dt = parse_range_bound(end, end=True)
    except ValueError:
        raise ValidationError("Dates must be ISO-8601 (YYYY-MM-DD or full datetime)")
    if start_dt and end_dt and start_dt > end_dt:
        raise ValidationError("start date must not be after end date")

    q = db.session.query(Sale).options(selectinload(Sale.items))
    if start_dt:
        q = q.filter(Sale.sale_date >= start_dt)
    if end_dt:
        q = q.filter(Sale.sale_date <= end_dt)
    if product_id:
        q = q.filter(Sale.id.in_(select(SaleItem.sale_id).where(SaleItem.product_id == product_id)))
    return q.order_by(Sale.sale_date.desc(), Sale.id.asc()).all()


@returns_result
def record_sale(
    *,
    items,
    payment_method: str | None = None,
    customer_info=None,
    notes: str | None = None,
) -> dict:
    """
    Persist a sale, its line items, and the stock decrements atomically.

    total_amount = sum(quantity x unit_price). Returns the stored sale with
    its items.
    """
    lines = _validate_items(items)
    customer = _customer_fields(customer_info)
    total = quantize(sum((line.total for line in lines), Decimal("0")))

    def _op() -> Sale:
        now = utcnow()
        sale = Sale(
            id=new_id(),
            invoice_number=new_invoice_number(now),
            sale_date=now,
            subtotal=total,
            tax_amount=Decimal("0.00"),
            discount_amount=Decimal("0.00"),
            total_amount=total,
            payment_method=payment_method or DEFAULT_PAYMENT_METHOD,
            payment_status="paid",
            status="completed",
            notes=notes or None,
            created_at=now,
            updated_at=now,
            **customer,
        )
        db.session.add(sale)

        for line_number, line in enumerate(lines, start=1):
            product = db.session.get(Product, line.product_id)
            if product is None or not product.is_active:
                raise NotFoundError(
                    f"Product not found: {line.product_id}",
                    {"product_id": line.product_id},
                )

            db.session.add(SaleItem(
                id=new_id(),
                sale_id=sale.id,
                product_id=line.product_id,
                product_name=product.name,
                line_number=line_number,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_price=line.total,
                created_at=now,
            ))

            result = db.session.execute(
                update(Product)
                .where(Product.id == line.product_id)
                .values(
                    quantity_in_stock=Product.quantity_in_stock - line.quantity,
                    updated_at=now,
                )
            )
            if result.rowcount != 1:
                raise NotFoundError(
                    f"Product not found: {line.product_id}",
                    {"product_id": line.product_id},
                )

        db.session.commit()
        return sale

    sale = run_with_retry(_op)
    current_app.logger.info(
        "Recorded sale id=%s invoice=%s items=%d total=%s",
        sale.id, sale.invoice_number, len(lines), total,
    )
    return sale_summary(sale)


@returns_result
def get_sale(sale_id: str) -> dict:
    sale = (
        db.session.query(Sale)
        .options(selectinload(Sale.items))
        .filter(Sale.id == sale_id)
        .first()
    )
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale_summary(sale)


@returns_result
def get_sales_history(
    *,
    start_date=None,
    end_date=None,
    product_id: str | None = None,
) -> list[dict]:
    """Sales with optional date bounds and product filter, newest first."""
    sales = query_sales(start=start_date, end=end_date, product_id=product_id)
    return [sale_summary(s, include_items=False) for s in sales]


@returns_result
def delete_sale(sale_id: str) -> dict:
    """
    Remove a sale and, by cascade, its line items.

    Stock is not restored: this corrects bad records, it is not a return.
    """
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")
    invoice_number = sale.invoice_number
    db.session.delete(sale)
    db.session.commit()

    current_app.logger.warning("Deleted sale id=%s invoice=%s", sale_id, invoice_number)
    return {"id": sale_id}
