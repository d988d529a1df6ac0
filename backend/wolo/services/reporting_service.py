# Overview: Read-side report derivations over products and sales; recomputed on every call.

from __future__ import annotations

import re
from datetime import timedelta
from decimal import Decimal
from typing import Iterable

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Product, Sale
from ..money import quantize, to_money
from ..results import returns_result
from ..time_utils import parse_iso_date, parse_range_bound, utcnow
from ..validation import ValidationError

DEFAULT_EXPIRY_WINDOW_DAYS = 30

STATUS_OUT_OF_STOCK = "out_of_stock"
STATUS_LOW_STOCK = "low_stock"
STATUS_IN_STOCK = "in_stock"

_WHITESPACE = re.compile(r"\s+")


def normalize_category(value: str | None) -> str:
    """'Health Care' -> 'health-care'."""
    if not value:
        return ""
    return _WHITESPACE.sub("-", value.strip().lower())


def _row_category(row) -> str | None:
    if isinstance(row, dict):
        return row.get("category")
    return getattr(row, "category", None)


def category_filter(rows: Iterable, category: str | None) -> list:
    """
    Keep rows whose category matches `category` after normalization.

    Works on product dicts and Product instances. An empty filter keeps
    everything.
    """
    rows = list(rows)
    wanted = normalize_category(category)
    if not wanted:
        return rows
    return [r for r in rows if normalize_category(_row_category(r)) == wanted]


def unit_cost(product: Product) -> Decimal:
    """
    Cost of one unit in stock.

    cost_price when positive; otherwise total_bulk_cost / quantity_purchased
    when both are positive; otherwise 0.
    """
    cost_price = Decimal(product.cost_price or 0)
    if cost_price > 0:
        return cost_price
    bulk = Decimal(product.total_bulk_cost or 0)
    purchased = product.quantity_purchased or 0
    if bulk > 0 and purchased > 0:
        return bulk / purchased
    return Decimal("0")


def stock_status(product: Product) -> str:
    qty = product.quantity_in_stock or 0
    if qty <= 0:
        return STATUS_OUT_OF_STOCK
    if qty <= (product.reorder_level or 0):
        return STATUS_LOW_STOCK
    return STATUS_IN_STOCK


def _active_products(category: str | None = None) -> list[Product]:
    products = (
        db.session.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(Product.name.asc())
        .all()
    )
    return category_filter(products, category)


def _default_threshold() -> int:
    from .settings_service import LOW_STOCK_THRESHOLD_KEY, get_int

    return get_int(LOW_STOCK_THRESHOLD_KEY, current_app.config.get("LOW_STOCK_THRESHOLD", 10))


@returns_result
def sales_by_date_range(start, end, *, product_id: str | None = None) -> list[dict]:
    """
    Sales with sale_date in [start, end] inclusive, newest first, each with
    its line items. A date-only end covers that whole day.
    """
    from .sales_service import query_sales, sale_summary

    if not start or not end:
        raise ValidationError("start and end dates are required")
    return [sale_summary(s) for s in query_sales(start=start, end=end, product_id=product_id)]


@returns_result
def low_stock_items(threshold: int | None = None, *, category: str | None = None) -> list[dict]:
    """Active products with quantity_in_stock <= threshold, lowest first."""
    if threshold is None:
        threshold = _default_threshold()
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise ValidationError("threshold must be an integer")

    products = (
        db.session.query(Product)
        .filter(Product.is_active.is_(True), Product.quantity_in_stock <= threshold)
        .order_by(Product.quantity_in_stock.asc(), Product.name.asc())
        .all()
    )
    return [p.to_dict() for p in category_filter(products, category)]


@returns_result
def expiring_products(start=None, end=None, *, category: str | None = None) -> list[dict]:
    """
    Active products whose expiry_date falls in [start, end] (dates only).

    start defaults to today, end to start + 30 days. Products without an
    expiry_date never match.
    """
    try:
        start_date = parse_iso_date(start) or utcnow().date()
        end_date = parse_iso_date(end) or start_date + timedelta(days=DEFAULT_EXPIRY_WINDOW_DAYS)
    except ValueError:
        raise ValidationError("Dates must be ISO-8601 (YYYY-MM-DD)")
    if start_date > end_date:
        raise ValidationError("start date must not be after end date")

    products = (
        db.session.query(Product)
        .filter(
            Product.is_active.is_(True),
            Product.expiry_date.isnot(None),
            Product.expiry_date >= start_date,
            Product.expiry_date <= end_date,
        )
        .order_by(Product.expiry_date.asc(), Product.name.asc())
        .all()
    )

    today = utcnow().date()
    rows = []
    for p in category_filter(products, category):
        row = p.to_dict()
        row["days_until_expiry"] = (p.expiry_date - today).days
        rows.append(row)
    return rows


@returns_result
def inventory_value(*, category: str | None = None) -> dict:
    """Sum of quantity_in_stock x unit_cost over active products."""
    total = Decimal("0")
    items = 0
    products = _active_products(category)
    for p in products:
        total += (p.quantity_in_stock or 0) * unit_cost(p)
        items += p.quantity_in_stock or 0
    return {
        "total_value": to_money(total),
        "total_items": items,
        "product_count": len(products),
    }


def build_inventory_report(category: str | None = None) -> dict:
    """Per-product valuation rows with stock status, plus totals."""
    rows = []
    total = Decimal("0")
    items = 0
    low = out = 0

    for p in _active_products(category):
        cost = unit_cost(p)
        value = (p.quantity_in_stock or 0) * cost
        status = stock_status(p)
        if status == STATUS_OUT_OF_STOCK:
            out += 1
        elif status == STATUS_LOW_STOCK:
            low += 1
        total += value
        items += p.quantity_in_stock or 0
        rows.append({
            "id": p.id,
            "name": p.name,
            "category": p.category,
            "sku": p.sku,
            "quantity_in_stock": p.quantity_in_stock,
            "reorder_level": p.reorder_level,
            "selling_price": to_money(p.selling_price),
            "unit_cost": to_money(cost),
            "value": to_money(value),
            "status": status,
        })

    return {
        "rows": rows,
        "totals": {
            "product_count": len(rows),
            "total_items": items,
            "total_value": to_money(total),
            "low_stock_count": low,
            "out_of_stock_count": out,
        },
    }


@returns_result
def inventory_report(*, category: str | None = None) -> dict:
    return build_inventory_report(category)


@returns_result
def dashboard_summary() -> dict:
    today = utcnow().date()
    day_start = parse_range_bound(today)
    day_end = parse_range_bound(today, end=True)

    sales_count, revenue = (
        db.session.query(func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount), 0))
        .filter(Sale.sale_date >= day_start, Sale.sale_date <= day_end)
        .one()
    )

    threshold = _default_threshold()
    products = _active_products()
    low_stock = sum(1 for p in products if (p.quantity_in_stock or 0) <= threshold)
    value = sum(((p.quantity_in_stock or 0) * unit_cost(p) for p in products), Decimal("0"))

    return {
        "date": today.isoformat(),
        "today_sales_count": int(sales_count or 0),
        "today_revenue": to_money(quantize(revenue)),
        "product_count": len(products),
        "low_stock_count": low_stock,
        "low_stock_threshold": threshold,
        "inventory_value": to_money(value),
    }
