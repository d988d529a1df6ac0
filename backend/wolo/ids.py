from __future__ import annotations

import secrets
import uuid
from datetime import datetime


def new_id() -> str:
    """Primary key for products, suppliers, sales and sale items."""
    return uuid.uuid4().hex


def new_invoice_number(now: datetime) -> str:
    """Human-facing sale number, e.g. INV-20240131-7F3A2C."""
    return f"INV-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"
