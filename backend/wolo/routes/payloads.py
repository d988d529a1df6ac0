# Overview: Request payload adapter; maps legacy camelCase client keys to the canonical snake_case shape.

from __future__ import annotations

import re

from flask import request

# Legacy renderer keys; anything else camelCased falls back to the generic rule
LEGACY_KEYS = {
    "productId": "product_id",
    "unitPrice": "unit_price",
    "paymentMethod": "payment_method",
    "customerInfo": "customer_info",
    "startDate": "start_date",
    "endDate": "end_date",
}

# Nested lists whose entries are records in their own right
RECORD_LISTS = ("items",)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_key(key: str) -> str:
    if key in LEGACY_KEYS:
        return LEGACY_KEYS[key]
    if key.islower() or not any(ch.isupper() for ch in key):
        return key
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def canonical(payload):
    """
    Canonical copy of a client payload.

    Top-level keys and the keys of records inside `items` are converted;
    values such as product variants or customer info pass through untouched.
    A snake_case key wins over its camelCase twin.
    """
    if not isinstance(payload, dict):
        return payload
    out = {}
    for key, value in payload.items():
        if not isinstance(key, str):
            continue
        target = snake_key(key)
        if target in out and target != key:
            continue
        if target in RECORD_LISTS and isinstance(value, list):
            value = [canonical(v) for v in value]
        out[target] = value
    return out


def json_body() -> dict:
    return canonical(request.get_json(silent=True) or {})


def query_args() -> dict:
    """Query string as a canonical dict (last value wins)."""
    return canonical(request.args.to_dict())
