from __future__ import annotations

import json
from typing import Any

from blinker import Namespace
from flask import current_app

from ..extensions import db
from ..models import Setting
from ..results import returns_result
from ..time_utils import utcnow
from ..validation import ValidationError

DEVELOPER_MODE_KEY = "developer_mode"
LOW_STOCK_THRESHOLD_KEY = "low_stock_threshold"

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}

_signals = Namespace()

# sender: the Flask app; kwargs: key, value (stored text), previous (text or None)
setting_changed = _signals.signal("setting-changed")
# sender: the Flask app; kwargs: enabled (bool)
developer_mode_changed = _signals.signal("developer-mode-changed")


def _clean_key(key: Any) -> str:
    if not isinstance(key, str) or not key.strip():
        raise ValidationError("Valid setting key is required")
    key = key.strip()
    if len(key) > 128:
        raise ValidationError("Setting key exceeds max length 128")
    return key


def coerce_to_text(value: Any) -> str:
    """Storage form of a setting value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value)
    return str(value)


def parse_bool(text: str | None, default: bool = False) -> bool:
    if text is None:
        return default
    lowered = text.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    return default


@returns_result
def get_setting(key: str) -> dict:
    """{"found": bool, "value": str | None}; a missing key is not an error."""
    key = _clean_key(key)
    setting = db.session.get(Setting, key)
    if setting is None:
        return {"found": False, "value": None}
    return {"found": True, "value": setting.value}


@returns_result
def get_settings(keys: list[str]) -> dict:
    """Batch lookup; missing keys map to None."""
    clean = [_clean_key(k) for k in keys]
    rows = db.session.query(Setting).filter(Setting.key.in_(clean)).all()
    found = {row.key: row.value for row in rows}
    return {k: found.get(k) for k in clean}


@returns_result
def set_setting(key: str, value: Any) -> dict:
    """
    Upsert a setting. The value is stored as text (see coerce_to_text).

    Subscribers of setting_changed are notified after commit when the stored
    value actually changed; developer_mode changes also fire
    developer_mode_changed.
    """
    key = _clean_key(key)
    text = coerce_to_text(value)
    now = utcnow()

    setting = db.session.get(Setting, key)
    previous = setting.value if setting is not None else None
    if setting is None:
        setting = Setting(key=key, value=text, created_at=now, updated_at=now)
        db.session.add(setting)
    else:
        setting.value = text
        setting.updated_at = now
    db.session.commit()

    if previous != text:
        app = current_app._get_current_object()
        setting_changed.send(app, key=key, value=text, previous=previous)
        if key == DEVELOPER_MODE_KEY:
            developer_mode_changed.send(app, enabled=parse_bool(text))
        current_app.logger.info("Setting %s changed", key)

    return {"key": key, "value": text}


def get_bool(key: str, default: bool = False) -> bool:
    result = get_setting(key)
    if not result.success or not result.data["found"]:
        return default
    return parse_bool(result.data["value"], default)


def get_int(key: str, default: int) -> int:
    result = get_setting(key)
    if not result.success or not result.data["found"]:
        return default
    try:
        return int(str(result.data["value"]).strip())
    except ValueError:
        current_app.logger.warning("Setting %s is not an integer: %r", key, result.data["value"])
        return default
