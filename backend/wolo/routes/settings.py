# Overview: Flask API routes for settings operations; parses input and returns JSON responses.

from __future__ import annotations

from flask import Blueprint, request

from ..results import result_response
from ..services import settings_service
from .payloads import json_body

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
def get_settings():
    """?keys=a,b,c -> {key: value | null}."""
    keys = [k for k in (request.args.get("keys") or "").split(",") if k.strip()]
    return result_response(settings_service.get_settings(keys))


@settings_bp.get("/<key>")
def get_setting(key: str):
    return result_response(settings_service.get_setting(key))


@settings_bp.put("/<key>")
def set_setting(key: str):
    """Body: {"value": ...}. Non-string values are stored as text."""
    payload = json_body()
    return result_response(settings_service.set_setting(key, payload.get("value")))
