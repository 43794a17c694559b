# backend/uniforms/routes/settings.py
from flask import Blueprint, request

from ..services import settings_service
from ..validation import parse_json_object
from .common import json_error, ok


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/cooldown")
def get_cooldown():
    try:
        return ok({"cooldown_days": settings_service.get_cooldown_days()})
    except Exception as e:
        return json_error(e, "Failed to load cooldown setting")


@settings_bp.patch("/cooldown")
def update_cooldown():
    """Request body: {"cooldown_days": int >= 0}"""
    try:
        data = parse_json_object(request.get_json(silent=True))
        days = settings_service.update_cooldown_days(data.get("cooldown_days"))
        return ok({"cooldown_days": days})
    except Exception as e:
        return json_error(e, "Failed to update cooldown setting")
