# backend/uniforms/routes/staff.py
"""
Staff directory and per-role limit routes.
"""
from flask import Blueprint, request

from ..services import staff_service
from ..validation import parse_json_object
from .common import json_error, ok


staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


@staff_bp.get("")
def list_staff():
    """Staff with the allowance they have left this year."""
    try:
        return ok({"items": staff_service.list_staff()})
    except Exception as e:
        return json_error(e, "Failed to list staff")


@staff_bp.get("/role-limits")
def list_role_limits():
    try:
        return ok({"items": staff_service.list_role_limits()})
    except Exception as e:
        return json_error(e, "Failed to list role limits")


@staff_bp.put("/role-limits/<role_name>")
def update_role_limit(role_name: str):
    """Request body: {"annual_limit": int >= 0}"""
    try:
        data = parse_json_object(request.get_json(silent=True))
        return ok(staff_service.update_role_limit(role_name, data.get("annual_limit")))
    except Exception as e:
        return json_error(e, "Failed to update role limit")


@staff_bp.get("/role-cooldowns")
def list_role_cooldowns():
    try:
        return ok({"items": staff_service.list_role_cooldowns()})
    except Exception as e:
        return json_error(e, "Failed to list role cooldowns")


@staff_bp.put("/role-cooldowns/<role_name>")
def update_role_cooldown(role_name: str):
    """Request body: {"cooldown_days": int >= 0}"""
    try:
        data = parse_json_object(request.get_json(silent=True))
        return ok(staff_service.update_role_cooldown(role_name, data.get("cooldown_days")))
    except Exception as e:
        return json_error(e, "Failed to update role cooldown")
