# backend/uniforms/routes/uniform_items.py
from flask import Blueprint

from ..services import inventory_service
from .common import json_error, ok


uniform_items_bp = Blueprint("uniform_items", __name__, url_prefix="/api/uniform-items")


@uniform_items_bp.get("")
def list_uniform_items():
    try:
        return ok({"items": inventory_service.list_uniform_items()})
    except Exception as e:
        return json_error(e, "Failed to list uniform items")
