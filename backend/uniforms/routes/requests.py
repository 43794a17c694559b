# backend/uniforms/routes/requests.py
"""
Uniform request API routes.
"""
from flask import Blueprint, request

from ..services import request_service
from ..validation import (
    parse_json_object,
    parse_request_draft,
    parse_request_filters,
    parse_request_items_update,
)
from .common import json_error, ok


requests_bp = Blueprint("requests", __name__, url_prefix="/api/requests")


@requests_bp.route("", methods=["POST"])
def create_request():
    """
    Create a uniform request and reserve its stock.

    Request body:
    {
        "staff_id": int,
        "items": [{"uniform_item_id": int, "quantity": int}, ...],
        "note": str (optional)
    }

    Returns:
        201: Request created
        400: Invalid request
        404: Staff or uniform item not found
        409: Insufficient stock, allowance exceeded or cooldown active
    """
    try:
        draft = parse_request_draft(request.get_json(silent=True))
        result = request_service.create_request(draft.staff_id, draft.items, draft.note)
        return ok(result, 201)
    except Exception as e:
        return json_error(e, "Failed to create request")


@requests_bp.route("", methods=["GET"])
def list_requests():
    """
    List requests, newest first.

    Query parameters:
        status: Filter by status (REQUESTED, DISPATCHED, ARRIVED, COLLECTED)
        staff_id: Filter by staff member
        store_id: Filter by the staff member's store
    """
    try:
        filters = parse_request_filters(request.args)
        return ok({"items": request_service.list_requests(filters)})
    except Exception as e:
        return json_error(e, "Failed to list requests")


@requests_bp.route("/<int:request_id>", methods=["GET"])
def get_request(request_id: int):
    try:
        return ok(request_service.get_request_by_id(request_id))
    except Exception as e:
        return json_error(e, "Failed to load request")


@requests_bp.route("/<int:request_id>", methods=["PUT"])
def update_request_items(request_id: int):
    """
    Replace the items and note of a REQUESTED request.

    Request body:
    {
        "items": [{"uniform_item_id": int, "quantity": int}, ...],
        "note": str (optional)
    }
    """
    try:
        update = parse_request_items_update(request.get_json(silent=True))
        result = request_service.update_request_items(request_id, update.items, update.note)
        return ok(result)
    except Exception as e:
        return json_error(e, "Failed to edit request")


@requests_bp.route("/<int:request_id>", methods=["DELETE"])
def delete_request(request_id: int):
    try:
        return ok(request_service.delete_request(request_id))
    except Exception as e:
        return json_error(e, "Failed to delete request")


@requests_bp.route("/<int:request_id>/status", methods=["PATCH"])
def update_request_status(request_id: int):
    """
    Advance a request one lifecycle step.

    Request body:
    {
        "status": "DISPATCHED" | "ARRIVED" | "COLLECTED"
    }

    Returns:
        200: Status updated
        400: Unknown status
        404: Request not found
        409: Transition not allowed
    """
    try:
        data = parse_json_object(request.get_json(silent=True))
        result = request_service.update_request_status(request_id, data.get("status"))
        return ok(result)
    except Exception as e:
        return json_error(e, "Failed to update request status")
