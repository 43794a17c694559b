# Overview: Converts untrusted request bodies into typed inputs for the request engine.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import RequestValidationError


@dataclass(frozen=True)
class RequestLine:
    uniform_item_id: int
    quantity: int


@dataclass(frozen=True)
class RequestDraft:
    staff_id: int
    items: tuple[RequestLine, ...]
    note: Any = None


@dataclass(frozen=True)
class RequestItemsUpdate:
    items: tuple[RequestLine, ...]
    note: Any = None


@dataclass(frozen=True)
class RequestFilters:
    status: str | None = None
    staff_id: int | None = None
    store_id: int | None = None


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion.

    Accepts real ints and plain digit strings (optional leading minus).
    Rejects booleans, floats, decimals and scientific notation.
    """
    if isinstance(value, bool):
        raise RequestValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise RequestValidationError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise RequestValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise RequestValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise RequestValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise RequestValidationError(f"{field} must be an integer, not a decimal")
    raise RequestValidationError(f"{field} must be an integer")


def _optional_int(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    return coerce_int(value, field)


def parse_json_object(payload: Any) -> dict:
    """A JSON body must be an object; a missing body reads as empty."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise RequestValidationError("Invalid JSON payload")
    return payload


def _parse_lines(raw_items: Any) -> tuple[RequestLine, ...]:
    if not isinstance(raw_items, list):
        raise RequestValidationError("items must be an array.")

    lines = []
    for raw in raw_items:
        if not isinstance(raw, dict) or "uniform_item_id" not in raw or "quantity" not in raw:
            raise RequestValidationError("Each item must include uniform_item_id and quantity.")
        # quantity is never coerced from text
        quantity = raw["quantity"]
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise RequestValidationError("Each item must include uniform_item_id and positive integer quantity.")
        lines.append(
            RequestLine(
                uniform_item_id=coerce_int(raw["uniform_item_id"], "uniform_item_id"),
                quantity=quantity,
            )
        )
    return tuple(lines)


def _parse_note(payload: dict) -> Any:
    # Type and length are domain rules checked by the engine
    return payload.get("note")


def parse_request_draft(payload: Any) -> RequestDraft:
    """Shape check for POST /api/requests."""
    payload = parse_json_object(payload)
    if "staff_id" not in payload or payload["staff_id"] is None:
        raise RequestValidationError("staff_id is required and items must be an array.")
    return RequestDraft(
        staff_id=coerce_int(payload["staff_id"], "staff_id"),
        items=_parse_lines(payload.get("items")),
        note=_parse_note(payload),
    )


def parse_request_items_update(payload: Any) -> RequestItemsUpdate:
    """Shape check for PUT /api/requests/<id>."""
    payload = parse_json_object(payload)
    return RequestItemsUpdate(
        items=_parse_lines(payload.get("items")),
        note=_parse_note(payload),
    )


def parse_request_filters(args) -> RequestFilters:
    status = (args.get("status") or "").strip() or None
    return RequestFilters(
        status=status,
        staff_id=_optional_int(args.get("staff_id"), "staff_id"),
        store_id=_optional_int(args.get("store_id"), "store_id"),
    )


def parse_non_negative_int(value: Any, field: str) -> int:
    if value is None:
        raise RequestValidationError(f"{field} must be an integer >= 0.")
    parsed = coerce_int(value, field)
    if parsed < 0:
        raise RequestValidationError(f"{field} must be an integer >= 0.")
    return parsed
