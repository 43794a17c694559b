# backend/uniforms/services/request_service.py
"""
Uniform request lifecycle engine.

WHY: Staff request uniform items against a shared, limited stock. Every
request must respect the role's annual allowance and the per-item cooldown,
and must reserve stock so that two requests can never claim the same units.

LIFECYCLE:
1. REQUESTED: created; stock reserved; items and note may be edited or the
   request deleted (which releases the stock)
2. DISPATCHED: sent to the store
3. ARRIVED: received at the store
4. COLLECTED: handed to the staff member (terminal)

Status changes never touch stock or line items: stock was reserved when the
request was created.

CONCURRENCY:
- create/edit/delete each run inside one transaction(); any failure rolls
  back the header, the line items and every stock movement together.
- Stock is reserved with a conditional decrement whose rowcount is checked
  inside the transaction, closing the gap between the pre-check and commit.
- Edit and delete re-assert status == REQUESTED with a conditional UPDATE
  as the first statement of their transaction, so a request dispatched in
  the meantime never has its stock released.
- Allowance and cooldown are checked optimistically before the reservation
  and are NOT re-validated at commit. Two concurrent requests for the same
  staff member can both pass them; only stock is race-checked.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Sequence

from flask import current_app
from sqlalchemy import update
from sqlalchemy.orm import contains_eager

from ..extensions import db
from ..models import Store, Staff, UniformItem, UniformRequest, UniformRequestItem
from ..models.requests import (
    REQUEST_STATUS_REQUESTED,
    REQUEST_STATUS_DISPATCHED,
    REQUEST_STATUS_ARRIVED,
    REQUEST_STATUS_COLLECTED,
    REQUEST_STATUSES,
)
from ..errors import (
    AllowanceExceededError,
    CooldownActiveError,
    InsufficientStockError,
    IntegrityFaultError,
    InvalidStatusTransitionError,
    NotFoundError,
    RequestValidationError,
)
from ..validation import RequestFilters, RequestLine
from . import allowance_service, cooldown_service, inventory_service, staff_service
from .concurrency import transaction
from uniforms.time_utils import to_naive_utc, to_utc_z, utcnow


NOTE_MAX_LENGTH = 500

TRANSITION_INDEX = {status: index for index, status in enumerate(REQUEST_STATUSES)}

STATUS_TIMESTAMP_FIELD = {
    REQUEST_STATUS_DISPATCHED: "dispatched_at",
    REQUEST_STATUS_ARRIVED: "arrived_at",
    REQUEST_STATUS_COLLECTED: "collected_at",
}


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _require_request_id(request_id: Any) -> int:
    if not _is_positive_int(request_id):
        raise RequestValidationError("id must be a positive integer.")
    return request_id


def _resolve_now(now: datetime | None) -> datetime:
    return utcnow() if now is None else to_naive_utc(now)


def normalize_note(note: Any) -> str | None:
    """Trimmed note, or None when absent or blank."""
    if note is None:
        return None
    if not isinstance(note, str):
        raise RequestValidationError("note must be a string.")

    normalized = note.strip()
    if len(normalized) > NOTE_MAX_LENGTH:
        raise RequestValidationError(f"note must be {NOTE_MAX_LENGTH} characters or less.")
    return normalized or None


def _validate_lines(items: Sequence[RequestLine]) -> None:
    for line in items:
        if not _is_positive_int(line.uniform_item_id) or not _is_positive_int(line.quantity):
            raise RequestValidationError(
                "Each item must include uniform_item_id and positive integer quantity."
            )


def _reject_duplicates(items: Sequence[RequestLine]) -> None:
    seen: set[int] = set()
    for line in items:
        if line.uniform_item_id in seen:
            raise RequestValidationError(
                f"Duplicate uniform_item_id in request: {line.uniform_item_id}."
            )
        seen.add(line.uniform_item_id)


def _resolve_annual_limit(role_name: str) -> int:
    limit = staff_service.get_annual_limit(role_name)
    if limit is None:
        raise RequestValidationError("Staff role is not configured for allowance limits.")
    if limit < 0:
        raise RequestValidationError("Configured role allowance limit is invalid.")
    return limit


def _check_allowance(
    staff_id: int,
    year: int,
    items: Sequence[RequestLine],
    annual_limit: int,
    exclude_request_id: int | None = None,
) -> None:
    requested_total = sum(line.quantity for line in items)
    used = allowance_service.used_allowance(staff_id, year, exclude_request_id=exclude_request_id)
    if used + requested_total > annual_limit:
        raise AllowanceExceededError("Request exceeds allowance limit.")


def _check_cooldowns(
    staff_id: int,
    items: Sequence[RequestLine],
    cooldown_days: int,
    now: datetime,
    exclude_request_id: int | None = None,
) -> None:
    for line in items:
        if cooldown_service.is_under_cooldown(
            staff_id,
            line.uniform_item_id,
            cooldown_days,
            now,
            exclude_request_id=exclude_request_id,
        ):
            raise CooldownActiveError(f"Cooldown active for uniform item: {line.uniform_item_id}.")


def _load_uniform_items(items: Sequence[RequestLine]) -> dict[int, UniformItem]:
    found = {}
    for line in items:
        uniform_item = inventory_service.get_uniform_item(line.uniform_item_id)
        if not uniform_item:
            raise NotFoundError(f"Uniform item not found: {line.uniform_item_id}.")
        found[line.uniform_item_id] = uniform_item
    return found


def _check_stock(items: Sequence[RequestLine]) -> None:
    """Compare requested quantities against the stock currently in the database."""
    for line in items:
        on_hand = inventory_service.get_stock_on_hand(line.uniform_item_id)
        if on_hand is None:
            raise NotFoundError(f"Uniform item not found: {line.uniform_item_id}.")
        if line.quantity > on_hand:
            raise InsufficientStockError(f"Insufficient stock for uniform item: {line.uniform_item_id}.")


def _reserve_stock(items: Iterable[RequestLine]) -> None:
    for line in items:
        changed = inventory_service.decrement_stock_if_available(line.uniform_item_id, line.quantity)
        if changed != 1:
            raise InsufficientStockError(f"Insufficient stock for uniform item: {line.uniform_item_id}.")


def _release_stock(request_id: int) -> None:
    """Give back every unit reserved by a request's current line items."""
    lines = (
        db.session.query(UniformRequestItem)
        .filter_by(request_id=request_id)
        .order_by(UniformRequestItem.id.asc())
        .all()
    )
    for line in lines:
        changed = inventory_service.increment_stock(line.uniform_item_id, line.quantity)
        if changed != 1:
            current_app.logger.error(
                "Stock release for request %s touched %s rows for uniform item %s",
                request_id,
                changed,
                line.uniform_item_id,
            )
            raise IntegrityFaultError(f"Failed to release stock for item: {line.uniform_item_id}.")


def _hold_requested(request_id: int, message: str) -> None:
    """
    Re-assert REQUESTED inside the transaction before any stock moves.

    A no-op conditional UPDATE: if a status change committed after the
    caller's pre-check, no row matches and the edit or delete is refused.
    """
    result = db.session.execute(
        update(UniformRequest)
        .where(
            UniformRequest.id == request_id,
            UniformRequest.status == REQUEST_STATUS_REQUESTED,
        )
        .values(status=REQUEST_STATUS_REQUESTED)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise RequestValidationError(message)


def _get_request_or_404(request_id: int) -> UniformRequest:
    request = db.session.get(UniformRequest, request_id)
    if not request:
        raise NotFoundError("Request not found.")
    return request


def create_request(
    staff_id: Any,
    items: Sequence[RequestLine],
    note: Any = None,
    *,
    now: datetime | None = None,
) -> dict:
    """
    Create a REQUESTED request and reserve its stock.

    Checks run in a fixed order and the first failure wins:
    shape, duplicates, note, staff, items, stock, role limit, allowance, cooldown.
    Only then are the header, the reservations and the line items written,
    in that order, as a single transaction.

    Args:
        staff_id: Owning staff member
        items: Requested lines, at most one per uniform item
        note: Optional free-text note (<= 500 characters after trimming)
        now: Clock override; defaults to the current UTC time

    Returns:
        dict: id, staff_id, status, note, requested_at

    Raises:
        RequestValidationError, NotFoundError, InsufficientStockError,
        AllowanceExceededError, CooldownActiveError
    """
    if not _is_positive_int(staff_id) or not items:
        raise RequestValidationError("staff_id is required and items must be a non-empty array.")
    _validate_lines(items)
    _reject_duplicates(items)
    normalized_note = normalize_note(note)

    staff = staff_service.get_staff_by_id(staff_id)
    if not staff:
        raise NotFoundError("Staff not found.")

    uniform_items = _load_uniform_items(items)
    for line in items:
        if line.quantity > uniform_items[line.uniform_item_id].stock_on_hand:
            raise InsufficientStockError(f"Insufficient stock for uniform item: {line.uniform_item_id}.")

    annual_limit = _resolve_annual_limit(staff.role_name)
    now = _resolve_now(now)
    _check_allowance(staff.id, now.year, items, annual_limit)

    cooldown_days = staff_service.effective_cooldown_days(staff.role_name)
    _check_cooldowns(staff.id, items, cooldown_days, now)

    with transaction():
        request = UniformRequest(
            staff_id=staff.id,
            status=REQUEST_STATUS_REQUESTED,
            note=normalized_note,
            requested_at=now,
        )
        db.session.add(request)
        db.session.flush()  # Get ID

        # Re-checked here: stock may have moved since the pre-check above
        _reserve_stock(items)

        for line in items:
            db.session.add(
                UniformRequestItem(
                    request_id=request.id,
                    uniform_item_id=line.uniform_item_id,
                    quantity=line.quantity,
                )
            )

        result = {
            "id": request.id,
            "staff_id": request.staff_id,
            "status": request.status,
            "note": request.note,
            "requested_at": to_utc_z(request.requested_at),
        }

    current_app.logger.info(
        "Created uniform request %s for staff %s (%s units)",
        result["id"],
        staff.id,
        sum(line.quantity for line in items),
    )
    return result


def update_request_items(
    request_id: Any,
    items: Sequence[RequestLine],
    note: Any = None,
    *,
    now: datetime | None = None,
) -> dict:
    """
    Replace the line items and note of a REQUESTED request.

    The old reservation is released first, then the new item set is checked
    against the released stock, the allowance (excluding this request) and
    the cooldown (ignoring this request), and finally reserved again. All of
    it is one transaction; on failure the original reservation is restored.

    Returns:
        dict: the refreshed request detail (see get_request_by_id)
    """
    request_id = _require_request_id(request_id)
    if not items:
        raise RequestValidationError("items must be a non-empty array.")
    _validate_lines(items)
    _reject_duplicates(items)
    normalized_note = normalize_note(note)

    request = _get_request_or_404(request_id)
    if request.status != REQUEST_STATUS_REQUESTED:
        raise RequestValidationError("Only REQUESTED requests can be edited.")

    staff = staff_service.get_staff_by_id(request.staff_id)
    if not staff:
        raise NotFoundError("Staff not found.")

    annual_limit = _resolve_annual_limit(staff.role_name)
    now = _resolve_now(now)
    cooldown_days = staff_service.effective_cooldown_days(staff.role_name)

    with transaction():
        _hold_requested(request_id, "Only REQUESTED requests can be edited.")
        _release_stock(request_id)

        _load_uniform_items(items)
        _check_stock(items)
        _check_allowance(staff.id, now.year, items, annual_limit, exclude_request_id=request_id)
        _check_cooldowns(staff.id, items, cooldown_days, now, exclude_request_id=request_id)

        _reserve_stock(items)

        # Old lines must be gone before re-inserting under the (request, item) unique key
        request.items.clear()
        db.session.flush()
        for line in items:
            request.items.append(
                UniformRequestItem(uniform_item_id=line.uniform_item_id, quantity=line.quantity)
            )

        request.note = normalized_note

    current_app.logger.info("Edited uniform request %s (%s lines)", request_id, len(items))
    return get_request_by_id(request_id)


def delete_request(request_id: Any) -> dict:
    """Delete a REQUESTED request, releasing its reserved stock."""
    request_id = _require_request_id(request_id)

    request = _get_request_or_404(request_id)
    if request.status != REQUEST_STATUS_REQUESTED:
        raise RequestValidationError("Only REQUESTED requests can be deleted.")

    with transaction():
        _hold_requested(request_id, "Only REQUESTED requests can be deleted.")
        _release_stock(request_id)
        # Line items go with the header (delete-orphan cascade)
        db.session.delete(request)

    current_app.logger.info("Deleted uniform request %s", request_id)
    return {"id": request_id, "deleted": True}


def update_request_status(request_id: Any, status: Any, *, now: datetime | None = None) -> dict:
    """
    Advance a request exactly one step along the lifecycle.

    REQUESTED -> DISPATCHED -> ARRIVED -> COLLECTED. Skipping, repeating or
    going back is rejected, as is any change once COLLECTED. The stage
    timestamp for the new status is set to now.
    """
    if not status or status not in REQUEST_STATUSES:
        raise RequestValidationError("status is required and must be a valid value.")
    request_id = _require_request_id(request_id)

    request = _get_request_or_404(request_id)

    current_index = TRANSITION_INDEX.get(request.status)
    next_index = TRANSITION_INDEX[status]
    if (
        request.status == REQUEST_STATUS_COLLECTED
        or current_index is None
        or next_index != current_index + 1
    ):
        raise InvalidStatusTransitionError(
            f"Invalid status transition from {request.status} to {status}."
        )

    now = _resolve_now(now)
    with transaction():
        request.status = status
        setattr(request, STATUS_TIMESTAMP_FIELD[status], now)
        result = {"id": request.id, "status": request.status}

    current_app.logger.info("Uniform request %s moved to %s", request_id, status)
    return result


def get_request_by_id(request_id: Any) -> dict:
    request_id = _require_request_id(request_id)

    row = (
        db.session.query(UniformRequest, Staff.name, Store.name)
        .join(Staff, Staff.id == UniformRequest.staff_id)
        .join(Store, Store.id == Staff.store_id)
        .filter(UniformRequest.id == request_id)
        .first()
    )
    if row is None:
        raise NotFoundError("Request not found.")
    request, staff_name, store_name = row

    lines = (
        db.session.query(UniformRequestItem)
        .join(UniformRequestItem.uniform_item)
        .options(contains_eager(UniformRequestItem.uniform_item))
        .filter(UniformRequestItem.request_id == request_id)
        .order_by(UniformRequestItem.id.asc())
        .all()
    )

    return {
        **request.to_dict(),
        "staff_name": staff_name,
        "store_name": store_name,
        "items": [line.to_dict() for line in lines],
    }


def list_requests(filters: RequestFilters | None = None) -> list[dict]:
    """Requests newest first, optionally filtered by status, staff and staff's store."""
    filters = filters or RequestFilters()

    query = (
        db.session.query(
            UniformRequest.id,
            UniformRequest.staff_id,
            Staff.name,
            Store.name,
            UniformRequest.status,
            UniformRequest.requested_at,
        )
        .join(Staff, Staff.id == UniformRequest.staff_id)
        .join(Store, Store.id == Staff.store_id)
    )

    if filters.status:
        query = query.filter(UniformRequest.status == filters.status)
    if filters.staff_id is not None:
        query = query.filter(UniformRequest.staff_id == filters.staff_id)
    if filters.store_id is not None:
        query = query.filter(Staff.store_id == filters.store_id)

    rows = query.order_by(UniformRequest.requested_at.desc(), UniformRequest.id.desc()).all()
    return [
        {
            "id": request_id,
            "staff_id": staff_id,
            "staff_name": staff_name,
            "store_name": store_name,
            "status": status,
            "requested_at": to_utc_z(requested_at),
        }
        for request_id, staff_id, staff_name, store_name, status, requested_at in rows
    ]
