# Overview: Cooldown between two requests for the same uniform item by the same staff member.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import UniformRequest, UniformRequestItem
from uniforms.time_utils import add_days, coerce_timestamp, to_naive_utc


@dataclass(frozen=True)
class CooldownAnchor:
    request_id: int
    anchor_at: object


def _anchor_column():
    # Collected requests restart the clock at hand-over; others count from request time.
    # Selected as text so an unreadable stored value cannot break the query.
    return func.coalesce(
        UniformRequest.collected_at,
        UniformRequest.requested_at,
        type_=db.String,
    )


def latest_cooldown_anchor(
    staff_id: int,
    uniform_item_id: int,
    exclude_request_id: int | None = None,
) -> CooldownAnchor | None:
    """Most recent request by this staff member containing this item, by anchor then id."""
    anchor = _anchor_column().label("cooldown_anchor_at")
    q = (
        db.session.query(UniformRequest.id, anchor)
        .join(UniformRequestItem, UniformRequestItem.request_id == UniformRequest.id)
        .filter(
            UniformRequest.staff_id == staff_id,
            UniformRequestItem.uniform_item_id == uniform_item_id,
        )
    )
    if exclude_request_id is not None:
        q = q.filter(UniformRequest.id != exclude_request_id)

    row = q.order_by(anchor.desc(), UniformRequest.id.desc()).first()
    if row is None:
        return None
    return CooldownAnchor(request_id=row[0], anchor_at=row[1])


def cooldown_until(anchor_at, cooldown_days: int) -> datetime | None:
    """End of the cooldown window, or None when the anchor cannot be read."""
    try:
        anchor = coerce_timestamp(anchor_at)
    except ValueError:
        return None
    if anchor is None:
        return None
    return add_days(anchor, cooldown_days)


def is_under_cooldown(
    staff_id: int,
    uniform_item_id: int,
    cooldown_days: int,
    now: datetime,
    exclude_request_id: int | None = None,
) -> bool:
    """
    True while now < anchor + cooldown_days.

    No previous request, or an anchor that cannot be parsed, means no cooldown.
    """
    latest = latest_cooldown_anchor(staff_id, uniform_item_id, exclude_request_id)
    if latest is None:
        return False

    until = cooldown_until(latest.anchor_at, cooldown_days)
    if until is None:
        return False

    return to_naive_utc(now) < until
