# Overview: Annual allowance usage per staff member.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import UniformRequest, UniformRequestItem
from ..models.requests import REQUEST_STATUSES
from uniforms.time_utils import year_bounds


# Every stored request consumes allowance, COLLECTED included.
# Deleting a REQUESTED request is the only way to give allowance back.
ACTIVE_STATUSES = REQUEST_STATUSES


def used_allowance(staff_id: int, year: int, exclude_request_id: int | None = None) -> int:
    """
    Total quantity requested by a staff member in one UTC calendar year.

    Counts line items of active requests whose requested_at falls in
    [year-01-01, (year+1)-01-01). Pass exclude_request_id when re-checking an
    edit so the request being replaced is not counted twice.
    """
    start, end = year_bounds(year)
    q = (
        db.session.query(func.coalesce(func.sum(UniformRequestItem.quantity), 0))
        .join(UniformRequest, UniformRequest.id == UniformRequestItem.request_id)
        .filter(
            UniformRequest.staff_id == staff_id,
            UniformRequest.status.in_(ACTIVE_STATUSES),
            UniformRequest.requested_at >= start,
            UniformRequest.requested_at < end,
        )
    )
    if exclude_request_id is not None:
        q = q.filter(UniformRequest.id != exclude_request_id)

    return int(q.scalar() or 0)


def used_allowance_by_staff(year: int) -> dict[int, int]:
    """Same window as used_allowance(), for every staff member at once."""
    start, end = year_bounds(year)
    rows = (
        db.session.query(
            UniformRequest.staff_id,
            func.coalesce(func.sum(UniformRequestItem.quantity), 0),
        )
        .join(UniformRequestItem, UniformRequestItem.request_id == UniformRequest.id)
        .filter(
            UniformRequest.status.in_(ACTIVE_STATUSES),
            UniformRequest.requested_at >= start,
            UniformRequest.requested_at < end,
        )
        .group_by(UniformRequest.staff_id)
        .all()
    )
    return {staff_id: int(used or 0) for staff_id, used in rows}
