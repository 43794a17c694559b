from __future__ import annotations

from ..extensions import db
from uniforms.time_utils import to_utc_z


# Request status constants, in lifecycle order
REQUEST_STATUS_REQUESTED = "REQUESTED"
REQUEST_STATUS_DISPATCHED = "DISPATCHED"
REQUEST_STATUS_ARRIVED = "ARRIVED"
REQUEST_STATUS_COLLECTED = "COLLECTED"
REQUEST_STATUSES = (
    REQUEST_STATUS_REQUESTED,
    REQUEST_STATUS_DISPATCHED,
    REQUEST_STATUS_ARRIVED,
    REQUEST_STATUS_COLLECTED,
)


class UniformRequest(db.Model):
    """
    A staff member's request for one or more uniform items.

    LIFECYCLE (strictly linear, terminal at COLLECTED):
    1. REQUESTED: created; stock already reserved; items and note editable
    2. DISPATCHED: sent from the warehouse (dispatched_at set)
    3. ARRIVED: received at the store (arrived_at set)
    4. COLLECTED: handed to the staff member (collected_at set)

    Each stage timestamp is written once, on entry to that stage, and never cleared.
    Only REQUESTED requests may be edited or deleted.
    """
    __tablename__ = "uniform_requests"
    __table_args__ = (
        db.Index("ix_uniform_requests_staff_requested", "staff_id", "requested_at"),
        db.Index("ix_uniform_requests_status_requested", "status", "requested_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=REQUEST_STATUS_REQUESTED, index=True)
    note = db.Column(db.String(500), nullable=True)

    requested_at = db.Column(db.DateTime(timezone=True), nullable=False)
    dispatched_at = db.Column(db.DateTime(timezone=True), nullable=True)
    arrived_at = db.Column(db.DateTime(timezone=True), nullable=True)
    collected_at = db.Column(db.DateTime(timezone=True), nullable=True)

    staff = db.relationship("Staff", backref=db.backref("uniform_requests", lazy=True))
    items = db.relationship(
        "UniformRequestItem",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="UniformRequestItem.id",
    )

    def __repr__(self) -> str:
        return f"<UniformRequest id={self.id} staff_id={self.staff_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staff_id": self.staff_id,
            "status": self.status,
            "note": self.note,
            "requested_at": to_utc_z(self.requested_at),
            "dispatched_at": to_utc_z(self.dispatched_at),
            "arrived_at": to_utc_z(self.arrived_at),
            "collected_at": to_utc_z(self.collected_at),
        }


class UniformRequestItem(db.Model):
    """One line of a request. A uniform item appears at most once per request."""
    __tablename__ = "uniform_request_items"
    __table_args__ = (
        db.UniqueConstraint("request_id", "uniform_item_id", name="uq_uniform_request_items_request_item"),
        db.CheckConstraint("quantity > 0", name="ck_uniform_request_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey("uniform_requests.id"), nullable=False, index=True)
    uniform_item_id = db.Column(db.Integer, db.ForeignKey("uniform_items.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    request = db.relationship("UniformRequest", back_populates="items")
    uniform_item = db.relationship("UniformItem")

    def to_dict(self) -> dict:
        return {
            "uniform_item_id": self.uniform_item_id,
            "item_name": self.uniform_item.item_name if self.uniform_item else None,
            "size": self.uniform_item.size if self.uniform_item else None,
            "quantity": self.quantity,
        }
