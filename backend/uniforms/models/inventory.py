from __future__ import annotations

from ..extensions import db
from uniforms.time_utils import to_utc_z


class UniformItem(db.Model):
    """
    A sized uniform SKU with its on-hand stock.

    STOCK INVARIANT:
    stock_on_hand never goes negative. It is only ever decremented by a
    conditional UPDATE (... WHERE stock_on_hand >= :qty) whose rowcount
    decides success, so concurrent reservations cannot oversell.
    """
    __tablename__ = "uniform_items"
    __table_args__ = (
        db.UniqueConstraint("sku", "size", name="uq_uniform_items_sku_size"),
        db.CheckConstraint("stock_on_hand >= 0", name="ck_uniform_items_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), nullable=False)
    size = db.Column(db.String(32), nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    stock_on_hand = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<UniformItem id={self.id} sku={self.sku!r} size={self.size!r} stock={self.stock_on_hand}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "size": self.size,
            "item_name": self.item_name,
            "stock_on_hand": self.stock_on_hand,
            "created_at": to_utc_z(self.created_at),
        }
