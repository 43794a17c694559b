# Overview: Service-layer operations for uniform stock; the only place stock counts change.

# backend/uniforms/services/inventory_service.py

from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.util import identity_key

from ..extensions import db
from ..models import UniformItem
from ..errors import NotFoundError, RequestValidationError
from ..validation import parse_non_negative_int
from .concurrency import transaction
"""
Stock Invariants (authoritative)

- stock_on_hand is a plain counter on UniformItem and never goes negative.
- The ONLY way to reserve stock is decrement_stock_if_available(), a single
  conditional UPDATE:
      UPDATE uniform_items SET stock_on_hand = stock_on_hand - :qty
      WHERE id = :id AND stock_on_hand >= :qty
  Its rowcount is the authority on success (1) or failure (0). A read-then-write
  would race with concurrent requests and is not used anywhere.
- increment_stock() releases a reservation and must affect exactly one row.
- Neither function commits; callers run them inside services.concurrency.transaction().
- Counts are read back with get_stock_on_hand(), which always hits the database.
"""


DEFAULT_LOW_STOCK_THRESHOLD = 5


def _expire_cached_stock(uniform_item_id: int) -> None:
    # Bulk UPDATEs bypass the identity map; drop any stale in-session count
    cached = db.session.identity_map.get(identity_key(UniformItem, uniform_item_id))
    if cached is not None:
        db.session.expire(cached, ["stock_on_hand"])


def get_uniform_item(uniform_item_id: int) -> UniformItem | None:
    return db.session.get(UniformItem, uniform_item_id)


def get_stock_on_hand(uniform_item_id: int) -> int | None:
    return db.session.execute(
        select(UniformItem.stock_on_hand).where(UniformItem.id == uniform_item_id)
    ).scalar()


def decrement_stock_if_available(uniform_item_id: int, quantity: int) -> int:
    """Reserve stock atomically. Returns rows affected (0 means not enough stock)."""
    result = db.session.execute(
        update(UniformItem)
        .where(
            UniformItem.id == uniform_item_id,
            UniformItem.stock_on_hand >= quantity,
        )
        .values(stock_on_hand=UniformItem.stock_on_hand - quantity)
        .execution_options(synchronize_session=False)
    )
    _expire_cached_stock(uniform_item_id)
    return result.rowcount


def increment_stock(uniform_item_id: int, quantity: int) -> int:
    """Release previously reserved stock. Returns rows affected."""
    result = db.session.execute(
        update(UniformItem)
        .where(UniformItem.id == uniform_item_id)
        .values(stock_on_hand=UniformItem.stock_on_hand + quantity)
        .execution_options(synchronize_session=False)
    )
    _expire_cached_stock(uniform_item_id)
    return result.rowcount


def list_uniform_items(low_stock_threshold: int | None = None) -> list[dict]:
    if low_stock_threshold is None:
        low_stock_threshold = current_app.config.get("LOW_STOCK_THRESHOLD", DEFAULT_LOW_STOCK_THRESHOLD)

    items = db.session.query(UniformItem).order_by(UniformItem.id.asc()).all()
    return [
        {**item.to_dict(), "is_low_stock": item.stock_on_hand <= low_stock_threshold}
        for item in items
    ]


def create_uniform_item(sku: str, size: str, item_name: str, stock_on_hand=0) -> UniformItem:
    sku = (sku or "").strip()
    size = (size or "").strip()
    item_name = (item_name or "").strip()
    if not sku or not size or not item_name:
        raise RequestValidationError("sku, size and item_name are required.")
    stock = parse_non_negative_int(stock_on_hand, "stock_on_hand")

    try:
        with transaction():
            item = UniformItem(sku=sku, size=size, item_name=item_name, stock_on_hand=stock)
            db.session.add(item)
    except IntegrityError:
        raise RequestValidationError(f"Uniform item {sku} ({size}) already exists.")
    return item


def set_stock_on_hand(uniform_item_id: int, stock_on_hand) -> UniformItem:
    """Administrative stock count (e.g. after a physical count). Not used by requests."""
    stock = parse_non_negative_int(stock_on_hand, "stock_on_hand")

    with transaction():
        item = get_uniform_item(uniform_item_id)
        if not item:
            raise NotFoundError(f"Uniform item not found: {uniform_item_id}.")
        item.stock_on_hand = stock
    return item
