# Overview: Service-layer operations for the depot inventory ledger (admin receiving and day-end stock).

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import func

from ..extensions import db
from ..models import InventoryRecord, WorkerInventoryRecord
from ..validation import ConflictError, NotFoundError, ValidationError, require_non_negative_int
from .concurrency import atomic, lock_for_update
from dailyops.time_utils import business_day, utcnow

"""
Inventory Ledger Invariants (authoritative)

- One InventoryRecord per (product_id, business_day).
- received_qty is set once by admin; a second write is a conflict.
- remaining_qty is set once at day end and may not exceed the quantity
  workers picked for that product-day (sum of each worker's picked_qty).
"""

logger = logging.getLogger(__name__)


def get_inventory_record(inventory_id: int) -> InventoryRecord:
    record = db.session.get(InventoryRecord, inventory_id)
    if record is None:
        raise NotFoundError(f"Inventory record {inventory_id} not found")
    return record


def get_inventory_for_product(product_id: int, day: date, *, lock: bool = False) -> InventoryRecord:
    query = db.session.query(InventoryRecord).filter_by(product_id=product_id, business_day=day)
    if lock:
        query = lock_for_update(query)
    record = query.first()
    if record is None:
        raise NotFoundError(f"No inventory record found for product {product_id} on {day.isoformat()}")
    return record


def get_picked_total(inventory_id: int, day: date) -> int | None:
    """Sum of picked_qty across workers, or None when nobody has picked yet."""
    total = (
        db.session.query(func.sum(WorkerInventoryRecord.picked_qty))
        .filter(
            WorkerInventoryRecord.inventory_id == inventory_id,
            WorkerInventoryRecord.activity_day == day,
            WorkerInventoryRecord.picked_qty.isnot(None),
        )
        .scalar()
    )
    return int(total) if total is not None else None


def record_received_quantity(
    *,
    product_id: int,
    quantity,
    actor: str,
    day: date | None = None,
) -> InventoryRecord:
    """
    Admin input: stock that arrived at the depot for the day.

    Raises:
        ValidationError: negative or non-integer quantity
        NotFoundError: demand has not been stored for the product-day
        ConflictError: received quantity already recorded
    """
    qty = require_non_negative_int(quantity, "received_quantity")
    target = day or business_day()

    with atomic():
        record = get_inventory_for_product(product_id, target, lock=True)
        if record.received_qty is not None:
            raise ConflictError(
                f"Received quantity for product {product_id} on {target.isoformat()} is already recorded"
            )
        record.received_qty = qty
        record.last_updated_by = actor
        record.last_updated_at = utcnow()

    logger.info("Recorded received quantity product=%s day=%s qty=%s by=%s", product_id, target, qty, actor)
    return record


def record_depot_remaining(
    *,
    product_id: int,
    quantity,
    actor: str,
    day: date | None = None,
) -> InventoryRecord:
    """
    Day-end input: stock left at the depot.

    Raises:
        ValidationError: negative quantity, or more than workers picked
        NotFoundError: no inventory row for the product-day
        ConflictError: remaining quantity already recorded
    """
    qty = require_non_negative_int(quantity, "remaining_quantity")
    target = day or business_day()

    with atomic():
        record = get_inventory_for_product(product_id, target, lock=True)
        if record.remaining_qty is not None:
            raise ConflictError(
                f"Remaining quantity for product {product_id} on {target.isoformat()} is already recorded"
            )
        picked = get_picked_total(record.id, target)
        if picked is not None and qty > picked:
            raise ValidationError(
                f"remaining_quantity ({qty}) cannot be greater than picked quantity ({picked}) "
                f"for product {product_id}"
            )
        record.remaining_qty = qty
        record.last_updated_by = actor
        record.last_updated_at = utcnow()

    logger.info("Recorded depot remaining product=%s day=%s qty=%s by=%s", product_id, target, qty, actor)
    return record


def get_inventory_dates() -> list[str]:
    """Business days that have at least one inventory row, newest first."""
    rows = (
        db.session.query(InventoryRecord.business_day)
        .distinct()
        .order_by(InventoryRecord.business_day.desc())
        .all()
    )
    return [row.business_day.isoformat() for row in rows]
