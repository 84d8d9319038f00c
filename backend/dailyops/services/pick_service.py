# Overview: Service-layer operations for worker pick/remaining tracking.

"""
Worker Pick Tracker

WHY: Each worker takes stock out in the morning and brings the unsold part
back at night. The difference is what they could have delivered.

LIFECYCLE (per worker, inventory row, day):
1. Morning: record_picked upserts picked_qty (may be corrected any number of
   times, but never below a remaining_qty already recorded)
2. Night: record_remaining sets remaining_qty, which requires picked_qty
   and may not exceed it

BATCHES: every call carries a list of items for one worker. The whole list
is one transaction; one bad item fails the call and nothing is applied.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from ..extensions import db
from ..models import InventoryRecord, Worker, WorkerInventoryRecord
from ..validation import (
    NotFoundError,
    ValidationError,
    coerce_int,
    require_items,
    require_non_negative_int,
    require_positive_int,
)
from .concurrency import atomic, lock_for_update
from .inventory_service import get_inventory_record
from .upsert import upsert_keyed
from dailyops.time_utils import business_day, utcnow


logger = logging.getLogger(__name__)


def require_active_worker(worker_id: int) -> Worker:
    worker = db.session.query(Worker).filter_by(id=worker_id, is_active=True).first()
    if worker is None:
        raise NotFoundError(f"Worker {worker_id} not found or inactive")
    return worker


def _parse_item(item: dict) -> tuple[int, int]:
    inventory_id = coerce_int(item.get("inventory_id"), "inventory_id")
    quantity = require_non_negative_int(item.get("quantity"), f"quantity for inventory {inventory_id}")
    return inventory_id, quantity


def _product_label(inventory_id: int) -> str:
    inventory = db.session.get(InventoryRecord, inventory_id)
    if inventory is not None and inventory.product is not None:
        return f'"{inventory.product.name}"'
    return f"inventory {inventory_id}"


def record_picked(*, worker_id: int, items, day: date | None = None) -> list[WorkerInventoryRecord]:
    """
    Morning: set the quantity a worker picked for each inventory row.

    Args:
        worker_id: Active worker picking the stock
        items: [{"inventory_id": int, "quantity": int >= 0}, ...]
        day: Business day (default: today)

    Returns:
        The upserted WorkerInventoryRecord rows, in item order

    Raises:
        ValidationError: empty batch, bad quantity, inventory for another day
        NotFoundError: worker or inventory row missing
    """
    batch = require_items(items, "items")
    target = day or business_day()

    with atomic():
        require_active_worker(worker_id)
        records = []
        for item in batch:
            inventory_id, quantity = _parse_item(item)
            inventory = get_inventory_record(inventory_id)
            if inventory.business_day != target:
                raise ValidationError(
                    f"Inventory record {inventory_id} is for {inventory.business_day.isoformat()}, "
                    f"not {target.isoformat()}"
                )

            existing = lock_for_update(
                db.session.query(WorkerInventoryRecord).filter_by(
                    worker_id=worker_id, inventory_id=inventory_id, activity_day=target
                )
            ).first()
            if existing is not None and existing.remaining_qty is not None and quantity < existing.remaining_qty:
                raise ValidationError(
                    f"Picked quantity ({quantity}) cannot be less than remaining quantity "
                    f"({existing.remaining_qty}) already recorded for inventory {inventory_id}"
                )

            record = upsert_keyed(
                WorkerInventoryRecord,
                {"worker_id": worker_id, "inventory_id": inventory_id, "activity_day": target},
                update_fields={"picked_qty": quantity, "updated_at": utcnow()},
            )
            records.append(record)
            logger.debug("Picked worker=%s inventory=%s qty=%s", worker_id, inventory_id, quantity)

    logger.info("Worker %s recorded picked quantities for %s products", worker_id, len(records))
    return records


def record_remaining(*, worker_id: int, items, day: date | None = None) -> list[WorkerInventoryRecord]:
    """
    Night: set the unsold quantity a worker brought back.

    Raises:
        ValidationError: empty batch, bad quantity, remaining > picked
        NotFoundError: worker missing, or nothing picked for the product today
    """
    batch = require_items(items, "items")
    target = day or business_day()

    with atomic():
        require_active_worker(worker_id)
        records = []
        for item in batch:
            inventory_id, quantity = _parse_item(item)

            query = db.session.query(WorkerInventoryRecord).filter_by(
                worker_id=worker_id, inventory_id=inventory_id, activity_day=target
            )
            record = lock_for_update(query).first()

            if record is None or record.picked_qty is None:
                raise NotFoundError(
                    f"No picked quantity record found for worker {worker_id} and product "
                    f"{_product_label(inventory_id)} today. Please update picked quantity first."
                )

            if quantity > record.picked_qty:
                raise ValidationError(
                    f"Remaining quantity ({quantity}) cannot be greater than picked quantity "
                    f"({record.picked_qty}) for inventory {inventory_id}"
                )

            record.remaining_qty = quantity
            record.updated_at = utcnow()
            records.append(record)

    logger.info("Worker %s recorded remaining quantities for %s products", worker_id, len(records))
    return records


def get_worker_daily_activity(worker_id: int, day: date | None = None) -> list[WorkerInventoryRecord]:
    """All pick rows for a worker on a day, most recently updated first."""
    target = day or business_day()
    return (
        db.session.query(WorkerInventoryRecord)
        .filter_by(worker_id=worker_id, activity_day=target)
        .order_by(WorkerInventoryRecord.updated_at.desc(), WorkerInventoryRecord.id.desc())
        .all()
    )


def get_worker_daily_summary(worker_id: int, day: date | None = None) -> dict:
    target = day or business_day()
    activities = get_worker_daily_activity(worker_id, target)

    completed = [a for a in activities if a.remaining_qty is not None]
    distributed = sum(max(0, (a.picked_qty or 0) - (a.remaining_qty or 0)) for a in activities)

    return {
        "worker_id": worker_id,
        "day": target.isoformat(),
        "total_products": len(activities),
        "total_picked_qty": sum(a.picked_qty or 0 for a in activities),
        "total_remaining_qty": sum(a.remaining_qty or 0 for a in activities),
        "completed_products": len(completed),
        "pending_products": len(activities) - len(completed),
        "distributed_qty": distributed,
        "completion_pct": round(len(completed) * 100 / len(activities)) if activities else 0,
    }


def get_worker_activity_history(worker_id: int, days=7, *, today: date | None = None) -> list[dict]:
    """
    Pick rows for the last `days` days (today included), grouped by day,
    newest day first. Days with no rows are left out.
    """
    span = require_positive_int(days, "days")
    end = today or business_day()
    start = end - timedelta(days=span - 1)

    rows = (
        db.session.query(WorkerInventoryRecord)
        .filter(
            WorkerInventoryRecord.worker_id == worker_id,
            WorkerInventoryRecord.activity_day >= start,
            WorkerInventoryRecord.activity_day <= end,
        )
        .order_by(WorkerInventoryRecord.activity_day.desc(), WorkerInventoryRecord.id)
        .all()
    )

    history: list[dict] = []
    for row in rows:
        if not history or history[-1]["day"] != row.activity_day.isoformat():
            history.append({"day": row.activity_day.isoformat(), "activities": []})
        history[-1]["activities"].append(row.to_dict())
    return history
