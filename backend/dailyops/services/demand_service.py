# Overview: Service-layer operations for daily product demand; feeds the inventory ledger.

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy import func, or_

from ..extensions import db
from ..models import CustomerProduct, InventoryRecord, Product
from .concurrency import atomic
from .upsert import upsert_keyed
from dailyops.time_utils import business_day, day_window, utcnow

"""
Demand Invariants (authoritative)

- Demand for a product on a day is SUM(quantity) over subscriptions active
  at as_of: from_date <= as_of, and thru_date IS NULL or thru_date > as_of.
  Today is evaluated at the current time, any other day at its midnight.
- Demand is stored as InventoryRecord.ordered_qty, one row per product per day.
- Recalculation only ever rewrites ordered_qty. received_qty and
  remaining_qty belong to the admin and survive recalculation.
- Relation changes call recalculate_demand; demand code never touches
  relations.
"""

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


def calculate_product_demand(product_id: int, as_of: datetime | None = None) -> int:
    """Total subscribed quantity for a product at as_of (default: now)."""
    compare_at = as_of or utcnow()
    total = (
        db.session.query(func.coalesce(func.sum(CustomerProduct.quantity), 0))
        .filter(
            CustomerProduct.product_id == product_id,
            CustomerProduct.from_date <= compare_at,
            or_(CustomerProduct.thru_date.is_(None), CustomerProduct.thru_date > compare_at),
        )
        .scalar()
    )
    return int(total or 0)


def _demand_as_of(day: date) -> datetime:
    # Today is evaluated at the current time, any other day at its midnight
    now = utcnow()
    start, end = day_window(day)
    return now if start <= now < end else start


def _write_demand(product_id: int, day: date, actor: str) -> InventoryRecord:
    demand = calculate_product_demand(product_id, as_of=_demand_as_of(day))
    return upsert_keyed(
        InventoryRecord,
        {"product_id": product_id, "business_day": day},
        update_fields={
            "ordered_qty": demand,
            "last_updated_by": actor,
            "last_updated_at": utcnow(),
        },
    )


def recalculate_demand(product_id: int, day: date | None = None, actor: str = SYSTEM_ACTOR) -> InventoryRecord:
    """
    Recompute ordered_qty for one product on one day.

    Runs inside the caller's transaction; the caller commits.
    """
    target = day or business_day()
    record = _write_demand(product_id, target, actor)
    logger.info("Recalculated demand product=%s day=%s ordered_qty=%s", product_id, target, record.ordered_qty)
    return record


def store_daily_demand(day: date | None = None, actor: str = SYSTEM_ACTOR) -> int:
    """
    Write today's (or day's) ordered_qty for every active product.

    Safe to call repeatedly: rows are upserted, never duplicated.
    Returns the number of products processed.
    """
    target = day or business_day()
    with atomic():
        product_ids = [
            pid for (pid,) in db.session.query(Product.id).filter(Product.is_active.is_(True)).order_by(Product.id)
        ]
        for product_id in product_ids:
            _write_demand(product_id, target, actor)

    logger.info("Stored daily demand day=%s products=%s", target, len(product_ids))
    return len(product_ids)


def get_daily_inventory(day: date | None = None, actor: str = SYSTEM_ACTOR) -> tuple[list[InventoryRecord], bool]:
    """
    Inventory rows for a day, highest demand first.

    When the day has no rows yet, demand is calculated and stored first.
    Returns (records, was_calculated).
    """
    target = day or business_day()

    def _load() -> list[InventoryRecord]:
        return (
            db.session.query(InventoryRecord)
            .filter(InventoryRecord.business_day == target)
            .order_by(InventoryRecord.ordered_qty.desc(), InventoryRecord.product_id)
            .all()
        )

    records = _load()
    if records:
        return records, False

    logger.info("No inventory rows for %s, calculating demand", target)
    store_daily_demand(target, actor)
    return _load(), True
