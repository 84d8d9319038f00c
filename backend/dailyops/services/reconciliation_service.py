# Overview: End-of-day reconciliation; certifies one day's deliveries, payments and cash under one id.

"""
Daily Reconciliation Engine

WHY: Deliveries, payments and cash reports are written independently all
day long. At cutoff an admin reviews them, corrects figures, and submits.
The submission freezes the day into verified rows that billing reads.

VERIFICATION ID (one per calendar day):
1. Reuse the id of any VerifiedDeliveryRecord verified today
2. Else reuse the day's VerificationBatch id
3. Else mint a uuid4-based id and store it as the day's VerificationBatch

Repeated submissions on one day therefore converge on one id, and a new day
always gets a new one.

FAILURE SEMANTICS:
- The submission is one transaction.
- Lines repeating one (worker, customer, inventory) key collapse to the
  last of them; processed_deliveries counts distinct keys.
- A malformed delivery line (bad field, unknown worker/customer/inventory)
  is logged and counted as failed, and so is a line whose verified row is
  already billed. Other lines still commit.
- A cash line for a worker with no report today is counted in
  unmatched_cash_workers and writes nothing.
- Any database error rolls the whole submission back.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import date, datetime

from sqlalchemy import update

from ..extensions import db
from ..models import (
    CashInHandRecord,
    Customer,
    DeliveryRecord,
    InventoryRecord,
    PaymentRecord,
    VerificationBatch,
    VerifiedDeliveryRecord,
    Worker,
)
from ..validation import (
    ValidationError,
    coerce_int,
    require_amount_paise,
    require_bool,
    require_non_negative_int,
    require_text,
)
from .concurrency import atomic
from .upsert import upsert_keyed
from dailyops.time_utils import business_day, day_window, to_utc_z, utcnow


logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    verification_id: str
    processed_deliveries: int = 0
    failed_deliveries: int = 0
    updated_delivery_records: int = 0
    updated_payment_records: int = 0
    updated_cash_records: int = 0
    unmatched_cash_workers: list[int] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class _DeliveryLine:
    worker_id: int
    customer_id: int
    inventory_id: int
    product_name: str
    delivered_qty: int
    bill_paise: int
    is_collected: bool


def resolve_verification_id(day: date, created_by: str, now: datetime) -> str:
    """Return the day's verification id, minting and storing one on first use."""
    start, end = day_window(day)

    existing = (
        db.session.query(VerifiedDeliveryRecord.verification_id)
        .filter(VerifiedDeliveryRecord.verified_at >= start, VerifiedDeliveryRecord.verified_at < end)
        .order_by(VerifiedDeliveryRecord.id)
        .first()
    )
    if existing is not None:
        return existing[0]

    batch = upsert_keyed(
        VerificationBatch,
        {"business_day": day},
        update_fields={},
        create_fields={
            "verification_id": f"VER-{uuid.uuid4().hex}",
            "created_by": created_by,
            "created_at": now,
        },
    )
    return batch.verification_id


def _parse_delivery_line(line) -> _DeliveryLine:
    if not isinstance(line, dict):
        raise ValidationError("delivery line must be an object")
    return _DeliveryLine(
        worker_id=coerce_int(line.get("worker_id"), "worker_id"),
        customer_id=coerce_int(line.get("customer_id"), "customer_id"),
        inventory_id=coerce_int(line.get("inventory_id"), "inventory_id"),
        product_name=require_text(line.get("product_name"), "product_name"),
        delivered_qty=require_non_negative_int(line.get("delivered_quantity"), "delivered_quantity"),
        bill_paise=require_amount_paise(line.get("bill"), "bill", allow_zero=True),
        is_collected=require_bool(line.get("is_collected", False), "is_collected"),
    )


def _check_references(parsed: _DeliveryLine) -> None:
    if db.session.get(Worker, parsed.worker_id) is None:
        raise ValidationError(f"Worker {parsed.worker_id} not found")
    if db.session.get(Customer, parsed.customer_id) is None:
        raise ValidationError(f"Customer {parsed.customer_id} not found")
    if db.session.get(InventoryRecord, parsed.inventory_id) is None:
        raise ValidationError(f"Inventory record {parsed.inventory_id} not found")


def _fail_line(result: ReconciliationResult, index: int, exc: ValidationError) -> None:
    result.failed_deliveries += 1
    result.errors.append({"index": index, "error": str(exc)})
    logger.warning("Skipping delivery line %s: %s", index, exc)


def _stamp(model, day_column, day: date, inventory_ids: set[int], verification_id: str) -> int:
    if not inventory_ids:
        return 0
    stmt = (
        update(model)
        .where(day_column == day, model.inventory_id.in_(sorted(inventory_ids)))
        .values(verification_id=verification_id)
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(stmt).rowcount or 0


def submit_verification(
    *,
    deliveries,
    cash_data,
    verified_by: str,
    now: datetime | None = None,
) -> ReconciliationResult:
    """
    Certify today's numbers.

    Args:
        deliveries: [{worker_id, customer_id, inventory_id, product_name,
                      delivered_quantity, bill, is_collected}, ...]
        cash_data: [{worker_id, actual_amount}, ...]
        verified_by: Admin login
        now: Business time of the submission (default: server now)

    Raises:
        ValidationError: deliveries/cash_data not lists, bad cash line, missing verified_by
    """
    verified_by = require_text(verified_by, "verified_by", max_length=128)
    if not isinstance(deliveries, list):
        raise ValidationError("deliveries must be a list")
    if cash_data is None:
        cash_data = []
    if not isinstance(cash_data, list):
        raise ValidationError("cash_data must be a list")

    verified_at = now or utcnow()
    day = business_day(verified_at)

    with atomic():
        verification_id = resolve_verification_id(day, verified_by, verified_at)
        result = ReconciliationResult(verification_id=verification_id)
        logger.info("Reconciliation for %s using verification id %s", day, verification_id)

        # Later lines for the same (worker, customer, inventory) replace earlier ones
        pending: dict[tuple[int, int, int], tuple[int, _DeliveryLine]] = {}
        for index, line in enumerate(deliveries):
            try:
                parsed = _parse_delivery_line(line)
                _check_references(parsed)
            except ValidationError as exc:
                _fail_line(result, index, exc)
                continue
            pending[(parsed.worker_id, parsed.customer_id, parsed.inventory_id)] = (index, parsed)

        inventory_ids: set[int] = set()
        for (worker_id, customer_id, inventory_id), (index, parsed) in pending.items():
            row = upsert_keyed(
                VerifiedDeliveryRecord,
                {
                    "verification_id": verification_id,
                    "worker_id": worker_id,
                    "customer_id": customer_id,
                    "inventory_id": inventory_id,
                },
                update_fields={
                    "product_name": parsed.product_name,
                    "delivered_qty": parsed.delivered_qty,
                    "bill_paise": parsed.bill_paise,
                    "is_collected": parsed.is_collected,
                    "verified_by": verified_by,
                    "verified_at": verified_at,
                },
                create_fields={"billed": False},
                update_where=VerifiedDeliveryRecord.billed.is_(False),
            )
            if row.billed:
                _fail_line(
                    result,
                    index,
                    ValidationError(f"Delivery line already billed on bill {row.bill_id}; it cannot be changed"),
                )
                continue

            inventory_ids.add(inventory_id)
            result.processed_deliveries += 1

        result.updated_delivery_records = _stamp(
            DeliveryRecord, DeliveryRecord.delivery_day, day, inventory_ids, verification_id
        )
        result.updated_payment_records = _stamp(
            PaymentRecord, PaymentRecord.payment_day, day, inventory_ids, verification_id
        )

        for index, cash in enumerate(cash_data):
            if not isinstance(cash, dict):
                raise ValidationError(f"cash_data[{index}] must be an object")
            worker_id = coerce_int(cash.get("worker_id"), f"cash_data[{index}].worker_id")
            actual = require_amount_paise(cash.get("actual_amount"), f"cash_data[{index}].actual_amount", allow_zero=True)

            record = db.session.query(CashInHandRecord).filter_by(worker_id=worker_id, cash_day=day).first()
            if record is None:
                result.unmatched_cash_workers.append(worker_id)
                logger.warning("No cash in hand report for worker %s on %s", worker_id, day)
                continue

            record.actual_paise = actual
            record.verification_id = verification_id
            result.updated_cash_records += 1

    logger.info(
        "Reconciliation %s done: processed=%s failed=%s deliveries=%s payments=%s cash=%s unmatched=%s",
        verification_id,
        result.processed_deliveries,
        result.failed_deliveries,
        result.updated_delivery_records,
        result.updated_payment_records,
        result.updated_cash_records,
        len(result.unmatched_cash_workers),
    )
    return result


def get_daily_deliveries_overview(day: date | None = None) -> dict:
    """
    The lines an admin reviews before submitting: each delivery joined with
    its payment, worker and product, plus the day's cash reports.
    """
    target = day or business_day()

    rows = (
        db.session.query(DeliveryRecord)
        .filter(DeliveryRecord.delivery_day == target)
        .order_by(DeliveryRecord.worker_id, DeliveryRecord.customer_id, DeliveryRecord.id)
        .all()
    )

    lines = []
    for delivery in rows:
        payment = delivery.payment
        lines.append({
            "delivery_id": delivery.id,
            "worker_id": delivery.worker_id,
            "worker_name": delivery.worker.full_name,
            "customer_id": delivery.customer_id,
            "customer_name": delivery.customer.full_name,
            "inventory_id": delivery.inventory_id,
            "product_name": delivery.inventory.product.name,
            "delivered_quantity": delivery.delivered_qty,
            "bill": payment.bill_paise if payment else 0,
            "is_collected": bool(payment and payment.is_collected),
            "verification_id": delivery.verification_id,
            "delivered_at": to_utc_z(delivery.delivered_at),
        })

    cash = (
        db.session.query(CashInHandRecord)
        .filter(CashInHandRecord.cash_day == target)
        .order_by(CashInHandRecord.worker_id)
        .all()
    )

    return {
        "day": target.isoformat(),
        "deliveries": lines,
        "cash": [
            {
                "worker_id": c.worker_id,
                "worker_name": c.worker.full_name,
                "reported_paise": c.reported_paise,
                "actual_paise": c.actual_paise,
            }
            for c in cash
        ],
        "total_bill_paise": sum(line["bill"] for line in lines),
        "verified": any(line["verification_id"] for line in lines),
    }
