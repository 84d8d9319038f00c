# Overview: Service-layer operations for recording deliveries exactly once per customer, product and day.

"""
Delivery Recorder

IDEMPOTENCY GUARD:
- A delivery is keyed by (customer_id, inventory_id, delivery_day).
- The lookup for an existing row and the insert share one transaction.
- The unique constraint on the key is the backstop for concurrent twin
  requests: the loser's insert fails, rolls back, and is reported as the
  duplicate outcome rather than an error.

COLLECTION RULE:
- A manually customized price is taken as paid on the spot (collected).
- A standard price is collected later through billing (pending).

Every DeliveryRecord is created together with its PaymentRecord.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, DeliveryRecord, PaymentRecord
from ..validation import NotFoundError, require_amount_paise, require_positive_int, require_text
from .inventory_service import get_inventory_record
from .pick_service import require_active_worker
from dailyops.time_utils import business_day, to_utc_z, utcnow


logger = logging.getLogger(__name__)

STATUS_COLLECTED = "Collected"
STATUS_PENDING = "Pending Collection"


@dataclass
class DeliveryOutcome:
    success: bool
    is_duplicate: bool
    message: str
    data: dict | None = field(default=None)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "is_duplicate": self.is_duplicate,
            "message": self.message,
            "data": self.data,
        }


def _duplicate_outcome() -> DeliveryOutcome:
    return DeliveryOutcome(
        success=True,
        is_duplicate=True,
        message="Delivery already processed for this customer-product combination today",
    )


def _find_existing(customer_id: int, inventory_id: int, day: date) -> DeliveryRecord | None:
    return (
        db.session.query(DeliveryRecord)
        .filter_by(customer_id=customer_id, inventory_id=inventory_id, delivery_day=day)
        .first()
    )


def record_delivery(
    *,
    worker_id: int,
    customer_id: int,
    inventory_id: int,
    quantity,
    bill_paise,
    price_was_customized: bool,
    actor: str,
    now: datetime | None = None,
) -> DeliveryOutcome:
    """
    Record one delivery and its payment, at most once per customer, product and day.

    Args:
        worker_id: Worker who delivered
        customer_id: Receiving customer
        inventory_id: Today's inventory row for the product
        quantity: Delivered quantity (> 0)
        bill_paise: Amount billed for the delivery in paise (> 0)
        price_was_customized: True when the worker overrode the standard price
        actor: Login of the user submitting the delivery
        now: Business time of the delivery (default: server now)

    Returns:
        DeliveryOutcome; is_duplicate=True (and no writes) when the delivery
        already exists for the day

    Raises:
        ValidationError: non-positive quantity or amount
        NotFoundError: worker, customer or inventory row missing
    """
    qty = require_positive_int(quantity, "delivered_quantity")
    amount = require_amount_paise(bill_paise, "bill_amount")
    actor = require_text(actor, "actor", max_length=128)

    occurred_at = now or utcnow()
    day = business_day(occurred_at)

    try:
        if _find_existing(customer_id, inventory_id, day) is not None:
            db.session.rollback()
            logger.warning(
                "Duplicate delivery attempt blocked customer=%s inventory=%s day=%s",
                customer_id, inventory_id, day,
            )
            return _duplicate_outcome()

        worker = require_active_worker(worker_id)
        customer = db.session.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError(f"Customer with ID {customer_id} not found")
        inventory = get_inventory_record(inventory_id)

        is_collected = bool(price_was_customized)

        delivery = DeliveryRecord(
            worker_id=worker.id,
            customer_id=customer.id,
            inventory_id=inventory.id,
            delivery_day=day,
            delivered_qty=qty,
            actor_login=actor,
            delivered_at=occurred_at,
        )
        db.session.add(delivery)
        db.session.flush()

        payment = PaymentRecord(
            delivery_id=delivery.id,
            worker_id=worker.id,
            customer_id=customer.id,
            inventory_id=inventory.id,
            payment_day=day,
            bill_paise=amount,
            is_collected=is_collected,
        )
        db.session.add(payment)
        db.session.flush()

        data = {
            "delivery_id": delivery.id,
            "payment_id": payment.id,
            "customer_name": customer.full_name,
            "customer_type": customer.classification,
            "product_name": inventory.product.name,
            "delivered_quantity": qty,
            "bill_paise": amount,
            "is_price_customized": bool(price_was_customized),
            "collection_status": STATUS_COLLECTED if is_collected else STATUS_PENDING,
            "collection_reason": (
                "Custom price - collected on spot"
                if price_was_customized
                else "Standard price - pending collection"
            ),
            "delivery_date": to_utc_z(occurred_at),
        }
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        if _find_existing(customer_id, inventory_id, day) is None:
            raise
        logger.warning(
            "Concurrent duplicate delivery resolved by constraint customer=%s inventory=%s day=%s",
            customer_id, inventory_id, day,
        )
        return _duplicate_outcome()
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        "Recorded delivery id=%s worker=%s customer=%s inventory=%s qty=%s collected=%s",
        data["delivery_id"], worker_id, customer_id, inventory_id, qty, is_collected,
    )
    return DeliveryOutcome(
        success=True,
        is_duplicate=False,
        message="Delivery processed successfully",
        data=data,
    )


def get_delivery_summary(day: date | None = None) -> dict:
    """Admin view: totals for every delivery and payment on a day."""
    target = day or business_day()

    deliveries = db.session.query(DeliveryRecord).filter_by(delivery_day=target).all()
    payments = db.session.query(PaymentRecord).filter_by(payment_day=target).all()

    collected = sum(p.bill_paise for p in payments if p.is_collected)
    pending = sum(p.bill_paise for p in payments if not p.is_collected)

    return {
        "day": target.isoformat(),
        "total_deliveries": len(deliveries),
        "total_bill_paise": collected + pending,
        "collected_paise": collected,
        "pending_paise": pending,
        "b2b_customers": sum(1 for p in payments if p.customer.classification == "B2B"),
        "b2c_customers": sum(1 for p in payments if p.customer.classification == "B2C"),
    }


def get_worker_deliveries(worker_id: int, day: date | None = None) -> dict:
    """Worker view: the day's deliveries with their payment state."""
    target = day or business_day()

    deliveries = (
        db.session.query(DeliveryRecord)
        .filter_by(worker_id=worker_id, delivery_day=target)
        .order_by(DeliveryRecord.delivered_at)
        .all()
    )

    rows = []
    for delivery in deliveries:
        payment = delivery.payment
        rows.append({
            "delivery_id": delivery.id,
            "customer_name": delivery.customer.full_name,
            "product_name": delivery.inventory.product.name,
            "delivered_quantity": delivery.delivered_qty,
            "bill_paise": payment.bill_paise if payment else 0,
            "collection_status": "Collected" if payment and payment.is_collected else "Pending",
            "delivery_date": to_utc_z(delivery.delivered_at),
        })

    return {
        "worker_id": worker_id,
        "day": target.isoformat(),
        "total_deliveries": len(rows),
        "total_paise": sum(r["bill_paise"] for r in rows),
        "deliveries": rows,
    }
