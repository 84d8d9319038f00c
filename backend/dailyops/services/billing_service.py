# Overview: Service-layer operations for customer billing; consumes verified delivery rows.

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models.billing import BILL_STATUS_GENERATED, BILL_STATUS_PAID
from ..models import (
    Bill,
    Customer,
    DeliveryCharge,
    VerifiedDeliveryRecord,
)
from ..validation import (
    ConflictError,
    NoUnbilledDeliveriesError,
    NotFoundError,
    ValidationError,
    require_day,
    require_text,
)
from .bill_document import BillDocumentData, Renderer, document_filename, render_bill_workbook, store_document
from .concurrency import atomic, lock_for_update, run_with_retry
from .sequence_service import next_document_number
from dailyops.time_utils import day_window, to_utc_z, utcnow

"""
Billing Invariants (authoritative)

- Billable set: VerifiedDeliveryRecord rows of the customer with billed=false
  and is_collected=false, verified within [start, end] (both days inclusive),
  ordered by verified_at then product_name.
- An empty billable set never produces a bill.
- Generating a bill marks every consumed row billed=true and links bill_id in
  the same transaction, so no row is ever aggregated into two bills.
- Bill numbers come from a per-year sequence: BILL-<year>-<NNNN>.
- GENERATED -> PAID is the only transition. Paying marks the consumed rows
  collected.
- Grouping by product uses the first row's price as the unit price. When a
  customer's price changes mid-period the displayed unit price is approximate;
  line totals are always exact sums.
"""

logger = logging.getLogger(__name__)

BILL_DOCUMENT_TYPE = "BILL"


@dataclass
class BillResult:
    bill: Bill
    deliveries_count: int
    subtotal_paise: int
    delivery_charges_paise: int
    grand_total_paise: int

    def to_dict(self) -> dict:
        return {
            "bill": self.bill.to_dict(),
            "deliveries_count": self.deliveries_count,
            "total_amount_paise": self.subtotal_paise,
            "delivery_charges_paise": self.delivery_charges_paise,
            "grand_total_paise": self.grand_total_paise,
        }


def _period(start_date, end_date) -> tuple[date, date]:
    start = require_day(start_date, "start_date")
    end = require_day(end_date, "end_date")
    if start > end:
        raise ValidationError("start_date must be on or before end_date")
    return start, end


def _require_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError(f"Customer with ID {customer_id} not found")
    return customer


def _billable_query(customer_id: int, start: date, end: date):
    window_start, _ = day_window(start)
    _, window_end = day_window(end)
    return (
        db.session.query(VerifiedDeliveryRecord)
        .filter(
            VerifiedDeliveryRecord.customer_id == customer_id,
            VerifiedDeliveryRecord.billed.is_(False),
            VerifiedDeliveryRecord.is_collected.is_(False),
            VerifiedDeliveryRecord.verified_at >= window_start,
            VerifiedDeliveryRecord.verified_at < window_end,
        )
        .order_by(VerifiedDeliveryRecord.verified_at, VerifiedDeliveryRecord.product_name)
    )


def _delivery_charge_paise() -> int:
    charge = db.session.query(DeliveryCharge).order_by(DeliveryCharge.id).first()
    return charge.charge_paise if charge is not None else 0


def _customer_address(customer: Customer) -> str:
    parts = [customer.address1, customer.address2, customer.city, customer.pincode]
    return ", ".join(p for p in parts if p)


def group_by_product(rows) -> list[dict]:
    """
    Per-product summary lines, in first-seen order.

    unit_price_paise is the first row's bill divided by its quantity
    (rounded half up).
    """
    groups: dict[str, dict] = {}
    for row in rows:
        group = groups.get(row.product_name)
        if group is None:
            unit = (row.bill_paise * 2 + row.delivered_qty) // (row.delivered_qty * 2) if row.delivered_qty else 0
            group = groups[row.product_name] = {
                "product_name": row.product_name,
                "total_quantity": 0,
                "unit_price_paise": unit,
                "total_amount_paise": 0,
            }
        group["total_quantity"] += row.delivered_qty
        group["total_amount_paise"] += row.bill_paise
    return list(groups.values())


def _delivery_lines(rows) -> list[dict]:
    return [
        {
            "id": r.id,
            "verified_at": r.verified_at,
            "product_name": r.product_name,
            "delivered_qty": r.delivered_qty,
            "bill_paise": r.bill_paise,
        }
        for r in rows
    ]


def preview_bill(
    *,
    customer_id: int,
    start_date,
    end_date,
    include_delivery_charges: bool = False,
) -> dict:
    """DRAFT view of the bill a generate call would produce. No writes."""
    start, end = _period(start_date, end_date)
    customer = _require_customer(customer_id)
    rows = _billable_query(customer_id, start, end).all()

    subtotal = sum(r.bill_paise for r in rows)
    charges = _delivery_charge_paise() if include_delivery_charges else 0

    return {
        "customer": customer.to_dict(),
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "deliveries": [
            {**line, "verified_at": to_utc_z(line["verified_at"])} for line in _delivery_lines(rows)
        ],
        "product_summary": group_by_product(rows),
        "deliveries_count": len(rows),
        "total_amount_paise": subtotal,
        "delivery_charges_paise": charges,
        "grand_total_paise": subtotal + charges,
    }


def bill_storage_dir() -> str:
    configured = current_app.config.get("BILL_STORAGE_DIR", "bills")
    if os.path.isabs(configured):
        return configured
    return os.path.join(current_app.instance_path, configured)


def generate_bill(
    *,
    customer_id: int,
    start_date,
    end_date,
    include_delivery_charges: bool = False,
    created_by: str,
    renderer: Renderer | None = None,
    now: datetime | None = None,
) -> BillResult:
    """
    Turn the billable set into a persisted bill and its document.

    The whole attempt is retried on lock errors; each retry reloads and
    relocks the billable rows in a fresh transaction.

    Raises:
        ValidationError: bad dates, start after end, missing created_by
        NotFoundError: unknown customer
        NoUnbilledDeliveriesError: nothing left to bill in the period
    """
    start, end = _period(start_date, end_date)
    created_by = require_text(created_by, "created_by", max_length=128)
    render = renderer or render_bill_workbook
    created_at = now or utcnow()

    return run_with_retry(
        lambda: _generate_once(
            customer_id=customer_id,
            start=start,
            end=end,
            include_delivery_charges=include_delivery_charges,
            created_by=created_by,
            render=render,
            created_at=created_at,
        )
    )


def _generate_once(*, customer_id, start, end, include_delivery_charges, created_by, render, created_at) -> BillResult:
    """One attempt: lock the billable rows, number, render, store, mark billed, commit."""
    storage_dir = bill_storage_dir()
    written = None
    try:
        with atomic():
            customer = _require_customer(customer_id)
            rows = lock_for_update(_billable_query(customer_id, start, end)).all()
            if not rows:
                raise NoUnbilledDeliveriesError("No unbilled deliveries found for the selected period")

            subtotal = sum(r.bill_paise for r in rows)
            charges = _delivery_charge_paise() if include_delivery_charges else 0

            bill_number = next_document_number(
                document_type=BILL_DOCUMENT_TYPE,
                scope_key=str(created_at.year),
                prefix="BILL",
                pad=current_app.config.get("BILL_NUMBER_PAD", 4),
            )

            bill = Bill(
                bill_number=bill_number,
                customer_id=customer.id,
                start_date=start,
                end_date=end,
                subtotal_paise=subtotal,
                delivery_charges_paise=charges if include_delivery_charges else None,
                total_amount_paise=subtotal + charges,
                status=BILL_STATUS_GENERATED,
                is_paid=False,
                created_by=created_by,
                created_at=created_at,
            )
            db.session.add(bill)
            db.session.flush()

            for row in rows:
                row.billed = True
                row.bill_id = bill.id

            document = render(BillDocumentData(
                bill_number=bill_number,
                customer_name=customer.full_name,
                customer_address=_customer_address(customer),
                start_date=start,
                end_date=end,
                subtotal_paise=subtotal,
                delivery_charges_paise=bill.delivery_charges_paise,
                total_amount_paise=bill.total_amount_paise,
                deliveries=_delivery_lines(rows),
                product_summary=group_by_product(rows),
            ))
            filename = document_filename(customer.full_name, start, end, bill_number)
            written = os.path.join(storage_dir, filename)
            bill.file_path = store_document(storage_dir, filename, document)
    except Exception:
        # The bill did not commit; its document must not outlive it
        if written is not None and os.path.exists(written):
            os.remove(written)
        raise

    logger.info(
        "Generated bill %s customer=%s period=%s..%s rows=%s total=%s",
        bill_number, customer_id, start, end, len(rows), bill.total_amount_paise,
    )
    return BillResult(
        bill=bill,
        deliveries_count=len(rows),
        subtotal_paise=subtotal,
        delivery_charges_paise=charges,
        grand_total_paise=subtotal + charges,
    )


def get_bill(bill_id: int) -> Bill:
    bill = db.session.get(Bill, bill_id)
    if bill is None:
        raise NotFoundError(f"Bill with ID {bill_id} not found")
    return bill


def mark_bill_paid(bill_id: int, *, now: datetime | None = None) -> Bill:
    """GENERATED -> PAID; the bill's delivery rows become collected."""
    with atomic():
        bill = lock_for_update(db.session.query(Bill).filter_by(id=bill_id)).first()
        if bill is None:
            raise NotFoundError(f"Bill with ID {bill_id} not found")
        if bill.status == BILL_STATUS_PAID:
            raise ConflictError(f"Bill {bill.bill_number} is already paid")

        bill.status = BILL_STATUS_PAID
        bill.is_paid = True
        bill.paid_at = now or utcnow()

        db.session.execute(
            update(VerifiedDeliveryRecord)
            .where(VerifiedDeliveryRecord.bill_id == bill.id)
            .values(is_collected=True)
            .execution_options(synchronize_session="fetch")
        )

    logger.info("Bill %s marked paid", bill.bill_number)
    return bill


def get_customer_bills(customer_id: int) -> list[Bill]:
    _require_customer(customer_id)
    return (
        db.session.query(Bill)
        .filter_by(customer_id=customer_id)
        .order_by(Bill.created_at.desc(), Bill.id.desc())
        .all()
    )


def get_bill_document_path(filename: str) -> str:
    """Absolute path of a stored bill document; only bare filenames are accepted."""
    if not filename or os.path.basename(filename) != filename or filename.startswith("."):
        raise ValidationError("Invalid bill filename")
    path = os.path.join(bill_storage_dir(), filename)
    if not os.path.isfile(path):
        raise NotFoundError(f"Bill document {filename} not found")
    return path
