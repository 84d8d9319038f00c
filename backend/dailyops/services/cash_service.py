# Overview: Service-layer operations for worker cash-in-hand reports.

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CashInHandRecord, Worker
from ..validation import require_amount_paise
from .delivery_service import DeliveryOutcome
from .pick_service import require_active_worker
from dailyops.time_utils import business_day, to_utc_z, utcnow


logger = logging.getLogger(__name__)


def _existing_report(worker_id: int, day: date) -> CashInHandRecord | None:
    return db.session.query(CashInHandRecord).filter_by(worker_id=worker_id, cash_day=day).first()


def report_cash_in_hand(*, worker_id: int, amount_paise, now: datetime | None = None) -> DeliveryOutcome:
    """
    Worker claim of the cash they hold, once per day.

    A second report on the same day is a duplicate no-op; the admin's count
    (actual_paise) is only written by reconciliation.
    """
    amount = require_amount_paise(amount_paise, "cash_in_hand", allow_zero=True)
    reported_at = now or utcnow()
    day = business_day(reported_at)

    try:
        if _existing_report(worker_id, day) is not None:
            db.session.rollback()
            return DeliveryOutcome(
                success=True,
                is_duplicate=True,
                message="Cash in hand already reported for today",
            )

        require_active_worker(worker_id)
        record = CashInHandRecord(
            worker_id=worker_id,
            cash_day=day,
            reported_paise=amount,
            reported_at=reported_at,
        )
        db.session.add(record)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        if _existing_report(worker_id, day) is None:
            raise
        return DeliveryOutcome(
            success=True,
            is_duplicate=True,
            message="Cash in hand already reported for today",
        )
    except Exception:
        db.session.rollback()
        raise

    logger.info("Worker %s reported cash in hand %s paise for %s", worker_id, amount, day)
    return DeliveryOutcome(
        success=True,
        is_duplicate=False,
        message="Cash in hand recorded",
        data=record.to_dict(),
    )


def get_worker_cash_summary(day: date | None = None) -> dict:
    """Reported vs actual cash for every worker who reported on the day."""
    target = day or business_day()

    rows = (
        db.session.query(CashInHandRecord, Worker)
        .join(Worker, Worker.id == CashInHandRecord.worker_id)
        .filter(CashInHandRecord.cash_day == target)
        .order_by(Worker.first_name, Worker.id)
        .all()
    )

    workers = []
    for record, worker in rows:
        workers.append({
            "worker_id": worker.id,
            "worker_name": worker.full_name,
            "reported_paise": record.reported_paise,
            "actual_paise": record.actual_paise,
            "variance_paise": record.variance_paise,
            "verification_id": record.verification_id,
            "reported_at": to_utc_z(record.reported_at),
        })

    return {
        "day": target.isoformat(),
        "total_reported_paise": sum(w["reported_paise"] for w in workers),
        "total_actual_paise": sum(w["actual_paise"] or 0 for w in workers),
        "workers": workers,
    }


def get_worker_cash_in_hand(worker_id: int, day: date | None = None) -> dict | None:
    """The worker's own report for the day, without the admin's count. None if not reported."""
    record = _existing_report(worker_id, day or business_day())
    if record is None:
        return None

    data = record.to_dict()
    data.pop("actual_paise", None)
    data.pop("variance_paise", None)
    return data
