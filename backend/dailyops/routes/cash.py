# Overview: Flask API routes for worker cash-in-hand reports.

from flask import Blueprint, request, current_app

from ..responses import DOMAIN_ERRORS, domain_error, envelope, fatal_error, ok
from ..services import cash_service
from ..validation import ValidationError, coerce_int, optional_day


cash_bp = Blueprint("cash", __name__, url_prefix="/api/cash-in-hand")


@cash_bp.post("")
def report_cash_route():
    """
    Request body: {"worker_id": 1, "amount": 40000}  (paise)

    Returns 201 on the first report of the day, 200 with is_duplicate=true after.
    """
    try:
        data = request.get_json(silent=True) or {}
        outcome = cash_service.report_cash_in_hand(
            worker_id=coerce_int(data.get("worker_id"), "worker_id"),
            amount_paise=data.get("amount"),
        )
        return envelope(
            success=outcome.success,
            message=outcome.message,
            data=outcome.data,
            status=200 if outcome.is_duplicate else 201,
            is_duplicate=outcome.is_duplicate,
        )
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to record cash in hand")
        return fatal_error()


@cash_bp.get("/summary")
def cash_summary_route():
    try:
        day = optional_day(request.args.get("date"), "date")
        return ok(cash_service.get_worker_cash_summary(day))
    except ValidationError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load cash summary")
        return fatal_error()


@cash_bp.get("/workers/<int:worker_id>")
def worker_cash_route(worker_id: int):
    try:
        day = optional_day(request.args.get("date"), "date")
        return ok(cash_service.get_worker_cash_in_hand(worker_id, day), message="Cash in hand record fetched successfully")
    except ValidationError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load worker cash in hand")
        return fatal_error()
