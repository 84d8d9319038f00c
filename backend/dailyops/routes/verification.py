# Overview: Flask API routes for the end-of-day reconciliation.

"""
Verification Routes

GET  /api/verification/overview   lines to review before submitting
POST /api/verification            submit corrected lines and cash counts

Request body for POST:
{
    "deliveries": [{"worker_id", "customer_id", "inventory_id", "product_name",
                    "delivered_quantity", "bill", "is_collected"}, ...],
    "cash_data": [{"worker_id", "actual_amount"}, ...],
    "verified_by": "admin"
}

Malformed delivery lines do not fail the request; they are reported in
failed_deliveries and errors.
"""

from flask import Blueprint, request, current_app

from ..responses import DOMAIN_ERRORS, domain_error, fatal_error, ok
from ..services import reconciliation_service
from ..validation import ValidationError, optional_day


verification_bp = Blueprint("verification", __name__, url_prefix="/api/verification")


@verification_bp.get("/overview")
def overview_route():
    try:
        day = optional_day(request.args.get("date"), "date")
        return ok(reconciliation_service.get_daily_deliveries_overview(day))
    except ValidationError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load deliveries overview")
        return fatal_error()


@verification_bp.post("")
def submit_verification_route():
    try:
        data = request.get_json(silent=True) or {}
        result = reconciliation_service.submit_verification(
            deliveries=data.get("deliveries"),
            cash_data=data.get("cash_data"),
            verified_by=data.get("verified_by"),
        )
        return ok(result.to_dict(), message="Verification submitted")
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to submit verification")
        return fatal_error("Failed to submit verification")
