# Overview: Flask API routes for delivery recording; parses input and returns JSON responses.

"""
Delivery Routes

Recording is idempotent per customer, product and day. A repeated
submission returns 200 with is_duplicate=true instead of an error, so
clients may retry freely.
"""

from flask import Blueprint, request, current_app

from ..responses import DOMAIN_ERRORS, domain_error, envelope, fatal_error, ok
from ..services import delivery_service
from ..validation import ValidationError, coerce_int, optional_day, require_bool


deliveries_bp = Blueprint("deliveries", __name__, url_prefix="/api/deliveries")


@deliveries_bp.post("")
def record_delivery_route():
    """
    Record a delivery and its payment.

    Request body:
    {
        "worker_id": 1,
        "customer_id": 7,
        "inventory_id": 12,
        "delivered_quantity": 10,
        "bill_amount": 40000,          (paise)
        "is_price_customized": false,
        "actor": "worker1"
    }

    Returns:
        201: Delivery recorded
        200: Duplicate (already recorded today), is_duplicate=true
        400 / 404: Invalid input / unknown reference
    """
    try:
        data = request.get_json(silent=True) or {}

        outcome = delivery_service.record_delivery(
            worker_id=coerce_int(data.get("worker_id"), "worker_id"),
            customer_id=coerce_int(data.get("customer_id"), "customer_id"),
            inventory_id=coerce_int(data.get("inventory_id"), "inventory_id"),
            quantity=data.get("delivered_quantity"),
            bill_paise=data.get("bill_amount"),
            price_was_customized=require_bool(data.get("is_price_customized", False), "is_price_customized"),
            actor=data.get("actor"),
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
        current_app.logger.exception("Failed to record delivery")
        return fatal_error("Failed to process delivery")


@deliveries_bp.get("/summary")
def delivery_summary_route():
    """Admin summary for ?date=YYYY-MM-DD (default: today)."""
    try:
        day = optional_day(request.args.get("date"), "date")
        return ok(delivery_service.get_delivery_summary(day))
    except ValidationError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load delivery summary")
        return fatal_error()


@deliveries_bp.get("/workers/<int:worker_id>")
def worker_deliveries_route(worker_id: int):
    try:
        day = optional_day(request.args.get("date"), "date")
        return ok(delivery_service.get_worker_deliveries(worker_id, day))
    except ValidationError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load worker deliveries")
        return fatal_error()
