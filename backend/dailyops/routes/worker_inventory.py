# Overview: Flask API routes for worker picked/remaining quantities.

"""
Worker Inventory Routes

Both POST routes take one worker and a batch of items:
{"worker_id": 1, "items": [{"inventory_id": 12, "quantity": 50}, ...]}

The batch is all-or-nothing: one invalid item rejects the whole request.
"""

from flask import Blueprint, request, current_app

from ..responses import DOMAIN_ERRORS, domain_error, fatal_error, ok
from ..services import pick_service
from ..validation import ValidationError, coerce_int, optional_day


worker_inventory_bp = Blueprint("worker_inventory", __name__, url_prefix="/api/worker-inventory")


@worker_inventory_bp.post("/picked")
def record_picked_route():
    try:
        data = request.get_json(silent=True) or {}
        records = pick_service.record_picked(
            worker_id=coerce_int(data.get("worker_id"), "worker_id"),
            items=data.get("items"),
        )
        return ok(
            [r.to_dict() for r in records],
            message=f"Updated picked quantity for {len(records)} products",
        )
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to record picked quantities")
        return fatal_error()


@worker_inventory_bp.post("/remaining")
def record_remaining_route():
    try:
        data = request.get_json(silent=True) or {}
        records = pick_service.record_remaining(
            worker_id=coerce_int(data.get("worker_id"), "worker_id"),
            items=data.get("items"),
        )
        return ok(
            [r.to_dict() for r in records],
            message=f"Updated remaining quantity for {len(records)} products",
        )
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to record remaining quantities")
        return fatal_error()


@worker_inventory_bp.get("/<int:worker_id>")
def worker_activity_route(worker_id: int):
    try:
        day = optional_day(request.args.get("date"), "date")
        records = pick_service.get_worker_daily_activity(worker_id, day)
        return ok([r.to_dict() for r in records])
    except ValidationError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load worker activity")
        return fatal_error()


@worker_inventory_bp.get("/<int:worker_id>/summary")
def worker_summary_route(worker_id: int):
    try:
        day = optional_day(request.args.get("date"), "date")
        return ok(pick_service.get_worker_daily_summary(worker_id, day))
    except ValidationError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load worker summary")
        return fatal_error()


@worker_inventory_bp.get("/<int:worker_id>/history")
def worker_history_route(worker_id: int):
    """?days=7 (default) covers today and the six days before it."""
    try:
        history = pick_service.get_worker_activity_history(worker_id, request.args.get("days", 7))
        return ok(history)
    except ValidationError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load worker activity history")
        return fatal_error()
