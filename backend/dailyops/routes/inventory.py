# backend/dailyops/routes/inventory.py
"""
Depot inventory routes.

- Demand (ordered_qty) is computed by the server, never posted.
- received and remaining quantities are admin inputs, set once per day.

Time semantics:
- ?date= accepts YYYY-MM-DD only and defaults to today (UTC).
"""
from flask import Blueprint, request, current_app

from ..responses import DOMAIN_ERRORS, domain_error, fatal_error, ok
from ..services import demand_service, inventory_service
from ..validation import ValidationError, optional_day, require_text


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/demand")
def store_demand_route():
    """Recompute and store ordered_qty for every active product on the day."""
    try:
        data = request.get_json(silent=True) or {}
        day = optional_day(data.get("date"), "date")
        count = demand_service.store_daily_demand(day, actor=data.get("actor") or demand_service.SYSTEM_ACTOR)
        return ok({"products_processed": count}, message="Daily demand stored")
    except ValidationError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to store daily demand")
        return fatal_error()


@inventory_bp.get("")
def daily_inventory_route():
    try:
        day = optional_day(request.args.get("date"), "date")
        records, was_calculated = demand_service.get_daily_inventory(day)
        return ok([r.to_dict() for r in records], was_calculated=was_calculated)
    except ValidationError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load daily inventory")
        return fatal_error()


@inventory_bp.post("/<int:product_id>/received")
def record_received_route(product_id: int):
    """Request body: {"quantity": 120, "actor": "admin"}"""
    try:
        data = request.get_json(silent=True) or {}
        record = inventory_service.record_received_quantity(
            product_id=product_id,
            quantity=data.get("quantity"),
            actor=require_text(data.get("actor"), "actor", max_length=128),
        )
        return ok(record.to_dict(), message="Received quantity recorded")
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to record received quantity")
        return fatal_error()


@inventory_bp.post("/<int:product_id>/remaining")
def record_remaining_route(product_id: int):
    try:
        data = request.get_json(silent=True) or {}
        record = inventory_service.record_depot_remaining(
            product_id=product_id,
            quantity=data.get("quantity"),
            actor=require_text(data.get("actor"), "actor", max_length=128),
        )
        return ok(record.to_dict(), message="Remaining quantity recorded")
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to record depot remaining quantity")
        return fatal_error()


@inventory_bp.get("/dates")
def inventory_dates_route():
    try:
        return ok(inventory_service.get_inventory_dates(), message="Available dates retrieved successfully")
    except Exception:
        current_app.logger.exception("Failed to load inventory dates")
        return fatal_error()
