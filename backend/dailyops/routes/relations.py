# Overview: Flask API routes for customer-product subscriptions and worker-customer assignments.

from flask import Blueprint, request, current_app

from ..responses import DOMAIN_ERRORS, domain_error, fatal_error, ok
from ..services import relation_service
from ..validation import coerce_int


relations_bp = Blueprint("relations", __name__, url_prefix="/api/relations")


def _ids(data: dict) -> dict:
    return {
        "customer_id": coerce_int(data.get("customer_id"), "customer_id"),
        "product_id": coerce_int(data.get("product_id"), "product_id"),
    }


@relations_bp.post("/customer-products")
def assign_product_route():
    """Request body: {"customer_id": 7, "product_id": 3, "quantity": 2}"""
    try:
        data = request.get_json(silent=True) or {}
        subscription = relation_service.assign_product_to_customer(
            **_ids(data), quantity=data.get("quantity", 1)
        )
        return ok(subscription.to_dict(), message="Product assigned to customer", status=201)
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to assign product to customer")
        return fatal_error()


@relations_bp.patch("/customer-products")
def update_quantity_route():
    try:
        data = request.get_json(silent=True) or {}
        subscription = relation_service.update_subscription_quantity(
            **_ids(data), quantity=data.get("quantity")
        )
        return ok(subscription.to_dict(), message="Subscription quantity updated")
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to update subscription quantity")
        return fatal_error()


@relations_bp.delete("/customer-products")
def end_subscription_route():
    try:
        data = request.get_json(silent=True) or {}
        subscription = relation_service.end_product_subscription(**_ids(data))
        return ok(subscription.to_dict(), message="Subscription ended")
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to end subscription")
        return fatal_error()


def _route_ids(data: dict) -> dict:
    return {
        "worker_id": coerce_int(data.get("worker_id"), "worker_id"),
        "customer_id": coerce_int(data.get("customer_id"), "customer_id"),
    }


@relations_bp.get("/worker-customers")
def list_worker_customer_relations_route():
    try:
        relations = relation_service.get_worker_customer_relations()
        return ok([r.to_dict() for r in relations])
    except Exception:
        current_app.logger.exception("Failed to list worker-customer relations")
        return fatal_error()


@relations_bp.post("/worker-customers")
def assign_customer_route():
    """Request body: {"worker_id": 1, "customer_id": 7, "sequence_number": 4}"""
    try:
        data = request.get_json(silent=True) or {}
        assignment = relation_service.assign_customer_to_worker(
            **_route_ids(data), sequence_number=data.get("sequence_number")
        )
        return ok(assignment.to_dict(), message="Customer assigned to worker", status=201)
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to assign customer to worker")
        return fatal_error()


@relations_bp.delete("/worker-customers")
def remove_customer_route():
    try:
        data = request.get_json(silent=True) or {}
        assignment = relation_service.remove_customer_from_worker(**_route_ids(data))
        return ok(assignment.to_dict(), message="Customer removed from worker")
    except DOMAIN_ERRORS as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to remove customer from worker")
        return fatal_error()


@relations_bp.get("/workers/<int:worker_id>/customers")
def worker_customers_route(worker_id: int):
    try:
        return ok(relation_service.get_worker_customers(worker_id))
    except Exception:
        current_app.logger.exception("Failed to load worker customers")
        return fatal_error()
