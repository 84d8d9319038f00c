# Overview: Customer-product subscriptions (each change triggers a demand recalculation) and worker-customer route assignments.

from __future__ import annotations

import logging

from sqlalchemy import or_

from ..extensions import db
from ..models import Customer, CustomerProduct, Product, WorkerCustomer
from ..validation import ConflictError, NotFoundError, coerce_int, require_positive_int
from .concurrency import atomic, lock_for_update
from .demand_service import recalculate_demand
from .pick_service import require_active_worker
from dailyops.time_utils import to_utc_z, utcnow


logger = logging.getLogger(__name__)


def _active_subscription(customer_id: int, product_id: int, *, lock: bool = False) -> CustomerProduct | None:
    query = (
        db.session.query(CustomerProduct)
        .filter(
            CustomerProduct.customer_id == customer_id,
            CustomerProduct.product_id == product_id,
            CustomerProduct.thru_date.is_(None),
        )
        .order_by(CustomerProduct.from_date.desc())
    )
    if lock:
        query = lock_for_update(query)
    return query.first()


def _require_active(customer_id: int, product_id: int) -> CustomerProduct:
    subscription = _active_subscription(customer_id, product_id, lock=True)
    if subscription is None:
        raise NotFoundError("Active customer-product relation not found")
    return subscription


def assign_product_to_customer(*, customer_id: int, product_id: int, quantity=1) -> CustomerProduct:
    """
    Start a daily subscription and recompute today's demand for the product.

    Raises:
        NotFoundError: customer or product missing
        ConflictError: an active subscription already exists
    """
    qty = require_positive_int(quantity, "quantity")

    with atomic():
        if db.session.get(Customer, customer_id) is None:
            raise NotFoundError(f"Customer with ID {customer_id} not found")
        if db.session.get(Product, product_id) is None:
            raise NotFoundError(f"Product with ID {product_id} not found")
        if _active_subscription(customer_id, product_id) is not None:
            raise ConflictError("Product is already actively assigned to this customer")

        subscription = CustomerProduct(
            customer_id=customer_id,
            product_id=product_id,
            quantity=qty,
            from_date=utcnow(),
            thru_date=None,
        )
        db.session.add(subscription)
        db.session.flush()
        recalculate_demand(product_id)

    logger.info("Assigned product %s to customer %s qty=%s", product_id, customer_id, qty)
    return subscription


def update_subscription_quantity(*, customer_id: int, product_id: int, quantity) -> CustomerProduct:
    qty = require_positive_int(quantity, "quantity")

    with atomic():
        subscription = _require_active(customer_id, product_id)
        subscription.quantity = qty
        db.session.flush()
        recalculate_demand(product_id)

    logger.info("Changed subscription customer=%s product=%s qty=%s", customer_id, product_id, qty)
    return subscription


def end_product_subscription(*, customer_id: int, product_id: int) -> CustomerProduct:
    """Close the active subscription (history is kept) and recompute demand."""
    with atomic():
        subscription = _require_active(customer_id, product_id)
        subscription.thru_date = utcnow()
        db.session.flush()
        recalculate_demand(product_id)

    logger.info("Ended subscription customer=%s product=%s", customer_id, product_id)
    return subscription


# ---------------------------------------------------------------------------
# Worker routes: which customers a worker delivers to
# ---------------------------------------------------------------------------

def _active_assignment(worker_id: int, customer_id: int, *, lock: bool = False) -> WorkerCustomer | None:
    query = (
        db.session.query(WorkerCustomer)
        .filter(
            WorkerCustomer.worker_id == worker_id,
            WorkerCustomer.customer_id == customer_id,
            WorkerCustomer.thru_date.is_(None),
        )
        .order_by(WorkerCustomer.from_date.desc())
    )
    if lock:
        query = lock_for_update(query)
    return query.first()


def assign_customer_to_worker(*, worker_id: int, customer_id: int, sequence_number=None) -> WorkerCustomer:
    """
    Put a customer on a worker's delivery route.

    Raises:
        NotFoundError: worker missing or inactive, customer missing
        ConflictError: the customer is already on this worker's route
    """
    sequence = coerce_int(sequence_number, "sequence_number") if sequence_number is not None else None

    with atomic():
        require_active_worker(worker_id)
        if db.session.get(Customer, customer_id) is None:
            raise NotFoundError(f"Customer with ID {customer_id} not found")
        if _active_assignment(worker_id, customer_id) is not None:
            raise ConflictError("Customer is already actively assigned to this worker")

        assignment = WorkerCustomer(
            worker_id=worker_id,
            customer_id=customer_id,
            sequence_number=sequence,
            from_date=utcnow(),
            thru_date=None,
        )
        db.session.add(assignment)

    logger.info("Assigned customer %s to worker %s seq=%s", customer_id, worker_id, sequence)
    return assignment


def remove_customer_from_worker(*, worker_id: int, customer_id: int) -> WorkerCustomer:
    with atomic():
        assignment = _active_assignment(worker_id, customer_id, lock=True)
        if assignment is None:
            raise NotFoundError("Active worker-customer relation not found")
        assignment.thru_date = utcnow()

    logger.info("Removed customer %s from worker %s", customer_id, worker_id)
    return assignment


def get_worker_customer_relations() -> list[WorkerCustomer]:
    """Every assignment, ended ones included, newest first."""
    return (
        db.session.query(WorkerCustomer)
        .order_by(WorkerCustomer.from_date.desc(), WorkerCustomer.id.desc())
        .all()
    )


def get_worker_customers(worker_id: int, *, as_of=None) -> list[dict]:
    """
    Customers currently on a worker's route, in route order.

    Active means thru_date IS NULL or thru_date > as_of (default now).
    Assignments without a sequence number come last, newest first.
    """
    at = as_of or utcnow()
    rows = (
        db.session.query(WorkerCustomer)
        .filter(
            WorkerCustomer.worker_id == worker_id,
            or_(WorkerCustomer.thru_date.is_(None), WorkerCustomer.thru_date > at),
        )
        .order_by(
            WorkerCustomer.sequence_number.is_(None),
            WorkerCustomer.sequence_number,
            WorkerCustomer.from_date.desc(),
        )
        .all()
    )

    return [
        {
            "relation_id": row.id,
            "sequence_number": row.sequence_number,
            "from_date": to_utc_z(row.from_date),
            "customer": row.customer.to_dict(),
        }
        for row in rows
    ]
