from __future__ import annotations

from ..extensions import db
from dailyops.time_utils import to_utc_z, to_day_str


class DeliveryRecord(db.Model):
    """
    One delivery of one product to one customer.

    IDEMPOTENCY: at most one row per (customer_id, inventory_id, delivery_day).
    The recorder checks for an existing row inside the insert transaction and
    the unique constraint is the backstop for concurrent twin requests.

    verification_id is stamped by the daily reconciliation run that certified
    this day's numbers.
    """
    __tablename__ = "delivery_records"
    __table_args__ = (
        db.UniqueConstraint(
            "customer_id", "inventory_id", "delivery_day", name="uq_delivery_customer_inventory_day"
        ),
        db.Index("ix_delivery_day_inventory", "delivery_day", "inventory_id"),
        db.Index("ix_delivery_worker_day", "worker_id", "delivery_day"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    worker_id = db.Column(db.Integer, db.ForeignKey("workers.id"), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey("inventory_records.id"), nullable=False)
    delivery_day = db.Column(db.Date, nullable=False)

    delivered_qty = db.Column(db.Integer, nullable=False)
    actor_login = db.Column(db.String(128), nullable=False)
    delivered_at = db.Column(db.DateTime(timezone=True), nullable=False)

    verification_id = db.Column(db.String(40), nullable=True, index=True)

    customer = db.relationship("Customer", backref=db.backref("deliveries", lazy=True))
    worker = db.relationship("Worker", backref=db.backref("deliveries", lazy=True))
    inventory = db.relationship("InventoryRecord", backref=db.backref("deliveries", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "worker_id": self.worker_id,
            "customer_id": self.customer_id,
            "inventory_id": self.inventory_id,
            "delivery_day": to_day_str(self.delivery_day),
            "delivered_qty": self.delivered_qty,
            "actor_login": self.actor_login,
            "delivered_at": to_utc_z(self.delivered_at),
            "verification_id": self.verification_id,
        }


class PaymentRecord(db.Model):
    """
    Money owed for a delivery. Created 1:1 with its DeliveryRecord in the
    same transaction.

    is_collected is derived at creation: a manually adjusted price is taken
    as paid on the spot, a standard price is collected later through billing.
    """
    __tablename__ = "payment_records"
    __table_args__ = (
        db.UniqueConstraint("delivery_id", name="uq_payment_delivery"),
        db.Index("ix_payment_day_inventory", "payment_day", "inventory_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    delivery_id = db.Column(db.Integer, db.ForeignKey("delivery_records.id"), nullable=False)
    worker_id = db.Column(db.Integer, db.ForeignKey("workers.id"), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    inventory_id = db.Column(db.Integer, db.ForeignKey("inventory_records.id"), nullable=False)
    payment_day = db.Column(db.Date, nullable=False)

    bill_paise = db.Column(db.Integer, nullable=False)
    is_collected = db.Column(db.Boolean, nullable=False, default=False)

    verification_id = db.Column(db.String(40), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    delivery = db.relationship("DeliveryRecord", backref=db.backref("payment", uselist=False, lazy=True))
    customer = db.relationship("Customer")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "delivery_id": self.delivery_id,
            "worker_id": self.worker_id,
            "customer_id": self.customer_id,
            "inventory_id": self.inventory_id,
            "payment_day": to_day_str(self.payment_day),
            "bill_paise": self.bill_paise,
            "is_collected": self.is_collected,
            "verification_id": self.verification_id,
        }


class CashInHandRecord(db.Model):
    """
    Cash a worker holds at the end of the day.

    reported_paise is the worker's own claim. actual_paise is only written by
    the reconciliation run, from the admin's count.
    """
    __tablename__ = "cash_in_hand_records"
    __table_args__ = (
        db.UniqueConstraint("worker_id", "cash_day", name="uq_cash_in_hand_worker_day"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    worker_id = db.Column(db.Integer, db.ForeignKey("workers.id"), nullable=False, index=True)
    cash_day = db.Column(db.Date, nullable=False, index=True)

    reported_paise = db.Column(db.Integer, nullable=False)
    actual_paise = db.Column(db.Integer, nullable=True)

    verification_id = db.Column(db.String(40), nullable=True)

    reported_at = db.Column(db.DateTime(timezone=True), nullable=False)

    worker = db.relationship("Worker", backref=db.backref("cash_records", lazy=True))

    @property
    def variance_paise(self) -> int | None:
        if self.actual_paise is None:
            return None
        return self.actual_paise - self.reported_paise

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "worker_id": self.worker_id,
            "cash_day": to_day_str(self.cash_day),
            "reported_paise": self.reported_paise,
            "actual_paise": self.actual_paise,
            "variance_paise": self.variance_paise,
            "verification_id": self.verification_id,
            "reported_at": to_utc_z(self.reported_at),
        }


class VerificationBatch(db.Model):
    """
    The identifier minted for one calendar day's reconciliation.

    One row per business_day; every verified row, delivery, payment and cash
    record certified that day carries this verification_id.
    """
    __tablename__ = "verification_batches"
    __table_args__ = (
        db.UniqueConstraint("business_day", name="uq_verification_batch_day"),
        db.UniqueConstraint("verification_id", name="uq_verification_batch_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    business_day = db.Column(db.Date, nullable=False)
    verification_id = db.Column(db.String(40), nullable=False)
    created_by = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)


class VerifiedDeliveryRecord(db.Model):
    """
    Admin-certified delivery line.

    KEY: (verification_id, worker_id, customer_id, inventory_id). A repeated
    verification of the same line updates the row in place.

    BILLING: billed/bill_id are owned by the billing aggregator. Once billed,
    the row is never aggregated into another bill.
    """
    __tablename__ = "verified_delivery_records"
    __table_args__ = (
        db.UniqueConstraint(
            "verification_id", "worker_id", "customer_id", "inventory_id",
            name="uq_verified_delivery_key",
        ),
        db.Index("ix_verified_customer_billed", "customer_id", "billed", "verified_at"),
        db.Index("ix_verified_at", "verified_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    verification_id = db.Column(db.String(40), nullable=False)
    worker_id = db.Column(db.Integer, db.ForeignKey("workers.id"), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    inventory_id = db.Column(db.Integer, db.ForeignKey("inventory_records.id"), nullable=False)

    product_name = db.Column(db.String(255), nullable=False)
    delivered_qty = db.Column(db.Integer, nullable=False)
    bill_paise = db.Column(db.Integer, nullable=False)
    is_collected = db.Column(db.Boolean, nullable=False, default=False)

    billed = db.Column(db.Boolean, nullable=False, default=False)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=True, index=True)

    verified_by = db.Column(db.String(128), nullable=False)
    verified_at = db.Column(db.DateTime(timezone=True), nullable=False)

    customer = db.relationship("Customer")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "verification_id": self.verification_id,
            "worker_id": self.worker_id,
            "customer_id": self.customer_id,
            "inventory_id": self.inventory_id,
            "product_name": self.product_name,
            "delivered_qty": self.delivered_qty,
            "bill_paise": self.bill_paise,
            "is_collected": self.is_collected,
            "billed": self.billed,
            "bill_id": self.bill_id,
            "verified_by": self.verified_by,
            "verified_at": to_utc_z(self.verified_at),
        }
