from __future__ import annotations

from ..extensions import db
from dailyops.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data.

    Profile management lives outside this service; the reconciliation core
    only reads customers to validate deliveries and to address bills.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_active", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    first_name = db.Column(db.String(128), nullable=False)
    last_name = db.Column(db.String(128), nullable=True)

    # B2B or B2C; used for the daily delivery summary split
    classification = db.Column(db.String(8), nullable=False, default="B2C")

    address1 = db.Column(db.String(255), nullable=False, default="")
    address2 = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(128), nullable=True)
    pincode = db.Column(db.String(16), nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "classification": self.classification,
            "address1": self.address1,
            "address2": self.address2,
            "city": self.city,
            "pincode": self.pincode,
            "phone_number": self.phone_number,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_products_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # Authoritative storage in paise (frontend may only format for display)
    current_price_paise = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "current_price_paise": self.current_price_paise,
            "is_active": self.is_active,
        }


class Worker(db.Model):
    """Delivery worker. Picks stock in the morning, delivers, reports cash."""
    __tablename__ = "workers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(128), nullable=False)
    last_name = db.Column(db.String(128), nullable=False, default="")
    phone_number = db.Column(db.String(32), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone_number": self.phone_number,
            "is_active": self.is_active,
        }


class CustomerProduct(db.Model):
    """
    Standing daily subscription of a customer to a product.

    HISTORY: rows are never deleted. Ending a subscription sets thru_date,
    and re-subscribing creates a new row, so past demand stays explainable.

    ACTIVE: thru_date IS NULL or thru_date > reference time.
    """
    __tablename__ = "customer_products"
    __table_args__ = (
        db.Index("ix_customer_products_product_active", "product_id", "thru_date"),
        db.Index("ix_customer_products_customer_product", "customer_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=1)

    from_date = db.Column(db.DateTime(timezone=True), nullable=False)
    thru_date = db.Column(db.DateTime(timezone=True), nullable=True)

    customer = db.relationship("Customer", backref=db.backref("subscriptions", lazy=True))
    product = db.relationship("Product", backref=db.backref("subscriptions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "from_date": to_utc_z(self.from_date),
            "thru_date": to_utc_z(self.thru_date),
        }


class WorkerCustomer(db.Model):
    """
    Delivery route assignment of a customer to a worker.

    Same from/thru history as CustomerProduct. sequence_number is the
    customer's stop on the worker's route, when one has been set.
    """
    __tablename__ = "worker_customers"
    __table_args__ = (
        db.Index("ix_worker_customers_worker_active", "worker_id", "thru_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    worker_id = db.Column(db.Integer, db.ForeignKey("workers.id"), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    sequence_number = db.Column(db.Integer, nullable=True)

    from_date = db.Column(db.DateTime(timezone=True), nullable=False)
    thru_date = db.Column(db.DateTime(timezone=True), nullable=True)

    worker = db.relationship("Worker", backref=db.backref("customer_assignments", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("worker_assignments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "worker_id": self.worker_id,
            "worker_name": self.worker.full_name if self.worker else None,
            "customer_id": self.customer_id,
            "customer_name": self.customer.full_name if self.customer else None,
            "sequence_number": self.sequence_number,
            "from_date": to_utc_z(self.from_date),
            "thru_date": to_utc_z(self.thru_date),
        }


class DeliveryCharge(db.Model):
    """Single-row table holding the global delivery charge added to bills on request."""
    __tablename__ = "delivery_charges"

    id = db.Column(db.Integer, primary_key=True)
    charge_paise = db.Column(db.Integer, nullable=False, default=0)
