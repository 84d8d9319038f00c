from __future__ import annotations

from ..extensions import db
from dailyops.time_utils import to_utc_z, to_day_str


class InventoryRecord(db.Model):
    """
    Depot stock for one product on one calendar day.

    LIFECYCLE (per business_day):
    1. ordered_qty written by the demand calculator at day start (recomputed
       whenever subscriptions for the product change)
    2. received_qty set once by admin when stock arrives
    3. remaining_qty set once at day end

    KEY: (product_id, business_day) is unique. Workers pick against the
    row's id (inventory_id).
    """
    __tablename__ = "inventory_records"
    __table_args__ = (
        db.UniqueConstraint("product_id", "business_day", name="uq_inventory_product_day"),
        db.Index("ix_inventory_day", "business_day"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    business_day = db.Column(db.Date, nullable=False)

    ordered_qty = db.Column(db.Integer, nullable=False, default=0)
    received_qty = db.Column(db.Integer, nullable=True)
    remaining_qty = db.Column(db.Integer, nullable=True)

    last_updated_by = db.Column(db.String(128), nullable=True)
    last_updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    product = db.relationship("Product", backref=db.backref("inventory_records", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "business_day": to_day_str(self.business_day),
            "ordered_qty": self.ordered_qty,
            "received_qty": self.received_qty,
            "remaining_qty": self.remaining_qty,
            "last_updated_by": self.last_updated_by,
            "last_updated_at": to_utc_z(self.last_updated_at),
        }


class WorkerInventoryRecord(db.Model):
    """
    What one worker carried out for one inventory row on one day.

    INVARIANTS:
    - One row per (worker_id, inventory_id, activity_day)
    - remaining_qty is only set after picked_qty exists
    - remaining_qty <= picked_qty
    """
    __tablename__ = "worker_inventory_records"
    __table_args__ = (
        db.UniqueConstraint(
            "worker_id", "inventory_id", "activity_day", name="uq_worker_inventory_worker_inv_day"
        ),
        db.Index("ix_worker_inventory_worker_day", "worker_id", "activity_day"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    worker_id = db.Column(db.Integer, db.ForeignKey("workers.id"), nullable=False)
    inventory_id = db.Column(db.Integer, db.ForeignKey("inventory_records.id"), nullable=False, index=True)
    activity_day = db.Column(db.Date, nullable=False)

    picked_qty = db.Column(db.Integer, nullable=True)
    remaining_qty = db.Column(db.Integer, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    worker = db.relationship("Worker", backref=db.backref("inventory_records", lazy=True))
    inventory = db.relationship("InventoryRecord", backref=db.backref("worker_records", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "worker_id": self.worker_id,
            "inventory_id": self.inventory_id,
            "product_name": self.inventory.product.name if self.inventory and self.inventory.product else None,
            "activity_day": to_day_str(self.activity_day),
            "picked_qty": self.picked_qty,
            "remaining_qty": self.remaining_qty,
            "updated_at": to_utc_z(self.updated_at),
        }
