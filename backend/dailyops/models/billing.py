from __future__ import annotations

from ..extensions import db
from dailyops.time_utils import to_utc_z, to_day_str


BILL_STATUS_GENERATED = "GENERATED"
BILL_STATUS_PAID = "PAID"


class Bill(db.Model):
    """
    Customer bill for a period of verified deliveries.

    LIFECYCLE:
    - DRAFT: preview only, never persisted
    - GENERATED: persisted, unpaid; consumed rows are billed=true
    - PAID: terminal; consumed rows are marked collected

    total_amount_paise is the grand total (subtotal plus delivery charges).
    """
    __tablename__ = "bills"
    __table_args__ = (
        db.UniqueConstraint("bill_number", name="uq_bills_number"),
        db.Index("ix_bills_customer_created", "customer_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_number = db.Column(db.String(32), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)

    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)

    subtotal_paise = db.Column(db.Integer, nullable=False)
    delivery_charges_paise = db.Column(db.Integer, nullable=True)
    total_amount_paise = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=BILL_STATUS_GENERATED, index=True)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Filename of the rendered document inside BILL_STORAGE_DIR
    file_path = db.Column(db.String(255), nullable=True)

    created_by = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    customer = db.relationship("Customer", backref=db.backref("bills", lazy=True))
    deliveries = db.relationship("VerifiedDeliveryRecord", backref=db.backref("bill", lazy=True), lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bill_number": self.bill_number,
            "customer_id": self.customer_id,
            "customer_name": self.customer.full_name if self.customer else None,
            "start_date": to_day_str(self.start_date),
            "end_date": to_day_str(self.end_date),
            "subtotal_paise": self.subtotal_paise,
            "delivery_charges_paise": self.delivery_charges_paise,
            "total_amount_paise": self.total_amount_paise,
            "status": self.status,
            "is_paid": self.is_paid,
            "paid_at": to_utc_z(self.paid_at),
            "file_path": self.file_path,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class DocumentSequence(db.Model):
    """
    Atomic document number sequences.

    WHY: Prevent race conditions when generating human-facing numbers.
    scope_key partitions a sequence, e.g. the year for bill numbers.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", "scope_key", name="uq_doc_sequences_type_scope"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, index=True)
    scope_key = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
