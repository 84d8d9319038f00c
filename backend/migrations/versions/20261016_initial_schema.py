"""Initial daily operations schema

Revision ID: 20261016_initial
Revises:
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261016_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(128), nullable=False),
        sa.Column("last_name", sa.String(128), nullable=True),
        sa.Column("classification", sa.String(8), nullable=False, server_default="B2C"),
        sa.Column("address1", sa.String(255), nullable=False, server_default=""),
        sa.Column("address2", sa.String(255), nullable=True),
        sa.Column("city", sa.String(128), nullable=True),
        sa.Column("pincode", sa.String(16), nullable=True),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("customers", schema=None) as batch_op:
        batch_op.create_index("ix_customers_active", ["is_active"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("current_price_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_products_name"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index("ix_products_is_active", ["is_active"], unique=False)

    op.create_table(
        "workers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(128), nullable=False),
        sa.Column("last_name", sa.String(128), nullable=False, server_default=""),
        sa.Column("phone_number", sa.String(32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("workers", schema=None) as batch_op:
        batch_op.create_index("ix_workers_is_active", ["is_active"], unique=False)

    op.create_table(
        "customer_products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("from_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("thru_date", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("customer_products", schema=None) as batch_op:
        batch_op.create_index("ix_customer_products_product_active", ["product_id", "thru_date"], unique=False)
        batch_op.create_index("ix_customer_products_customer_product", ["customer_id", "product_id"], unique=False)

    op.create_table(
        "worker_customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("sequence_number", sa.Integer(), nullable=True),
        sa.Column("from_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("thru_date", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["worker_id"], ["workers.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("worker_customers", schema=None) as batch_op:
        batch_op.create_index("ix_worker_customers_worker_active", ["worker_id", "thru_date"], unique=False)
        batch_op.create_index("ix_worker_customers_customer_id", ["customer_id"], unique=False)

    op.create_table(
        "delivery_charges",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("charge_paise", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "inventory_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("business_day", sa.Date(), nullable=False),
        sa.Column("ordered_qty", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("received_qty", sa.Integer(), nullable=True),
        sa.Column("remaining_qty", sa.Integer(), nullable=True),
        sa.Column("last_updated_by", sa.String(128), nullable=True),
        sa.Column("last_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", "business_day", name="uq_inventory_product_day"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("inventory_records", schema=None) as batch_op:
        batch_op.create_index("ix_inventory_records_product_id", ["product_id"], unique=False)
        batch_op.create_index("ix_inventory_day", ["business_day"], unique=False)

    op.create_table(
        "worker_inventory_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.Integer(), nullable=False),
        sa.Column("inventory_id", sa.Integer(), nullable=False),
        sa.Column("activity_day", sa.Date(), nullable=False),
        sa.Column("picked_qty", sa.Integer(), nullable=True),
        sa.Column("remaining_qty", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["worker_id"], ["workers.id"]),
        sa.ForeignKeyConstraint(["inventory_id"], ["inventory_records.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("worker_id", "inventory_id", "activity_day", name="uq_worker_inventory_worker_inv_day"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("worker_inventory_records", schema=None) as batch_op:
        batch_op.create_index("ix_worker_inventory_records_inventory_id", ["inventory_id"], unique=False)
        batch_op.create_index("ix_worker_inventory_worker_day", ["worker_id", "activity_day"], unique=False)

    op.create_table(
        "delivery_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("inventory_id", sa.Integer(), nullable=False),
        sa.Column("delivery_day", sa.Date(), nullable=False),
        sa.Column("delivered_qty", sa.Integer(), nullable=False),
        sa.Column("actor_login", sa.String(128), nullable=False),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("verification_id", sa.String(40), nullable=True),
        sa.ForeignKeyConstraint(["worker_id"], ["workers.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["inventory_id"], ["inventory_records.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("customer_id", "inventory_id", "delivery_day", name="uq_delivery_customer_inventory_day"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("delivery_records", schema=None) as batch_op:
        batch_op.create_index("ix_delivery_records_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_delivery_records_verification_id", ["verification_id"], unique=False)
        batch_op.create_index("ix_delivery_day_inventory", ["delivery_day", "inventory_id"], unique=False)
        batch_op.create_index("ix_delivery_worker_day", ["worker_id", "delivery_day"], unique=False)

    op.create_table(
        "payment_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("delivery_id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("inventory_id", sa.Integer(), nullable=False),
        sa.Column("payment_day", sa.Date(), nullable=False),
        sa.Column("bill_paise", sa.Integer(), nullable=False),
        sa.Column("is_collected", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("verification_id", sa.String(40), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["delivery_id"], ["delivery_records.id"]),
        sa.ForeignKeyConstraint(["worker_id"], ["workers.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["inventory_id"], ["inventory_records.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("delivery_id", name="uq_payment_delivery"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("payment_records", schema=None) as batch_op:
        batch_op.create_index("ix_payment_records_customer_id", ["customer_id"], unique=False)
        batch_op.create_index("ix_payment_records_verification_id", ["verification_id"], unique=False)
        batch_op.create_index("ix_payment_day_inventory", ["payment_day", "inventory_id"], unique=False)

    op.create_table(
        "cash_in_hand_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.Integer(), nullable=False),
        sa.Column("cash_day", sa.Date(), nullable=False),
        sa.Column("reported_paise", sa.Integer(), nullable=False),
        sa.Column("actual_paise", sa.Integer(), nullable=True),
        sa.Column("verification_id", sa.String(40), nullable=True),
        sa.Column("reported_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["worker_id"], ["workers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("worker_id", "cash_day", name="uq_cash_in_hand_worker_day"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("cash_in_hand_records", schema=None) as batch_op:
        batch_op.create_index("ix_cash_in_hand_records_worker_id", ["worker_id"], unique=False)
        batch_op.create_index("ix_cash_in_hand_records_cash_day", ["cash_day"], unique=False)

    op.create_table(
        "verification_batches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("business_day", sa.Date(), nullable=False),
        sa.Column("verification_id", sa.String(40), nullable=False),
        sa.Column("created_by", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("business_day", name="uq_verification_batch_day"),
        sa.UniqueConstraint("verification_id", name="uq_verification_batch_id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "bills",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("bill_number", sa.String(32), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("subtotal_paise", sa.Integer(), nullable=False),
        sa.Column("delivery_charges_paise", sa.Integer(), nullable=True),
        sa.Column("total_amount_paise", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="GENERATED"),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("file_path", sa.String(255), nullable=True),
        sa.Column("created_by", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("bill_number", name="uq_bills_number"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("bills", schema=None) as batch_op:
        batch_op.create_index("ix_bills_status", ["status"], unique=False)
        batch_op.create_index("ix_bills_customer_created", ["customer_id", "created_at"], unique=False)

    op.create_table(
        "verified_delivery_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("verification_id", sa.String(40), nullable=False),
        sa.Column("worker_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("inventory_id", sa.Integer(), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("delivered_qty", sa.Integer(), nullable=False),
        sa.Column("bill_paise", sa.Integer(), nullable=False),
        sa.Column("is_collected", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("billed", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("bill_id", sa.Integer(), nullable=True),
        sa.Column("verified_by", sa.String(128), nullable=False),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["worker_id"], ["workers.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["inventory_id"], ["inventory_records.id"]),
        sa.ForeignKeyConstraint(["bill_id"], ["bills.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "verification_id", "worker_id", "customer_id", "inventory_id",
            name="uq_verified_delivery_key",
        ),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("verified_delivery_records", schema=None) as batch_op:
        batch_op.create_index("ix_verified_delivery_records_bill_id", ["bill_id"], unique=False)
        batch_op.create_index("ix_verified_customer_billed", ["customer_id", "billed", "verified_at"], unique=False)
        batch_op.create_index("ix_verified_at", ["verified_at"], unique=False)

    op.create_table(
        "document_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("document_type", sa.String(32), nullable=False),
        sa.Column("scope_key", sa.String(32), nullable=False),
        sa.Column("next_number", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("document_type", "scope_key", name="uq_doc_sequences_type_scope"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("document_sequences", schema=None) as batch_op:
        batch_op.create_index("ix_document_sequences_document_type", ["document_type"], unique=False)


def downgrade():
    op.drop_table("document_sequences")
    op.drop_table("verified_delivery_records")
    op.drop_table("bills")
    op.drop_table("verification_batches")
    op.drop_table("cash_in_hand_records")
    op.drop_table("payment_records")
    op.drop_table("delivery_records")
    op.drop_table("worker_inventory_records")
    op.drop_table("inventory_records")
    op.drop_table("delivery_charges")
    op.drop_table("worker_customers")
    op.drop_table("customer_products")
    op.drop_table("workers")
    op.drop_table("products")
    op.drop_table("customers")
