"""Initial schema: master records, documents, owned children, payments

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


NOW = sa.text("(CURRENT_TIMESTAMP)")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
    ]


def _money(name):
    return sa.Column(name, sa.Float(), nullable=False, server_default=sa.text("0"))


def _totals():
    return [
        sa.Column("discount_type", sa.String(16), nullable=False, server_default="percent"),
        _money("discount_value"),
        _money("tax_rate"),
        _money("shipping_amount"),
        _money("subtotal"),
        _money("discount_amount"),
        _money("discount_percent"),
        _money("adjustments_total"),
        _money("taxable_subtotal"),
        _money("tax_amount"),
        _money("total_amount"),
        _money("amount_paid"),
        _money("balance_due"),
    ]


def _line_item_columns():
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        _money("quantity"),
        _money("unit_price"),
        _money("line_total"),
        sa.Column("service_id", sa.Integer(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
    ]


def upgrade():
    op.create_table(
        "document_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("document_type", sa.String(32), nullable=False),
        sa.Column("next_number", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("document_type", name="uq_doc_sequences_type"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_document_sequences_document_type", "document_sequences", ["document_type"])

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("billing_address", sa.Text(), nullable=True),
        sa.Column("service_address", sa.Text(), nullable=True),
        sa.Column("payment_terms", sa.String(32), nullable=False, server_default="net_30"),
        sa.Column("tax_exempt", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("customer_status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_customers_email", "customers", ["email"])
    op.create_index("ix_customers_status", "customers", ["customer_status"])

    op.create_table(
        "vendors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vendor_name", sa.String(255), nullable=False),
        sa.Column("contact_person", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(64), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("payment_terms", sa.String(32), nullable=False, server_default="net_30"),
        sa.Column("vendor_category", sa.String(32), nullable=False, server_default="other"),
        sa.Column("tax_id", sa.String(64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("vendor_status", sa.String(16), nullable=False, server_default="active"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_vendors_vendor_name", "vendors", ["vendor_name"])
    op.create_index("ix_vendors_status", "vendors", ["vendor_status"])

    op.create_table(
        "services",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("service_name", sa.String(255), nullable=False),
        sa.Column("item_type", sa.String(16), nullable=False, server_default="service"),
        sa.Column("service_category", sa.String(64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("pricing_unit", sa.String(32), nullable=False),
        _money("default_rate"),
        _money("estimated_cost_per_unit"),
        sa.Column("is_taxable", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("allow_price_override_on_invoice", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("service_status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("sku", sa.String(64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "customer_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("service_type", sa.String(64), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("preferred_date", sa.Date(), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("request_status", sa.String(16), nullable=False, server_default="new"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_customer_requests_customer_id", "customer_requests", ["customer_id"])
    op.create_index("ix_customer_requests_request_status", "customer_requests", ["request_status"])

    op.create_table(
        "estimates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("estimate_number", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="draft"),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=True),
        sa.Column("estimate_date", sa.Date(), nullable=False),
        sa.Column("valid_until_date", sa.Date(), nullable=False),
        sa.Column("destruction_type", sa.String(64), nullable=True),
        sa.Column("primary_service_location_id", sa.String(64), nullable=True),
        sa.Column("job_reference", sa.String(128), nullable=True),
        sa.Column("estimated_volume_weight", sa.String(128), nullable=True),
        _money("allowed_variance"),
        sa.Column("what_is_included", sa.Text(), nullable=True),
        sa.Column("what_is_excluded", sa.Text(), nullable=True),
        sa.Column("note_to_customer", sa.Text(), nullable=True),
        sa.Column("memo_on_statement", sa.Text(), nullable=True),
        sa.Column("internal_notes", sa.Text(), nullable=True),
        sa.Column("customer_response", sa.Text(), nullable=True),
        sa.Column("response_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sent_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accepted_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column("updated_by", sa.String(255), nullable=True),
        *_totals(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("estimate_number"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_estimates_status", "estimates", ["status"])
    op.create_index("ix_estimates_customer_id", "estimates", ["customer_id"])
    op.create_index("ix_estimates_status_created", "estimates", ["status", "created_at"])

    op.create_table(
        "estimate_line_items",
        *_line_item_columns(),
        sa.Column("estimate_id", sa.Integer(), nullable=False),
        sa.Column("item_type", sa.String(16), nullable=False, server_default="service"),
        sa.ForeignKeyConstraint(["estimate_id"], ["estimates.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_estimate_line_items_estimate_id", "estimate_line_items", ["estimate_id"])
    op.create_index("ix_estimate_line_items_service_id", "estimate_line_items", ["service_id"])

    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("job_number", sa.String(64), nullable=False),
        sa.Column("job_name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="scheduled"),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("estimate_id", sa.Integer(), nullable=True),
        sa.Column("estimate_number", sa.String(64), nullable=True),
        sa.Column("job_location_id", sa.String(64), nullable=True),
        sa.Column("scheduled_date", sa.Date(), nullable=True),
        sa.Column("actual_start_date", sa.Date(), nullable=True),
        sa.Column("actual_completion_date", sa.Date(), nullable=True),
        sa.Column("destruction_method", sa.String(32), nullable=False, server_default="mechanical_destruction"),
        sa.Column("destruction_description", sa.Text(), nullable=True),
        sa.Column("requires_affidavit", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("special_handling_notes", sa.Text(), nullable=True),
        sa.Column("started_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_timestamp", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["estimate_id"], ["estimates.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("job_number"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_jobs_status", "jobs", ["status"])
    op.create_index("ix_jobs_customer_id", "jobs", ["customer_id"])
    op.create_index("ix_jobs_estimate_id", "jobs", ["estimate_id"])
    op.create_index("ix_jobs_status_scheduled", "jobs", ["status", "scheduled_date"])

    op.create_table(
        "job_materials",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("job_id", sa.Integer(), nullable=False),
        sa.Column("material_type", sa.String(32), nullable=False, server_default="other"),
        sa.Column("packaging_type", sa.String(32), nullable=False, server_default="other"),
        _money("quantity"),
        sa.Column("unit_of_measure", sa.String(16), nullable=False, server_default="units"),
        sa.Column("container_type", sa.String(64), nullable=True),
        sa.Column("final_disposition", sa.String(32), nullable=False, server_default="other"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["job_id"], ["jobs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_job_materials_job_id", "job_materials", ["job_id"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("invoice_number", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="draft"),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=True),
        sa.Column("job_id", sa.Integer(), nullable=True),
        sa.Column("estimate_id", sa.Integer(), nullable=True),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("payment_terms", sa.String(32), nullable=False, server_default="net_30"),
        sa.Column("bill_to_address", sa.Text(), nullable=True),
        sa.Column("ship_to_address", sa.Text(), nullable=True),
        sa.Column("notes_to_customer", sa.Text(), nullable=True),
        sa.Column("internal_notes", sa.Text(), nullable=True),
        sa.Column("sent_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("finalized_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("voided_date", sa.DateTime(timezone=True), nullable=True),
        *_totals(),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["job_id"], ["jobs.id"]),
        sa.ForeignKeyConstraint(["estimate_id"], ["estimates.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("invoice_number"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_invoices_status", "invoices", ["status"])
    op.create_index("ix_invoices_customer_id", "invoices", ["customer_id"])
    op.create_index("ix_invoices_job_id", "invoices", ["job_id"])
    op.create_index("ix_invoices_estimate_id", "invoices", ["estimate_id"])
    op.create_index("ix_invoices_status_created", "invoices", ["status", "created_at"])

    op.create_table(
        "invoice_line_items",
        *_line_item_columns(),
        sa.Column("invoice_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_invoice_line_items_invoice_id", "invoice_line_items", ["invoice_id"])
    op.create_index("ix_invoice_line_items_service_id", "invoice_line_items", ["service_id"])

    op.create_table(
        "invoice_adjustments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("invoice_id", sa.Integer(), nullable=False),
        sa.Column("adjustment_type", sa.String(32), nullable=False, server_default="other"),
        _money("amount"),
        sa.Column("reason", sa.String(500), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_invoice_adjustments_invoice_id", "invoice_adjustments", ["invoice_id"])

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("expense_number", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="draft"),
        sa.Column("expense_type", sa.String(32), nullable=False),
        sa.Column("vendor_id", sa.Integer(), nullable=True),
        sa.Column("vendor_name", sa.String(255), nullable=False),
        sa.Column("expense_date", sa.Date(), nullable=False),
        _money("amount"),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("payment_status", sa.String(16), nullable=False, server_default="not_ready"),
        sa.Column("payment_date", sa.Date(), nullable=True),
        sa.Column("payment_method", sa.String(32), nullable=True),
        sa.Column("job_id", sa.Integer(), nullable=True),
        sa.Column("purchase_order_number", sa.String(64), nullable=True),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"]),
        sa.ForeignKeyConstraint(["job_id"], ["jobs.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("expense_number"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_expenses_status", "expenses", ["status"])
    op.create_index("ix_expenses_vendor_id", "expenses", ["vendor_id"])
    op.create_index("ix_expenses_job_id", "expenses", ["job_id"])
    op.create_index("ix_expenses_status_date", "expenses", ["status", "expense_date"])

    op.create_table(
        "affidavits",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("affidavit_number", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("job_id", sa.Integer(), nullable=False),
        sa.Column("job_reference", sa.String(64), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("description_of_materials", sa.Text(), nullable=True),
        sa.Column("description_of_process", sa.Text(), nullable=True),
        sa.Column("authorized_by", sa.String(255), nullable=True),
        sa.Column("witness_name", sa.String(255), nullable=True),
        sa.Column("media_references", sa.JSON(), nullable=False),
        sa.Column("date_issued", sa.DateTime(timezone=True), nullable=True),
        sa.Column("locked_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_by", sa.String(255), nullable=True),
        sa.Column("revocation_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["job_id"], ["jobs.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("affidavit_number"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_affidavits_status", "affidavits", ["status"])
    op.create_index("ix_affidavits_job_id", "affidavits", ["job_id"])

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("payment_number", sa.String(64), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("payment_amount", sa.Float(), nullable=False),
        sa.Column("payment_method", sa.String(32), nullable=False, server_default="other"),
        sa.Column("reference_number", sa.String(128), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("payment_number"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_payments_customer_id", "payments", ["customer_id"])

    op.create_table(
        "payment_allocations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("payment_id", sa.Integer(), nullable=False),
        sa.Column("invoice_id", sa.Integer(), nullable=False),
        sa.Column("invoice_number", sa.String(64), nullable=False),
        sa.Column("amount_applied", sa.Float(), nullable=False),
        sa.Column("balance_before", sa.Float(), nullable=False),
        sa.Column("balance_after", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["payment_id"], ["payments.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_payment_allocations_payment_id", "payment_allocations", ["payment_id"])
    op.create_index("ix_payment_allocations_invoice_id", "payment_allocations", ["invoice_id"])


def downgrade():
    op.drop_table("payment_allocations")
    op.drop_table("payments")
    op.drop_table("affidavits")
    op.drop_table("expenses")
    op.drop_table("invoice_adjustments")
    op.drop_table("invoice_line_items")
    op.drop_table("invoices")
    op.drop_table("job_materials")
    op.drop_table("jobs")
    op.drop_table("estimate_line_items")
    op.drop_table("estimates")
    op.drop_table("customer_requests")
    op.drop_table("services")
    op.drop_table("vendors")
    op.drop_table("customers")
    op.drop_table("document_sequences")
