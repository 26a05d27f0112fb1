from __future__ import annotations

from ..extensions import db
from .base import SerializeMixin, TimestampMixin


EXPENSE_TYPES = frozenset({"transport", "packaging", "equipment", "labor", "materials", "utilities", "other"})
EXPENSE_PAYMENT_STATUSES = frozenset({"not_ready", "pending", "paid"})
EXPENSE_PAYMENT_METHODS = frozenset({"bank_transfer", "check", "cash", "credit_card", "other"})


class Expense(SerializeMixin, TimestampMixin, db.Model):
    """
    Vendor expense, optionally linked to a job.

    Lifecycle: draft -> submitted -> approved -> archived, with
    submitted -> draft on rejection. Fully locked from approved onward.
    """
    ENTITY_TYPE = "expense"
    NUMBER_FIELD = "expense_number"
    NUMBER_PREFIX = "EXP"

    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_status_date", "status", "expense_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    expense_number = db.Column(db.String(64), nullable=False, unique=True)
    status = db.Column(db.String(16), nullable=False, default="draft", index=True)

    expense_type = db.Column(db.String(32), nullable=False)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=True, index=True)
    vendor_name = db.Column(db.String(255), nullable=False)
    expense_date = db.Column(db.Date, nullable=False)
    amount = db.Column(db.Float, nullable=False, default=0.0)
    description = db.Column(db.Text, nullable=False)

    payment_status = db.Column(db.String(16), nullable=False, default="not_ready")
    payment_date = db.Column(db.Date, nullable=True)
    payment_method = db.Column(db.String(32), nullable=True)

    job_id = db.Column(db.Integer, db.ForeignKey("jobs.id"), nullable=True, index=True)
    purchase_order_number = db.Column(db.String(64), nullable=True)
    # [{filename, url, uploaded_at}] pointing at /api/upload results
    attachments = db.Column(db.JSON, nullable=False, default=list)

    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    archived_at = db.Column(db.DateTime(timezone=True), nullable=True)

    vendor = db.relationship("Vendor", backref=db.backref("expenses", lazy=True))
    job = db.relationship("Job", backref=db.backref("expenses", lazy=True))
