from __future__ import annotations

from ..extensions import db
from .base import LineItemMixin, SerializeMixin, TimestampMixin, TotalsMixin, serialize_value


class Invoice(SerializeMixin, TimestampMixin, TotalsMixin, db.Model):
    """
    Invoice document.

    Lifecycle: draft -> sent -> finalized -> paid, void from any non-paid
    state (see status_registry). Totals columns come from TotalsMixin and
    are recomputed on every save.
    """
    ENTITY_TYPE = "invoice"
    NUMBER_FIELD = "invoice_number"
    NUMBER_PREFIX = "INV"

    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(64), nullable=False, unique=True)
    status = db.Column(db.String(16), nullable=False, default="draft", index=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)
    job_id = db.Column(db.Integer, db.ForeignKey("jobs.id"), nullable=True, index=True)
    estimate_id = db.Column(db.Integer, db.ForeignKey("estimates.id"), nullable=True, index=True)

    issue_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    payment_terms = db.Column(db.String(32), nullable=False, default="net_30")
    bill_to_address = db.Column(db.Text, nullable=True)
    ship_to_address = db.Column(db.Text, nullable=True)
    notes_to_customer = db.Column(db.Text, nullable=True)
    internal_notes = db.Column(db.Text, nullable=True)

    # Status-entry timestamps
    sent_date = db.Column(db.DateTime(timezone=True), nullable=True)
    finalized_date = db.Column(db.DateTime(timezone=True), nullable=True)
    paid_date = db.Column(db.DateTime(timezone=True), nullable=True)
    voided_date = db.Column(db.DateTime(timezone=True), nullable=True)

    line_items = db.relationship(
        "InvoiceLineItem",
        backref="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineItem.sort_order",
        lazy=True,
    )
    adjustments = db.relationship(
        "InvoiceAdjustment",
        backref="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceAdjustment.sort_order",
        lazy=True,
    )

    def to_dict(self, include_children: bool = True) -> dict:
        data = super().to_dict()
        if include_children:
            data["line_items"] = [line.to_dict() for line in self.line_items]
            data["adjustments"] = [adj.to_dict() for adj in self.adjustments]
        return data


class InvoiceLineItem(LineItemMixin, db.Model):
    __tablename__ = "invoice_line_items"
    __table_args__ = {"sqlite_autoincrement": True}

    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
            "service_id": self.service_id,
            "sort_order": self.sort_order,
            "created_at": serialize_value(self.created_at),
        }


class InvoiceAdjustment(db.Model):
    """
    Ad-hoc charge or credit on an invoice.

    amount is signed (negative = credit). reason is mandatory for audit and
    is enforced by the adjustment aggregator before anything is persisted.
    """
    __tablename__ = "invoice_adjustments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    # transportation, fuel_surcharge, cod_affidavit_fee, storage, disposal, credit_discount, other
    adjustment_type = db.Column(db.String(32), nullable=False, default="other")
    amount = db.Column(db.Float, nullable=False, default=0.0)
    reason = db.Column(db.String(500), nullable=False)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "adjustment_type": self.adjustment_type,
            "amount": self.amount,
            "reason": self.reason,
            "sort_order": self.sort_order,
            "created_at": serialize_value(self.created_at),
        }
