from __future__ import annotations

from ..extensions import db
from .base import SerializeMixin, TimestampMixin, serialize_value


PAYMENT_METHODS = frozenset({"cash", "check", "bank_transfer", "credit_card", "other"})


class Payment(SerializeMixin, TimestampMixin, db.Model):
    """
    Received customer payment, split across one or more invoices.

    DESIGN: Payments are separate from invoices to support:
    - Split payments (one payment settling several invoices)
    - Partial payments (deposits, instalments)
    - An audit trail of balance before/after each application
    """
    __tablename__ = "payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    payment_number = db.Column(db.String(64), nullable=False, unique=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=True)
    payment_date = db.Column(db.Date, nullable=False)
    payment_amount = db.Column(db.Float, nullable=False)
    payment_method = db.Column(db.String(32), nullable=False, default="other")
    reference_number = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    allocations = db.relationship(
        "PaymentAllocation",
        backref="payment",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["allocations"] = [a.to_dict() for a in self.allocations]
        return data


class PaymentAllocation(db.Model):
    __tablename__ = "payment_allocations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    payment_id = db.Column(db.Integer, db.ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    invoice_number = db.Column(db.String(64), nullable=False)
    amount_applied = db.Column(db.Float, nullable=False)
    balance_before = db.Column(db.Float, nullable=False)
    balance_after = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    invoice = db.relationship("Invoice", backref=db.backref("payment_allocations", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "payment_id": self.payment_id,
            "invoice_id": self.invoice_id,
            "invoice_number": self.invoice_number,
            "amount_applied": self.amount_applied,
            "balance_before": self.balance_before,
            "balance_after": self.balance_after,
            "created_at": serialize_value(self.created_at),
        }
