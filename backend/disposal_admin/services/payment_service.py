# Overview: Service-layer operations for payment; applies received payments to invoice balances.

"""
Payment Recording Service

DESIGN PRINCIPLES:
- Payments are separate from invoices (one payment, many allocations)
- Partial payments: an allocation never applies more than the balance due
- Audit trail: each allocation keeps balance before/after
- Settled invoices move to 'paid' through the lifecycle controller, so a
  'sent' invoice passes through 'finalized' and both dates are stamped
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError, PreconditionUnmet, ValidationError
from ..extensions import db
from ..models import Customer, Invoice, Payment, PaymentAllocation
from ..models.payments import PAYMENT_METHODS
from ..time_utils import today
from .concurrency import atomic, load_for_update
from .document_service import next_document_number, recompute_totals
from .lifecycle_service import apply_transition
from .line_items import to_int, to_number


PAYABLE_STATUSES = frozenset({"sent", "finalized"})

# Half a cent: below this the balance displays as 0.00
SETTLED_TOLERANCE = 0.005


def _parse_allocations(raw) -> list[tuple[int, float]]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("allocations must be a non-empty list", details={"field": "allocations"})
    parsed = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationError("allocations entries must be objects", details={"field": "allocations"})
        invoice_id = to_int(entry.get("invoice_id"), "invoice_id")
        amount = to_number(entry.get("amount_applied"), "amount_applied")
        if amount <= 0:
            raise ValidationError(
                "amount_applied must be positive",
                details={"field": "amount_applied", "invoice_id": invoice_id},
            )
        parsed.append((invoice_id, amount))
    return parsed


def _settle_if_paid(invoice: Invoice) -> None:
    if invoice.balance_due > SETTLED_TOLERANCE:
        return
    if invoice.status == "sent":
        apply_transition(invoice, "invoice", "finalized")
    apply_transition(invoice, "invoice", "paid")


def apply_to_invoice(payment: Payment, invoice: Invoice, requested: float) -> PaymentAllocation:
    """Apply min(requested, balance_due) and record the allocation."""
    if invoice.status not in PAYABLE_STATUSES:
        raise PreconditionUnmet(
            f"Invoice {invoice.invoice_number} is {invoice.status}; payments apply to sent or finalized invoices",
            details={"invoice_id": invoice.id, "status": invoice.status},
        )
    recompute_totals(invoice)
    balance_before = invoice.balance_due
    if balance_before <= SETTLED_TOLERANCE:
        raise PreconditionUnmet(
            f"Invoice {invoice.invoice_number} has no balance due",
            details={"invoice_id": invoice.id},
        )

    applied = min(requested, balance_before)
    invoice.amount_paid = (invoice.amount_paid or 0.0) + applied
    recompute_totals(invoice)

    allocation = PaymentAllocation(
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        amount_applied=applied,
        balance_before=balance_before,
        balance_after=invoice.balance_due,
    )
    payment.allocations.append(allocation)
    _settle_if_paid(invoice)
    return allocation


def record_payment(
    *,
    payment_amount,
    allocations,
    payment_date=None,
    payment_method: str = "other",
    customer_id: int | None = None,
    reference_number: str | None = None,
    notes: str | None = None,
) -> Payment:
    """
    Record a received payment and apply it to one or more invoices.

    Raises:
        ValidationError: non-positive amounts, or allocations exceeding payment_amount
        NotFoundError: unknown invoice or customer
        PreconditionUnmet: invoice not payable
    """
    amount = to_number(payment_amount, "payment_amount")
    if amount <= 0:
        raise ValidationError("payment_amount must be positive", details={"field": "payment_amount"})
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(
            f"payment_method must be one of: {', '.join(sorted(PAYMENT_METHODS))}",
            details={"field": "payment_method"},
        )
    parsed = _parse_allocations(allocations)
    requested_total = sum(a for _, a in parsed)
    if requested_total > amount + 1e-9:
        raise ValidationError(
            "Allocations exceed the payment amount",
            details={"payment_amount": amount, "allocated": requested_total},
        )

    def _op():
        customer_name = None
        if customer_id is not None:
            customer = db.session.get(Customer, customer_id)
            if customer is None:
                raise NotFoundError(f"Customer {customer_id} not found", details={"customer_id": customer_id})
            customer_name = customer.customer_name

        payment = Payment(
            payment_number=next_document_number(document_type="payment", prefix="PAY"),
            customer_id=customer_id,
            customer_name=customer_name,
            payment_date=payment_date or today(),
            payment_amount=amount,
            payment_method=payment_method,
            reference_number=reference_number,
            notes=notes,
        )
        db.session.add(payment)

        for invoice_id, requested in parsed:
            invoice = load_for_update(Invoice, invoice_id)
            if payment.customer_name is None:
                payment.customer_name = invoice.customer_name
            apply_to_invoice(payment, invoice, requested)

        db.session.flush()
        return payment

    payment = atomic(_op)
    current_app.logger.info(
        "Recorded payment %s for %.2f across %d invoice(s)",
        payment.payment_number,
        amount,
        len(parsed),
    )
    return payment


def list_payments(*, customer_id: int | None = None, invoice_id: int | None = None) -> list[Payment]:
    query = db.session.query(Payment)
    if customer_id is not None:
        query = query.filter(Payment.customer_id == customer_id)
    if invoice_id is not None:
        query = query.join(PaymentAllocation).filter(PaymentAllocation.invoice_id == invoice_id)
    return query.order_by(Payment.id.desc()).all()


def get_payment(payment_id: int) -> Payment:
    payment = db.session.get(Payment, payment_id)
    if payment is None:
        raise NotFoundError(f"Payment {payment_id} not found", details={"id": payment_id})
    return payment
