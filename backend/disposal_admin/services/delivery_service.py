# Overview: Service-layer operations for sending invoices/estimates and recording customer responses.

from __future__ import annotations

from ..errors import PreconditionUnmet, ValidationError
from ..models import Estimate, Invoice
from ..time_utils import utcnow
from .concurrency import atomic, load_for_update
from .document_service import recompute_totals
from .lifecycle_service import apply_transition
from .mail_service import render_estimate_email, render_invoice_email, send_email


SENDABLE_INVOICE_STATUSES = frozenset({"draft", "sent", "finalized"})
ESTIMATE_RESPONSES = {"accept": "accepted", "decline": "cancelled"}


def _recipient(document, email: str | None) -> str:
    recipient = (email or document.customer_email or "").strip()
    if not recipient:
        raise ValidationError("A recipient email is required", details={"field": "email"})
    if document.status == "draft" and not document.customer_email:
        document.customer_email = recipient
    return recipient


def send_invoice(invoice_id: int, *, email: str | None = None, message: str | None = None) -> Invoice:
    """
    Email an invoice; a draft moves to sent, sent/finalized are re-sent.

    The status change commits only after the mail collaborator accepted the
    message; a delivery failure leaves the invoice as it was.
    """
    def _op():
        invoice = load_for_update(Invoice, invoice_id)
        if invoice.status not in SENDABLE_INVOICE_STATUSES:
            raise PreconditionUnmet(
                f"Invoice {invoice.invoice_number} is {invoice.status} and cannot be sent",
                details={"id": invoice.id, "status": invoice.status},
            )
        recipient = _recipient(invoice, email)
        if invoice.status == "draft":
            apply_transition(invoice, "invoice", "sent")
        recompute_totals(invoice)
        subject, body = render_invoice_email(invoice, message)
        send_email(recipient, subject, body)
        return invoice

    return atomic(_op, attempts=1)


def send_estimate(estimate_id: int, *, email: str | None = None, message: str | None = None) -> Estimate:
    def _op():
        estimate = load_for_update(Estimate, estimate_id)
        if estimate.status not in ("draft", "sent"):
            raise PreconditionUnmet(
                f"Estimate {estimate.estimate_number} is {estimate.status} and cannot be sent",
                details={"id": estimate.id, "status": estimate.status},
            )
        recipient = _recipient(estimate, email)
        if estimate.status == "draft":
            apply_transition(estimate, "estimate", "sent")
        recompute_totals(estimate)
        subject, body = render_estimate_email(estimate, message)
        send_email(recipient, subject, body)
        return estimate

    return atomic(_op, attempts=1)


def respond_to_estimate(estimate_id: int, action: str, customer_response: str | None = None) -> Estimate:
    """Customer accept/decline: sent -> accepted | cancelled, keeping their response."""
    target = ESTIMATE_RESPONSES.get((action or "").strip().lower())
    if target is None:
        raise ValidationError("action must be 'accept' or 'decline'", details={"field": "action"})

    def _op():
        estimate = load_for_update(Estimate, estimate_id)
        apply_transition(estimate, "estimate", target)
        estimate.customer_response = (customer_response or "").strip() or None
        estimate.response_date = utcnow()
        return estimate

    return atomic(_op)
