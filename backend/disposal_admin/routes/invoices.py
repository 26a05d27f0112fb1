# Overview: Flask API routes for invoices; document surface plus email delivery.

from flask import Blueprint

from ..decorators import json_body, json_endpoint, ok
from ..errors import ValidationError
from ..models.records import PAYMENT_TERMS
from ..services import delivery_service
from ..services.line_items import to_int
from .documents import document_policy, register_document_routes


INVOICE_POLICY = document_policy(
    "invoice",
    writable_fields={
        "customer_id", "customer_name", "customer_email", "job_id", "estimate_id",
        "issue_date", "due_date", "payment_terms", "bill_to_address", "ship_to_address",
        "notes_to_customer", "internal_notes",
        "discount_type", "discount_value", "tax_rate", "shipping_amount",
    },
    choices={"payment_terms": PAYMENT_TERMS},
)

invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.post("/send")
@json_endpoint("send invoice")
def send_invoice_route():
    """
    Email an invoice to the customer.

    Request body: {"invoiceId": 1, "email": "ap@customer.test", "message": "..."}

    A draft invoice moves to sent once the message is accepted for delivery;
    sent and finalized invoices are simply re-sent.
    """
    payload = json_body()
    if payload.get("invoiceId") is None:
        raise ValidationError("invoiceId is required", details={"field": "invoiceId"})
    invoice = delivery_service.send_invoice(
        to_int(payload.get("invoiceId"), "invoiceId"),
        email=payload.get("email"),
        message=payload.get("message"),
    )
    return ok(invoice.to_dict())


register_document_routes(invoices_bp, "invoice", INVOICE_POLICY)
