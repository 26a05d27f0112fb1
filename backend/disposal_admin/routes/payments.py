# Overview: Flask API routes for received payments.

"""
Payment Routes

- POST /api/payments   record a payment and apply it to invoices
- GET  /api/payments   list payments (customer_id, invoice_id filters)
- GET  /api/payments/{id}

Request body for POST:
{
    "payment_amount": 150.0,
    "payment_date": "2026-03-01",          // optional, defaults to today
    "payment_method": "check",
    "customer_id": 3,                      // optional
    "reference_number": "CHK-1001",
    "notes": "...",
    "allocations": [{"invoice_id": 7, "amount_applied": 150.0}]
}
"""

from flask import Blueprint, request

from ..decorators import json_body, json_endpoint, ok
from ..errors import ValidationError
from ..services import payment_service
from ..services.line_items import to_int
from ..time_utils import parse_iso_date


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


def _optional_date(value):
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValidationError("payment_date must be an ISO-8601 date", details={"field": "payment_date"})
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError("payment_date must be an ISO-8601 date", details={"field": "payment_date"}) from None


@payments_bp.post("")
@json_endpoint("record payment")
def record_payment_route():
    payload = json_body()
    customer_id = payload.get("customer_id")
    payment = payment_service.record_payment(
        payment_amount=payload.get("payment_amount"),
        allocations=payload.get("allocations"),
        payment_date=_optional_date(payload.get("payment_date")),
        payment_method=payload.get("payment_method") or "other",
        customer_id=None if customer_id is None else to_int(customer_id, "customer_id"),
        reference_number=payload.get("reference_number"),
        notes=payload.get("notes"),
    )
    return ok(payment.to_dict(), 201)


@payments_bp.get("")
@json_endpoint("list payments")
def list_payments_route():
    payments = payment_service.list_payments(
        customer_id=request.args.get("customer_id", type=int),
        invoice_id=request.args.get("invoice_id", type=int),
    )
    return ok([p.to_dict() for p in payments], count=len(payments))


@payments_bp.get("/<int:payment_id>")
@json_endpoint("load payment")
def get_payment_route(payment_id: int):
    return ok(payment_service.get_payment(payment_id).to_dict())
