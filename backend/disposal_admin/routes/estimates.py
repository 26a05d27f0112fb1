# Overview: Flask API routes for estimates; document surface plus sending and customer response.

from flask import Blueprint

from ..decorators import json_body, json_endpoint, ok
from ..errors import ValidationError
from ..services import delivery_service
from ..services.line_items import to_int
from .documents import document_policy, register_document_routes


ESTIMATE_POLICY = document_policy(
    "estimate",
    writable_fields={
        "customer_id", "customer_name", "customer_email", "estimate_date", "valid_until_date",
        "destruction_type", "primary_service_location_id", "job_reference",
        "estimated_volume_weight", "allowed_variance", "what_is_included", "what_is_excluded",
        "note_to_customer", "memo_on_statement", "internal_notes", "created_by", "updated_by",
        "discount_type", "discount_value", "tax_rate", "shipping_amount",
    },
    # Written only by the accept/decline endpoint
    ignored_fields={"customer_response", "response_date"},
)

estimates_bp = Blueprint("estimates", __name__, url_prefix="/api/estimates")


def _estimate_id(payload: dict) -> int:
    if payload.get("estimateId") is None:
        raise ValidationError("estimateId is required", details={"field": "estimateId"})
    return to_int(payload.get("estimateId"), "estimateId")


@estimates_bp.post("/send")
@json_endpoint("send estimate")
def send_estimate_route():
    payload = json_body()
    estimate = delivery_service.send_estimate(
        _estimate_id(payload),
        email=payload.get("email"),
        message=payload.get("message"),
    )
    return ok(estimate.to_dict())


@estimates_bp.post("/accept")
@json_endpoint("record estimate response")
def respond_to_estimate_route():
    """
    Customer response to a sent estimate.

    Request body: {"estimateId": 1, "action": "accept" | "decline", "customerResponse": "..."}
    """
    payload = json_body()
    estimate = delivery_service.respond_to_estimate(
        _estimate_id(payload),
        payload.get("action") or "accept",
        payload.get("customerResponse"),
    )
    return ok(estimate.to_dict())


register_document_routes(estimates_bp, "estimate", ESTIMATE_POLICY)
