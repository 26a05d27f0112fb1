# Overview: Flask API routes for master records; customers, vendors, services catalog, requests.

from flask import Blueprint, request

from ..decorators import json_body, json_endpoint, ok
from ..models import Customer, CustomerRequest, Service, Vendor
from ..models.records import (
    CUSTOMER_STATUSES,
    PAYMENT_TERMS,
    REQUEST_STATUSES,
    SERVICE_ITEM_TYPES,
    SERVICE_STATUSES,
    VENDOR_CATEGORIES,
    VENDOR_STATUSES,
)
from ..services import record_service
from ..validation import ModelValidationPolicy, validate_payload


_SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at"})

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_name", "company_name", "email", "phone", "billing_address",
        "service_address", "payment_terms", "tax_exempt", "customer_status", "notes",
    },
    required_on_create={"customer_name"},
    choices={"payment_terms": PAYMENT_TERMS, "customer_status": CUSTOMER_STATUSES},
    ignored_fields=_SYSTEM_FIELDS,
)

VENDOR_POLICY = ModelValidationPolicy(
    writable_fields={
        "vendor_name", "contact_person", "email", "phone", "address", "payment_terms",
        "vendor_category", "tax_id", "notes", "vendor_status",
    },
    required_on_create={"vendor_name", "email", "phone"},
    choices={
        "payment_terms": PAYMENT_TERMS,
        "vendor_category": VENDOR_CATEGORIES,
        "vendor_status": VENDOR_STATUSES,
    },
    ignored_fields=_SYSTEM_FIELDS,
)

SERVICE_POLICY = ModelValidationPolicy(
    writable_fields={
        "service_name", "item_type", "service_category", "description", "pricing_unit",
        "default_rate", "estimated_cost_per_unit", "is_taxable",
        "allow_price_override_on_invoice", "service_status", "sku",
    },
    required_on_create={"service_name", "service_category", "pricing_unit"},
    choices={"item_type": SERVICE_ITEM_TYPES, "service_status": SERVICE_STATUSES},
    ignored_fields=_SYSTEM_FIELDS,
)

CUSTOMER_REQUEST_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_id", "customer_name", "contact_email", "service_type", "description",
        "preferred_date", "location", "request_status",
    },
    required_on_create={"customer_name"},
    choices={"request_status": REQUEST_STATUSES},
    ignored_fields=_SYSTEM_FIELDS,
)


def register_record_routes(bp, kind: str, model, policy: ModelValidationPolicy) -> None:
    label = kind.replace("_", " ")

    @bp.get("")
    @json_endpoint(f"list {label}s")
    def list_records_route():
        limit = request.args.get("limit", 100, type=int)
        offset = request.args.get("offset", 0, type=int)
        limit = min(max(limit, 1), 500)
        offset = max(offset, 0)
        rows, total = record_service.list_records(
            kind,
            status=request.args.get("status"),
            search=request.args.get("search"),
            limit=limit,
            offset=offset,
        )
        return ok([row.to_dict() for row in rows], count=total, limit=limit, offset=offset)

    @bp.post("")
    @json_endpoint(f"create {label}")
    def create_record_route():
        patch = validate_payload(model=model, payload=json_body(), policy=policy, partial=False)
        return ok(record_service.create_record(kind, patch).to_dict(), 201)

    @bp.get("/<int:record_id>")
    @json_endpoint(f"load {label}")
    def get_record_route(record_id: int):
        return ok(record_service.get_record(kind, record_id).to_dict())

    @bp.put("/<int:record_id>")
    @json_endpoint(f"update {label}")
    def update_record_route(record_id: int):
        patch = validate_payload(model=model, payload=json_body(), policy=policy, partial=True)
        return ok(record_service.update_record(kind, record_id, patch).to_dict())

    @bp.delete("/<int:record_id>")
    @json_endpoint(f"delete {label}")
    def delete_record_route(record_id: int):
        record_service.delete_record(kind, record_id)
        return ok()


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")
vendors_bp = Blueprint("vendors", __name__, url_prefix="/api/vendors")
services_bp = Blueprint("services", __name__, url_prefix="/api/services")
customer_requests_bp = Blueprint("customer_requests", __name__, url_prefix="/api/customer-requests")

register_record_routes(customers_bp, "customer", Customer, CUSTOMER_POLICY)
register_record_routes(vendors_bp, "vendor", Vendor, VENDOR_POLICY)
register_record_routes(services_bp, "service", Service, SERVICE_POLICY)
register_record_routes(customer_requests_bp, "customer_request", CustomerRequest, CUSTOMER_REQUEST_POLICY)
