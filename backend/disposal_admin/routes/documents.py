# Overview: Shared Flask routes for status-bearing documents; CRUD, editability and transitions.

"""
Document Routes

Every document resource (invoices, estimates, jobs, expenses, affidavits)
exposes the same surface, registered on its own blueprint:

- GET    /api/{resource}                     list (status, customer_id, limit, offset)
- POST   /api/{resource}                     create in the initial status
- GET    /api/{resource}/{id}                one document with its children
- PUT    /api/{resource}/{id}                partial update, optional "status"
- DELETE /api/{resource}/{id}                only while fully editable
- GET    /api/{resource}/{id}/editability    lock map for the current status
- POST   /api/{resource}/{id}/transition     {status, changes?, reason?}
- POST   /api/{resource}/{id}/reorder        {collection, ids}

Derived values (totals, line totals, numbers, status timestamps) that a
client echoes back are accepted and ignored; the server recomputes them.
"""

from flask import request

from ..decorators import json_body, json_endpoint, ok
from ..errors import ValidationError
from ..services import document_service, lifecycle_service
from ..status_registry import REGISTRY, editability, validate_status
from ..validation import ModelValidationPolicy, validate_payload


SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at", "revoked_by", "revocation_reason"})
DERIVED_TOTALS = frozenset({
    "subtotal", "discount_amount", "discount_percent", "adjustments_total", "taxable_subtotal",
    "tax_amount", "total_amount", "amount_paid", "balance_due",
})


def document_policy(
    entity_type: str,
    *,
    writable_fields: set,
    required_on_create: set = frozenset(),
    choices: dict | None = None,
    ignored_fields: set = frozenset(),
) -> ModelValidationPolicy:
    """Policy for one document type; system and derived columns are ignored on input."""
    model = document_service.model_for(entity_type)
    stamps = {rule.entry_timestamp for rule in REGISTRY[entity_type].values() if rule.entry_timestamp}
    return ModelValidationPolicy(
        writable_fields=frozenset(writable_fields),
        required_on_create=frozenset(required_on_create),
        choices=choices or {},
        ignored_fields=frozenset(
            SYSTEM_FIELDS | DERIVED_TOTALS | stamps | {model.NUMBER_FIELD} | set(ignored_fields)
        ),
    )


def split_payload(entity_type: str, payload: dict, policy: ModelValidationPolicy, *, partial: bool):
    """Separate status and child collections from the header patch, then validate the header."""
    payload = dict(payload)
    target_status = payload.pop("status", None)
    if target_status is not None:
        if not isinstance(target_status, str):
            raise ValidationError("status must be a string", details={"field": "status"})
        validate_status(entity_type, target_status)
    children = {
        name: payload.pop(name)
        for name in document_service.collections_for(entity_type)
        if name in payload
    }
    patch = validate_payload(
        model=document_service.model_for(entity_type),
        payload=payload,
        policy=policy,
        partial=partial,
    )
    return patch, children, target_status


def _transition_context(payload: dict) -> dict:
    context = {}
    for key in ("reason", "revoked_by"):
        if payload.get(key) is not None:
            context[key] = payload[key]
    return context


def register_document_routes(bp, entity_type: str, policy: ModelValidationPolicy) -> None:
    label = entity_type

    @bp.get("")
    @json_endpoint(f"list {label}s")
    def list_documents_route():
        limit = request.args.get("limit", type=int)
        offset = request.args.get("offset", 0, type=int)
        rows, total = document_service.list_documents(
            entity_type,
            status=request.args.get("status"),
            customer_id=request.args.get("customer_id", type=int),
            limit=limit,
            offset=offset,
        )
        return ok([row.to_dict(include_children=False) for row in rows], count=total)

    @bp.post("")
    @json_endpoint(f"create {label}")
    def create_document_route():
        payload = json_body()
        context = _transition_context(payload)
        payload.pop("reason", None)
        payload.pop("revoked_by", None)
        patch, children, target_status = split_payload(entity_type, payload, policy, partial=False)
        document = document_service.create_document(
            entity_type,
            patch,
            children=children,
            target_status=target_status,
            context=context,
        )
        return ok(document.to_dict(), 201)

    @bp.get("/<int:document_id>")
    @json_endpoint(f"load {label}")
    def get_document_route(document_id: int):
        return ok(document_service.get_document(entity_type, document_id).to_dict())

    @bp.put("/<int:document_id>")
    @json_endpoint(f"update {label}")
    def update_document_route(document_id: int):
        payload = json_body()
        context = _transition_context(payload)
        payload.pop("reason", None)
        payload.pop("revoked_by", None)
        patch, children, target_status = split_payload(entity_type, payload, policy, partial=True)
        document = document_service.update_document(
            entity_type,
            document_id,
            patch,
            children=children,
            target_status=target_status,
            context=context,
        )
        return ok(document.to_dict())

    @bp.delete("/<int:document_id>")
    @json_endpoint(f"delete {label}")
    def delete_document_route(document_id: int):
        document_service.delete_document(entity_type, document_id)
        return ok()

    @bp.get("/<int:document_id>/editability")
    @json_endpoint(f"load {label} editability")
    def document_editability_route(document_id: int):
        document = document_service.get_document(entity_type, document_id)
        return ok(editability(entity_type, document.status, document_service.collections_for(entity_type)))

    @bp.post("/<int:document_id>/transition")
    @json_endpoint(f"transition {label}")
    def transition_document_route(document_id: int):
        payload = json_body()
        target_status = payload.get("status")
        if not isinstance(target_status, str) or not target_status:
            raise ValidationError("status is required", details={"field": "status"})
        changes = payload.get("changes") or {}
        if not isinstance(changes, dict):
            raise ValidationError("changes must be an object", details={"field": "changes"})
        changes = dict(changes)
        changes.pop("status", None)
        patch, children, _ = split_payload(entity_type, changes, policy, partial=True)
        document = lifecycle_service.transition_document(
            entity_type,
            document_id,
            target_status,
            changes=patch,
            children=children,
            context=_transition_context(payload),
        )
        return ok(document.to_dict())

    @bp.post("/<int:document_id>/reorder")
    @json_endpoint(f"reorder {label} rows")
    def reorder_children_route(document_id: int):
        payload = json_body()
        document = document_service.reorder_children(
            entity_type,
            document_id,
            payload.get("collection") or "line_items",
            payload.get("ids"),
        )
        return ok(document.to_dict())
