# Overview: Service-layer operations for documents; numbering, CRUD, child collections and totals.

"""
Document Service

Owns persistence for the five status-bearing document types. Every save:

1. loads the row under a write lock
2. applies header changes, refusing fields the current status locks
3. rebuilds owned child collections through their aggregator, which
   enforces the status child policy
4. routes a requested status change through the lifecycle controller
5. recomputes the totals snapshot server-side
6. commits once; any error rolls the whole unit back

Callers pass an already validated header patch (see routes/ policies);
child rows arrive as raw lists and are validated here by the aggregators.
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, FieldLocked, NotFoundError, PreconditionUnmet, ValidationError
from ..extensions import db
from ..models import (
    DOCUMENT_MODELS,
    Customer,
    DocumentSequence,
    Estimate,
    EstimateLineItem,
    Invoice,
    InvoiceAdjustment,
    InvoiceLineItem,
    Job,
    JobMaterial,
    Vendor,
)
from ..status_registry import (
    INITIAL_STATUS,
    editable_child_fields,
    is_field_editable,
    is_fully_editable,
    validate_status,
)
from ..time_utils import today
from . import lifecycle_service
from .adjustments import AdjustmentAggregator
from .concurrency import atomic, load_for_update
from .line_items import LineItemAggregator
from .materials import MaterialCollection
from .totals import DiscountSpec, TotalsSnapshot, compute_for_inputs


# entity_type -> collection -> (aggregator, row model)
CHILD_COLLECTIONS = {
    "invoice": {
        "line_items": (LineItemAggregator, InvoiceLineItem),
        "adjustments": (AdjustmentAggregator, InvoiceAdjustment),
    },
    "estimate": {
        "line_items": (LineItemAggregator, EstimateLineItem),
    },
    "job": {
        "materials": (MaterialCollection, JobMaterial),
    },
    "expense": {},
    "affidavit": {},
}

# Keys clients echo back on child rows; derived or owned by the server
_IGNORED_CHILD_KEYS = frozenset({
    "line_total", "created_at", "invoice_id", "estimate_id", "job_id",
})

DEFAULT_ESTIMATE_VALIDITY_DAYS = 30


def model_for(entity_type: str):
    try:
        return DOCUMENT_MODELS[entity_type]
    except KeyError:
        raise ValidationError(f"Unknown entity type '{entity_type}'") from None


def collections_for(entity_type: str) -> tuple[str, ...]:
    return tuple(CHILD_COLLECTIONS.get(entity_type, {}))


# =============================================================================
# Numbering
# =============================================================================

def _current_sequence_value(document_type: str) -> int:
    return (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type)
        .scalar()
    )


def next_document_number(*, document_type: str, prefix: str, pad: int | None = None) -> str:
    """
    Atomically allocate the next document number for a type (INV-0001).

    Runs inside the caller's transaction; the first allocation for a type
    inserts the sequence row under a savepoint so a concurrent insert only
    rolls back the savepoint.
    """
    if not document_type:
        raise ValidationError("document_type is required")
    if pad is None:
        pad = current_app.config.get("DOCUMENT_NUMBER_PAD", 4)

    stmt = (
        update(DocumentSequence)
        .where(DocumentSequence.document_type == document_type)
        .values(next_number=DocumentSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        next_num = _current_sequence_value(document_type) - 1
    else:
        try:
            with db.session.begin_nested():
                db.session.add(DocumentSequence(document_type=document_type, next_number=2))
            next_num = 1
        except IntegrityError:
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise
            next_num = _current_sequence_value(document_type) - 1

    return f"{prefix}-{next_num:0{pad}d}"


# =============================================================================
# Totals
# =============================================================================

def _line_item_values(row) -> dict:
    return {
        "id": row.id,
        "description": row.description,
        "quantity": row.quantity or 0.0,
        "unit_price": row.unit_price or 0.0,
        "service_id": row.service_id,
        "sort_order": row.sort_order or 0,
    }


def recompute_totals(document) -> TotalsSnapshot | None:
    """
    Rewrite every derived amount on a priced document from its line items,
    adjustments and pricing inputs. Documents without totals return None.
    """
    if not hasattr(document, "subtotal"):
        return None

    lines = LineItemAggregator(LineItemAggregator.item_class(**_line_item_values(r)) for r in document.line_items)
    for row in document.line_items:
        row.line_total = (row.quantity or 0.0) * (row.unit_price or 0.0)

    adjustments_total = 0.0
    if hasattr(document, "adjustments"):
        adjustments_total = sum((a.amount or 0.0 for a in document.adjustments), 0.0)

    snapshot = compute_for_inputs(
        {
            "discount_type": document.discount_type,
            "discount_value": document.discount_value,
            "tax_rate": document.tax_rate,
            "shipping_amount": document.shipping_amount,
            "amount_paid": document.amount_paid,
        },
        subtotal=lines.total(),
        adjustments_total=adjustments_total,
    )
    for name, value in snapshot.as_dict().items():
        setattr(document, name, value)
    if getattr(document, "status", None) == "paid" and abs(snapshot.balance_due) >= 0.005:
        current_app.logger.warning(
            "Paid %s %s now has balance_due %.2f",
            type(document).__name__.lower(),
            getattr(document, document.NUMBER_FIELD),
            snapshot.balance_due,
        )
    return snapshot


# =============================================================================
# Header and child changes
# =============================================================================

def _normalize_patch(patch: dict) -> dict:
    patch = dict(patch or {})
    if "discount_type" in patch:
        patch["discount_type"] = DiscountSpec.from_payload(patch["discount_type"], 0).type
    return patch


def _apply_patch(document, entity_type: str, patch: dict) -> None:
    status = document.status
    for name, value in patch.items():
        if getattr(document, name) == value:
            continue
        if not is_field_editable(entity_type, status, name):
            raise FieldLocked(entity_type, status, name)
        setattr(document, name, value)


def _child_fields(aggregator_cls, row_cls) -> frozenset:
    return aggregator_cls.writable_fields & frozenset(row_cls.__table__.columns.keys())


def _build_collection(document, entity_type: str, collection: str):
    aggregator_cls, row_cls = CHILD_COLLECTIONS[entity_type][collection]
    allowed = _child_fields(aggregator_cls, row_cls)
    rows = list(getattr(document, collection))
    items = [
        aggregator_cls.item_class(id=row.id, **{name: getattr(row, name) for name in allowed})
        for row in rows
    ]
    aggregator = aggregator_cls(
        items,
        policy=editable_child_fields(entity_type, document.status, collection),
        entity_type=entity_type,
        status=document.status,
    )
    return aggregator, {row.id: row for row in rows}, row_cls, allowed


def _write_back(document, collection: str, aggregator, existing: dict, row_cls, allowed) -> None:
    columns = row_cls.__table__.columns
    owned = getattr(document, collection)
    kept = set()
    for item in aggregator.items():
        row = existing.get(item.id)
        if row is None:
            row = row_cls()
            owned.append(row)
        else:
            kept.add(item.id)
        for name in allowed:
            value = getattr(item, name)
            if value is None and not columns[name].nullable:
                continue
            setattr(row, name, value)
        if "line_total" in columns:
            row.line_total = item.line_total
    for row_id, row in existing.items():
        if row_id not in kept:
            owned.remove(row)


def sync_children(document, entity_type: str, collection: str, rows) -> None:
    """
    Make a child collection match the submitted list: rows with an id
    update in place, rows without one are added, missing ids are removed.
    """
    if collection not in CHILD_COLLECTIONS.get(entity_type, {}):
        raise ValidationError(f"{entity_type} has no {collection}", details={"field": collection})
    if not isinstance(rows, list):
        raise ValidationError(f"{collection} must be a list", details={"field": collection})

    aggregator, existing, row_cls, allowed = _build_collection(document, entity_type, collection)

    seen = set()
    for position, raw in enumerate(rows):
        if not isinstance(raw, dict):
            raise ValidationError(f"{collection} entries must be objects", details={"field": collection})
        values = {k: v for k, v in raw.items() if k not in _IGNORED_CHILD_KEYS}
        unknown = set(values) - allowed - {"id"}
        if unknown:
            name = sorted(unknown)[0]
            raise ValidationError(f"Field not allowed: {collection}.{name}", details={"field": name})

        item_id = values.pop("id", None)
        if item_id is None:
            values.setdefault("sort_order", position)
            aggregator.add_item(**values)
            continue

        item = aggregator.get(item_id)
        if item.id not in existing:
            raise ValidationError(f"Unknown {collection} item {item_id}", details={"id": item_id})
        seen.add(item.id)
        for name, value in values.items():
            aggregator.update_item(item.id, name, value)

    for item in aggregator.items():
        if item.id in existing and item.id not in seen:
            aggregator.remove_item(item.id)

    _write_back(document, collection, aggregator, existing, row_cls, allowed)


def apply_changes(document, entity_type: str, patch: dict | None = None, children: dict | None = None) -> None:
    """Header patch, then child collections, then rules and totals; in memory only."""
    _apply_patch(document, entity_type, _normalize_patch(patch))
    for collection, rows in (children or {}).items():
        sync_children(document, entity_type, collection, rows)
    _enforce_rules(entity_type, document)
    recompute_totals(document)


def _enforce_rules(entity_type: str, document) -> None:
    if entity_type == "invoice":
        if document.issue_date and document.due_date and document.due_date < document.issue_date:
            raise ValidationError("due_date cannot be before issue_date", details={"field": "due_date"})
    elif entity_type == "estimate":
        if document.valid_until_date and document.estimate_date and document.valid_until_date < document.estimate_date:
            raise ValidationError(
                "valid_until_date cannot be before estimate_date",
                details={"field": "valid_until_date"},
            )
        if (document.allowed_variance or 0.0) < 0:
            raise ValidationError("allowed_variance must be >= 0", details={"field": "allowed_variance"})
    elif entity_type == "expense":
        if (document.amount or 0.0) < 0:
            raise ValidationError("amount must be >= 0", details={"field": "amount"})


# =============================================================================
# Creation defaults
# =============================================================================

def due_date_for(issue_date, payment_terms: str | None):
    """net_N -> issue date + N days; due_on_receipt and custom -> issue date."""
    terms = payment_terms or "net_30"
    if terms.startswith("net_"):
        return issue_date + timedelta(days=int(terms[4:]))
    return issue_date


def _customer_defaults(patch: dict, *, email: bool = False, terms: bool = False) -> None:
    """Fill name (and optionally email, payment terms) from the linked customer."""
    customer_id = patch.get("customer_id")
    if customer_id is None:
        return
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found", details={"customer_id": customer_id})
    if not patch.get("customer_name"):
        patch["customer_name"] = customer.customer_name
    if email and not patch.get("customer_email") and customer.email:
        patch["customer_email"] = customer.email
    if terms and not patch.get("payment_terms") and customer.payment_terms:
        patch["payment_terms"] = customer.payment_terms


def _require_customer_name(patch: dict) -> None:
    if not (patch.get("customer_name") or "").strip():
        raise ValidationError("Missing required fields: customer_name", details={"missing": ["customer_name"]})


def _prepare_invoice(patch: dict) -> None:
    _customer_defaults(patch, email=True, terms=True)
    _require_customer_name(patch)
    if not patch.get("payment_terms"):
        patch["payment_terms"] = "net_30"
    if patch.get("issue_date") is None:
        patch["issue_date"] = today()
    if patch.get("due_date") is None:
        patch["due_date"] = due_date_for(patch["issue_date"], patch["payment_terms"])


def _prepare_estimate(patch: dict) -> None:
    _customer_defaults(patch, email=True)
    _require_customer_name(patch)
    if patch.get("estimate_date") is None:
        patch["estimate_date"] = today()
    if patch.get("valid_until_date") is None:
        patch["valid_until_date"] = patch["estimate_date"] + timedelta(days=DEFAULT_ESTIMATE_VALIDITY_DAYS)


def _prepare_job(patch: dict) -> None:
    estimate_id = patch.get("estimate_id")
    if estimate_id is not None:
        estimate = db.session.get(Estimate, estimate_id)
        if estimate is None:
            raise NotFoundError(f"Estimate {estimate_id} not found", details={"estimate_id": estimate_id})
        if estimate.status != "accepted":
            raise PreconditionUnmet(
                f"Estimate {estimate.estimate_number} must be accepted before a job is created",
                details={"estimate_id": estimate_id, "status": estimate.status},
            )
        patch["customer_id"] = estimate.customer_id
        patch["customer_name"] = estimate.customer_name
        patch["estimate_number"] = estimate.estimate_number
        patch.setdefault("job_name", estimate.job_reference or f"Job for {estimate.estimate_number}")
    else:
        _customer_defaults(patch)
    _require_customer_name(patch)
    if not (patch.get("job_name") or "").strip():
        raise ValidationError("Missing required fields: job_name", details={"missing": ["job_name"]})


def _prepare_expense(patch: dict) -> None:
    vendor_id = patch.get("vendor_id")
    if vendor_id is not None:
        vendor = db.session.get(Vendor, vendor_id)
        if vendor is None:
            raise NotFoundError(f"Vendor {vendor_id} not found", details={"vendor_id": vendor_id})
        patch.setdefault("vendor_name", vendor.vendor_name)
    missing = sorted(
        name for name in ("expense_type", "vendor_name", "expense_date", "description")
        if patch.get(name) in (None, "")
    )
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", details={"missing": missing})
    patch.setdefault("attachments", [])


def _prepare_affidavit(patch: dict) -> None:
    job_id = patch.get("job_id")
    if job_id is None:
        raise ValidationError("Missing required fields: job_id", details={"missing": ["job_id"]})
    job = db.session.get(Job, job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found", details={"job_id": job_id})
    patch.setdefault("customer_name", job.customer_name)
    patch.setdefault("job_reference", job.job_number)
    patch.setdefault("media_references", [])


_PREPARE = {
    "invoice": _prepare_invoice,
    "estimate": _prepare_estimate,
    "job": _prepare_job,
    "expense": _prepare_expense,
    "affidavit": _prepare_affidavit,
}


# =============================================================================
# CRUD
# =============================================================================

def get_document(entity_type: str, document_id: int):
    model = model_for(entity_type)
    document = db.session.get(model, document_id)
    if document is None:
        raise NotFoundError(
            f"{entity_type.capitalize()} {document_id} not found",
            details={"id": document_id},
        )
    return document


def list_documents(
    entity_type: str,
    *,
    status: str | None = None,
    customer_id: int | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> tuple[list, int]:
    """Newest first; returns (rows, total matching before paging)."""
    model = model_for(entity_type)
    query = db.session.query(model)
    if status:
        validate_status(entity_type, status)
        query = query.filter(model.status == status)
    if customer_id is not None and hasattr(model, "customer_id"):
        query = query.filter(model.customer_id == customer_id)

    total = query.count()
    query = query.order_by(model.id.desc())
    if offset:
        query = query.offset(max(offset, 0))
    if limit:
        query = query.limit(min(max(limit, 1), 500))
    return query.all(), total


def create_document(
    entity_type: str,
    patch: dict,
    *,
    children: dict | None = None,
    target_status: str | None = None,
    context: dict | None = None,
):
    """
    Create a document in its initial status with a freshly allocated number.

    A target_status other than the initial one is applied through the
    lifecycle controller in the same transaction.
    """
    model = model_for(entity_type)

    def _op():
        values = _normalize_patch(patch)
        _PREPARE[entity_type](values)
        document = model(**values)
        document.status = INITIAL_STATUS[entity_type]
        setattr(document, model.NUMBER_FIELD, next_document_number(
            document_type=entity_type,
            prefix=model.NUMBER_PREFIX,
        ))
        db.session.add(document)
        apply_changes(document, entity_type, children=children)
        if target_status is not None and target_status != document.status:
            lifecycle_service.apply_transition(document, entity_type, target_status, context)
        db.session.flush()
        return document

    document = atomic(_op)
    current_app.logger.info(
        "Created %s %s", entity_type, getattr(document, model.NUMBER_FIELD)
    )
    return document


def save_document(
    entity_type: str,
    document_id: int,
    *,
    patch: dict | None = None,
    children: dict | None = None,
    target_status: str | None = None,
    context: dict | None = None,
    force_transition: bool = False,
):
    """
    Apply changes and an optional status change as one unit of work.

    Changes are checked against the status the document is in now;
    transition preconditions see the document with the changes applied.
    force_transition sends target_status to the lifecycle controller even
    when it equals the current status (which then refuses it).
    """
    model = model_for(entity_type)

    def _op():
        document = load_for_update(model, document_id)
        apply_changes(document, entity_type, patch, children)
        if target_status is not None and (force_transition or target_status != document.status):
            lifecycle_service.apply_transition(document, entity_type, target_status, context)
            recompute_totals(document)
        return document

    return atomic(_op)


def update_document(
    entity_type: str,
    document_id: int,
    patch: dict | None = None,
    *,
    children: dict | None = None,
    target_status: str | None = None,
    context: dict | None = None,
):
    """Partial update; a target_status equal to the current one is a no-op."""
    return save_document(
        entity_type,
        document_id,
        patch=patch,
        children=children,
        target_status=target_status,
        context=context,
    )


def reorder_children(entity_type: str, document_id: int, collection: str, ids: list):
    """Reassign sort_order of one child collection; totals do not change."""
    model = model_for(entity_type)
    if collection not in CHILD_COLLECTIONS.get(entity_type, {}):
        raise ValidationError(f"{entity_type} has no {collection}", details={"field": collection})
    if not isinstance(ids, list):
        raise ValidationError("ids must be a list", details={"field": "ids"})

    def _op():
        document = load_for_update(model, document_id)
        aggregator, existing, row_cls, allowed = _build_collection(document, entity_type, collection)
        aggregator.reorder(ids)
        for item in aggregator.items():
            existing[item.id].sort_order = item.sort_order
        return document

    return atomic(_op)


def _require_unreferenced(entity_type: str, document) -> None:
    if entity_type == "invoice" and (document.amount_paid or 0.0) > 0:
        raise ConflictError(
            f"Invoice {document.invoice_number} has payments applied",
            details={"id": document.id},
        )
    if entity_type == "estimate" and document.jobs:
        raise ConflictError(
            f"Estimate {document.estimate_number} has jobs",
            details={"id": document.id},
        )
    if entity_type == "job" and (document.affidavits or document.expenses):
        raise ConflictError(
            f"Job {document.job_number} has affidavits or expenses",
            details={"id": document.id},
        )
    if entity_type in ("estimate", "job"):
        column = getattr(Invoice, f"{entity_type}_id")
        invoice_id = db.session.query(Invoice.id).filter(column == document.id).first()
        if invoice_id is not None:
            number = getattr(document, f"{entity_type}_number")
            raise ConflictError(
                f"{entity_type.capitalize()} {number} is referenced by an invoice",
                details={"id": document.id, "referenced_by": "invoices"},
            )


def delete_document(entity_type: str, document_id: int) -> None:
    """Only documents whose current status is fully editable can be deleted."""
    model = model_for(entity_type)

    def _op():
        document = load_for_update(model, document_id)
        if not is_fully_editable(entity_type, document.status):
            number = getattr(document, model.NUMBER_FIELD)
            raise FieldLocked(
                entity_type,
                document.status,
                "document",
                message=f"{entity_type.capitalize()} {number} cannot be deleted while {document.status}",
            )
        _require_unreferenced(entity_type, document)
        db.session.delete(document)
        return getattr(document, model.NUMBER_FIELD)

    number = atomic(_op)
    current_app.logger.info("Deleted %s %s", entity_type, number)
