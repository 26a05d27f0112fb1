# Overview: Service-layer operations for master records; customers, vendors, services catalog, requests.

"""
Record Service

Master data the documents point at. These records carry no status machine;
their *_status columns are plain filters. Deleting a record that documents
still reference is refused so historical documents keep their links.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import or_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, CustomerRequest, Estimate, Expense, Invoice, Job, Payment, Service, Vendor
from .concurrency import atomic, load_for_update


RECORD_MODELS = {
    "customer": Customer,
    "vendor": Vendor,
    "service": Service,
    "customer_request": CustomerRequest,
}

# kind -> (status column, searchable columns)
_LISTING = {
    "customer": ("customer_status", ("customer_name", "company_name", "email")),
    "vendor": ("vendor_status", ("vendor_name", "contact_person", "email")),
    "service": ("service_status", ("service_name", "service_category", "sku")),
    "customer_request": ("request_status", ("customer_name", "contact_email", "service_type")),
}

# kind -> [(referencing model, foreign key column)]
_REFERENCES = {
    "customer": [
        (Invoice, "customer_id"),
        (Estimate, "customer_id"),
        (Job, "customer_id"),
        (Payment, "customer_id"),
        (CustomerRequest, "customer_id"),
    ],
    "vendor": [(Expense, "vendor_id")],
}


def model_for(kind: str):
    try:
        return RECORD_MODELS[kind]
    except KeyError:
        raise ValidationError(f"Unknown record type '{kind}'") from None


def _label(kind: str) -> str:
    return kind.replace("_", " ").capitalize()


def _enforce_rules(kind: str, record) -> None:
    if kind == "service":
        for name in ("default_rate", "estimated_cost_per_unit"):
            if (getattr(record, name) or 0.0) < 0:
                raise ValidationError(f"{name} must be >= 0", details={"field": name})
    for name in ("email", "contact_email"):
        value = getattr(record, name, None)
        if value and "@" not in value:
            raise ValidationError(f"{name} must be an email address", details={"field": name})


def list_records(
    kind: str,
    *,
    status: str | None = None,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list, int]:
    model = model_for(kind)
    status_column, search_columns = _LISTING[kind]
    query = db.session.query(model)
    if status:
        query = query.filter(getattr(model, status_column) == status)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(*(getattr(model, c).ilike(pattern) for c in search_columns)))
    total = query.count()
    rows = query.order_by(model.id.desc()).offset(offset).limit(limit).all()
    return rows, total


def get_record(kind: str, record_id: int):
    model = model_for(kind)
    record = db.session.get(model, record_id)
    if record is None:
        raise NotFoundError(f"{_label(kind)} {record_id} not found", details={"id": record_id})
    return record


def create_record(kind: str, patch: dict):
    model = model_for(kind)

    def _op():
        if kind == "customer_request" and patch.get("customer_id") is not None:
            get_record("customer", patch["customer_id"])
        record = model(**patch)
        _enforce_rules(kind, record)
        db.session.add(record)
        db.session.flush()
        return record

    record = atomic(_op)
    current_app.logger.info("Created %s %s", kind, record.id)
    return record


def update_record(kind: str, record_id: int, patch: dict):
    model = model_for(kind)

    def _op():
        record = load_for_update(model, record_id, label=_label(kind))
        for name, value in patch.items():
            setattr(record, name, value)
        _enforce_rules(kind, record)
        return record

    return atomic(_op)


def delete_record(kind: str, record_id: int) -> None:
    model = model_for(kind)

    def _op():
        record = load_for_update(model, record_id, label=_label(kind))
        for ref_model, column in _REFERENCES.get(kind, []):
            in_use = db.session.query(ref_model.id).filter(getattr(ref_model, column) == record_id).first()
            if in_use is not None:
                raise ConflictError(
                    f"{_label(kind)} {record_id} is referenced by {ref_model.__tablename__}",
                    details={"id": record_id, "referenced_by": ref_model.__tablename__},
                )
        db.session.delete(record)

    atomic(_op)
    current_app.logger.info("Deleted %s %s", kind, record_id)
