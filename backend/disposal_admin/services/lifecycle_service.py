# Overview: Service-layer operations for lifecycle; guarded status transitions for every document type.

"""
Disposal Admin Lifecycle Controller

================================================================================
PURPOSE: Move documents between statuses declared in the status registry
================================================================================

A transition:
1. must follow a declared edge (InvalidTransition otherwise)
2. must satisfy the business preconditions for the target status,
   evaluated against the document with any bundled changes applied
3. stamps the entry timestamp of the target status
4. commits together with the bundled changes, or not at all

PRECONDITIONS:
    job       -> completed   actual_completion_date is set
    invoice   -> sent        at least one line item and a customer email
    estimate  -> sent        at least one line item
    affidavit -> issued      materials and process described, job completed
    any       -> revoked     a non-empty reason (see revocation_service)

Failed transitions leave stored state untouched and are never retried.
"""

from __future__ import annotations

from flask import current_app

from ..errors import PreconditionUnmet
from ..extensions import db
from ..models import Job
from ..status_registry import REVOKED, entry_timestamp_field, require_transition
from ..time_utils import today, utcnow
from .revocation_service import apply_revocation


def _invoice_sent(invoice, context: dict) -> None:
    if not invoice.line_items:
        raise PreconditionUnmet(
            f"Invoice {invoice.invoice_number} needs at least one line item before it is sent",
            details={"id": invoice.id},
        )
    if not (invoice.customer_email or "").strip():
        raise PreconditionUnmet(
            f"Invoice {invoice.invoice_number} needs a customer email before it is sent",
            details={"id": invoice.id, "field": "customer_email"},
        )


def _estimate_sent(estimate, context: dict) -> None:
    if not estimate.line_items:
        raise PreconditionUnmet(
            f"Estimate {estimate.estimate_number} needs at least one line item before it is sent",
            details={"id": estimate.id},
        )


def _job_completed(job, context: dict) -> None:
    if job.actual_completion_date is None:
        raise PreconditionUnmet(
            f"Job {job.job_number} needs an actual completion date before it is completed",
            details={"id": job.id, "field": "actual_completion_date"},
        )


def _affidavit_issued(affidavit, context: dict) -> None:
    missing = [
        name for name in ("description_of_materials", "description_of_process")
        if not (getattr(affidavit, name) or "").strip()
    ]
    if missing:
        raise PreconditionUnmet(
            f"Affidavit {affidavit.affidavit_number} is missing: {', '.join(missing)}",
            details={"id": affidavit.id, "missing": missing},
        )
    job = affidavit.job
    if job is None and affidavit.job_id is not None:
        # Relationship is not loaded on a pending row
        job = db.session.get(Job, affidavit.job_id)
    if job is None or job.status not in ("completed", "archived"):
        raise PreconditionUnmet(
            f"Affidavit {affidavit.affidavit_number} can only be issued for a completed job",
            details={"id": affidavit.id, "job_status": getattr(job, "status", None)},
        )


PRECONDITIONS = {
    ("invoice", "sent"): _invoice_sent,
    ("estimate", "sent"): _estimate_sent,
    ("job", "completed"): _job_completed,
    ("affidavit", "issued"): _affidavit_issued,
}


def _on_enter(document, entity_type: str, target_status: str) -> None:
    if entity_type == "job" and target_status == "in_progress" and document.actual_start_date is None:
        document.actual_start_date = today()


def apply_transition(document, entity_type: str, target_status: str, context: dict | None = None):
    """
    In-memory transition; the caller owns the transaction.

    Raises:
        InvalidTransition: target_status is not a declared edge from the current status
        PreconditionUnmet: a business rule blocks the edge
        RevocationDenied: revocation without a reason
    """
    context = context or {}
    current_status = document.status
    require_transition(entity_type, current_status, target_status)

    if target_status == REVOKED:
        return apply_revocation(
            document,
            entity_type,
            context.get("reason"),
            revoked_by=context.get("revoked_by"),
        )

    check = PRECONDITIONS.get((entity_type, target_status))
    if check is not None:
        check(document, context)

    _on_enter(document, entity_type, target_status)
    stamp = entry_timestamp_field(entity_type, target_status)
    if stamp:
        setattr(document, stamp, utcnow())
    document.status = target_status

    current_app.logger.info(
        "%s %s: %s -> %s",
        entity_type,
        getattr(document, document.NUMBER_FIELD, document.id),
        current_status,
        target_status,
    )
    return document


def transition_document(
    entity_type: str,
    document_id: int,
    target_status: str,
    *,
    changes: dict | None = None,
    children: dict | None = None,
    context: dict | None = None,
):
    """
    Persistent transition with optional bundled changes, committed atomically.

    Changes are validated against the current status lock policy; the
    preconditions of target_status see the changed document.
    """
    from .document_service import save_document

    return save_document(
        entity_type,
        document_id,
        patch=changes,
        children=children,
        target_status=target_status,
        context=context,
        force_transition=True,
    )
