# Overview: Service-layer operations for revocation; terminal audit marker on issued documents.

from __future__ import annotations

from flask import current_app

from ..errors import RevocationDenied, ValidationError
from ..models import DOCUMENT_MODELS
from ..status_registry import REVOKED, entry_timestamp_field, revocable_statuses
from ..time_utils import utcnow
from .concurrency import atomic, load_for_update


def _require_reason(reason) -> str:
    if reason is None or not str(reason).strip():
        raise RevocationDenied("A revocation reason is required", details={"field": "reason"})
    return str(reason).strip()


def apply_revocation(document, entity_type: str, reason, *, revoked_by: str | None = None):
    """
    Mark a document revoked in memory. Revocation is terminal and the record
    stays queryable with its reason, actor and timestamp.
    """
    if document.status not in revocable_statuses(entity_type):
        raise RevocationDenied(
            f"{entity_type.capitalize()} in status '{document.status}' cannot be revoked",
            details={"entity_type": entity_type, "status": document.status},
        )
    reason = _require_reason(reason)

    previous = document.status
    document.status = REVOKED
    setattr(document, entry_timestamp_field(entity_type, REVOKED) or "revoked_timestamp", utcnow())
    document.revocation_reason = reason
    document.revoked_by = revoked_by

    current_app.logger.info(
        "%s %s revoked from %s: %s",
        entity_type,
        getattr(document, document.NUMBER_FIELD, document.id),
        previous,
        reason,
    )
    return document


def revoke(entity_type: str, document_id: int, reason, *, revoked_by: str | None = None):
    """
    Revoke a stored document.

    Raises:
        NotFoundError: unknown id
        RevocationDenied: status has no revoked edge, or reason is blank
    """
    model = DOCUMENT_MODELS.get(entity_type)
    if model is None:
        raise ValidationError(f"Unknown entity type '{entity_type}'")

    def _op():
        document = load_for_update(model, document_id)
        return apply_revocation(document, entity_type, reason, revoked_by=revoked_by)

    return atomic(_op)
