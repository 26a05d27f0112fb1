# Overview: Domain error taxonomy shared by services and routes.

"""
Domain errors.

Every error carries a human-readable message and a ``details`` dict that
routes pass straight through to the JSON response. HTTP status mapping
lives on the class (``status_code``) so the blueprints can render any
domain error with a single ``except DomainError`` branch.

    DomainError
    ├── ValidationError        400  bad or missing input
    ├── NotFoundError          404  unknown record id
    ├── ConflictError          409  business-rule conflict
    │   └── FieldLocked        409  status-locked field or child mutation
    ├── LifecycleError         400  transition refused
    │   ├── InvalidTransition       edge not declared in the status registry
    │   ├── PreconditionUnmet       business rule blocks a declared edge
    │   └── RevocationDenied        no reason, or status is not revocable
    └── UpstreamFailure        502  upload / mail / persistence collaborator
"""

from __future__ import annotations


class DomainError(ValueError):
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(DomainError):
    """400-level input problem."""


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """409-level business rule conflict."""
    status_code = 409


class FieldLocked(ConflictError):
    """A field or child collection is not editable in the document's current status."""

    def __init__(self, entity_type: str, status: str, field: str, message: str | None = None):
        super().__init__(
            message or f"{field} cannot be changed while {entity_type} is {status}",
            details={"entity_type": entity_type, "status": status, "field": field},
        )
        self.entity_type = entity_type
        self.status = status
        self.field = field


class LifecycleError(DomainError):
    """
    Raised when a status transition is refused.

    This is a domain error, not a technical error. It indicates
    that the caller attempted an operation that violates business rules.
    """


class InvalidTransition(LifecycleError):
    def __init__(self, entity_type: str, current_status: str, requested_status: str):
        super().__init__(
            f"Cannot move {entity_type} from '{current_status}' to '{requested_status}'",
            details={
                "entity_type": entity_type,
                "current_status": current_status,
                "requested_status": requested_status,
            },
        )
        self.entity_type = entity_type
        self.current_status = current_status
        self.requested_status = requested_status


class PreconditionUnmet(LifecycleError):
    pass


class RevocationDenied(LifecycleError):
    pass


class UpstreamFailure(DomainError):
    """An external collaborator (upload storage, mail, database) failed."""
    status_code = 502
