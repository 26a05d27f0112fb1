# Overview: Status registry; per-entity status tables, transition edges, and field-lock policy.

"""
Disposal Admin Status Registry

================================================================================
PURPOSE: Single source of truth for every status-bearing document
================================================================================

For each (entity_type, status) pair the registry declares:
- which header fields are editable ("all", "none", or an explicit set)
- which fields stay locked even when the rest is editable (pricing locks)
- which child collections (line_items, adjustments, materials) may change,
  and which child fields may change under a partial lock
- which statuses may follow (the only legal edges)
- which timestamp field is stamped when the status is entered

STATE MACHINES:
    invoice:   draft -> sent -> finalized -> paid;  void from any non-paid state
    estimate:  draft -> sent -> accepted | expired | cancelled
    job:       scheduled -> in_progress -> completed -> archived
               (scheduled -> completed allowed once the completion date is set)
    expense:   draft -> submitted -> approved -> archived;  submitted -> draft (reject)
    affidavit: pending -> issued -> locked;  issued | locked -> revoked

RULES:
1. A status change only follows a declared edge; anything else is InvalidTransition
2. 'revoked' is terminal for every entity type
3. A pricing lock freezes unit prices and pricing inputs, never quantities
4. The registry is immutable and shared process-wide without locking

Validation (services) and presentation (the /editability endpoint) both read
from here so what the UI shows as locked is exactly what the server enforces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Union

from .errors import InvalidTransition, ValidationError


ALL = "all"
NONE = "none"
REVOKED = "revoked"

FieldPolicy = Union[str, frozenset]

# Fields that feed the totals calculator as user inputs
PRICING_INPUTS = frozenset({"discount_type", "discount_value", "tax_rate", "shipping_amount"})

# Child fields still editable under a pricing lock
QUANTITY_ONLY = frozenset({"quantity", "description", "sort_order"})


@dataclass(frozen=True)
class StatusRule:
    editable: FieldPolicy = ALL
    locked: frozenset = frozenset()
    children: Mapping[str, FieldPolicy] = field(default_factory=dict)
    next_statuses: frozenset = frozenset()
    entry_timestamp: str | None = None

    def allows_field(self, name: str) -> bool:
        if self.editable == ALL:
            return name not in self.locked
        if self.editable == NONE:
            return False
        return name in self.editable and name not in self.locked

    def child_policy(self, collection: str) -> FieldPolicy:
        # Children follow the header when not listed explicitly
        if collection in self.children:
            return self.children[collection]
        if self.editable == ALL and not self.locked:
            return ALL
        return NONE


def _rule(*, editable=ALL, locked=(), children=None, next=(), stamp=None) -> StatusRule:
    return StatusRule(
        editable=editable if isinstance(editable, str) else frozenset(editable),
        locked=frozenset(locked),
        children=MappingProxyType({
            k: (v if isinstance(v, str) else frozenset(v))
            for k, v in (children or {}).items()
        }),
        next_statuses=frozenset(next),
        entry_timestamp=stamp,
    )


_INVOICE_FINALIZED_HEADER = {"internal_notes", "notes_to_customer", "due_date", "payment_terms"}

_JOB_CORE_FIELDS = {
    "destruction_method",
    "destruction_description",
    "scheduled_date",
    "actual_start_date",
    "actual_completion_date",
    "job_location_id",
    "requires_affidavit",
}

_ESTIMATE_PRICING_LOCKED = dict(
    editable=ALL,
    locked=PRICING_INPUTS,
    children={"line_items": QUANTITY_ONLY},
)


_REGISTRY: dict[str, dict[str, StatusRule]] = {
    "invoice": {
        "draft": _rule(next={"sent", "void"}),
        "sent": _rule(next={"finalized", "void"}, stamp="sent_date"),
        "finalized": _rule(
            editable=_INVOICE_FINALIZED_HEADER,
            children={"line_items": QUANTITY_ONLY, "adjustments": NONE},
            next={"paid", "void"},
            stamp="finalized_date",
        ),
        "paid": _rule(
            editable={"internal_notes"},
            children={"line_items": QUANTITY_ONLY, "adjustments": NONE},
            stamp="paid_date",
        ),
        "void": _rule(editable=NONE, stamp="voided_date"),
    },
    "estimate": {
        "draft": _rule(next={"sent"}),
        "sent": _rule(**_ESTIMATE_PRICING_LOCKED, next={"accepted", "expired", "cancelled"}, stamp="sent_date"),
        "accepted": _rule(**_ESTIMATE_PRICING_LOCKED, stamp="accepted_date"),
        "expired": _rule(**_ESTIMATE_PRICING_LOCKED),
        "cancelled": _rule(**_ESTIMATE_PRICING_LOCKED),
    },
    "job": {
        "scheduled": _rule(next={"in_progress", "completed"}),
        "in_progress": _rule(next={"completed"}, stamp="started_timestamp"),
        "completed": _rule(
            locked=_JOB_CORE_FIELDS,
            children={"materials": NONE},
            next={"archived"},
            stamp="completed_timestamp",
        ),
        "archived": _rule(editable=NONE, stamp="archived_timestamp"),
    },
    "expense": {
        "draft": _rule(next={"submitted"}),
        "submitted": _rule(next={"approved", "draft"}, stamp="submitted_at"),
        "approved": _rule(editable=NONE, next={"archived"}, stamp="approved_at"),
        "archived": _rule(editable=NONE, stamp="archived_at"),
    },
    "affidavit": {
        "pending": _rule(next={"issued"}),
        "issued": _rule(editable=NONE, next={"locked", REVOKED}, stamp="date_issued"),
        "locked": _rule(editable=NONE, next={REVOKED}, stamp="locked_timestamp"),
        REVOKED: _rule(editable=NONE, stamp="revoked_timestamp"),
    },
}

INITIAL_STATUS = MappingProxyType({
    "invoice": "draft",
    "estimate": "draft",
    "job": "scheduled",
    "expense": "draft",
    "affidavit": "pending",
})

REGISTRY: Mapping[str, Mapping[str, StatusRule]] = MappingProxyType(
    {entity: MappingProxyType(table) for entity, table in _REGISTRY.items()}
)


def _check_registry() -> None:
    for entity_type, table in REGISTRY.items():
        assert INITIAL_STATUS[entity_type] in table, entity_type
        for status, rule in table.items():
            unknown = rule.next_statuses - set(table)
            assert not unknown, f"{entity_type}.{status} -> {sorted(unknown)}"
            assert status not in rule.next_statuses, f"{entity_type}.{status} self-edge"
        if REVOKED in table:
            assert not table[REVOKED].next_statuses, f"{entity_type}.revoked must be terminal"


_check_registry()


def entity_types() -> tuple[str, ...]:
    return tuple(REGISTRY)


def _table(entity_type: str) -> Mapping[str, StatusRule]:
    try:
        return REGISTRY[entity_type]
    except KeyError:
        raise ValidationError(f"Unknown entity type '{entity_type}'") from None


def statuses(entity_type: str) -> tuple[str, ...]:
    return tuple(_table(entity_type))


def validate_status(entity_type: str, status: str) -> None:
    """
    Validate that a status value is one of the type's declared states.

    Raises:
        ValidationError: If status is not declared for entity_type
    """
    table = _table(entity_type)
    if status not in table:
        raise ValidationError(
            f"Invalid {entity_type} status '{status}'. Must be one of: {', '.join(sorted(table))}",
            details={"entity_type": entity_type, "status": status},
        )


def rule_for(entity_type: str, status: str) -> StatusRule:
    validate_status(entity_type, status)
    return REGISTRY[entity_type][status]


def allowed_transitions(entity_type: str, status: str) -> frozenset:
    return rule_for(entity_type, status).next_statuses


def can_transition(entity_type: str, from_status: str, to_status: str) -> bool:
    validate_status(entity_type, to_status)
    return to_status in allowed_transitions(entity_type, from_status)


def require_transition(entity_type: str, from_status: str, to_status: str) -> None:
    """Raise InvalidTransition unless from_status -> to_status is a declared edge."""
    if not can_transition(entity_type, from_status, to_status):
        raise InvalidTransition(entity_type, from_status, to_status)


def is_terminal(entity_type: str, status: str) -> bool:
    return not allowed_transitions(entity_type, status)


def is_field_editable(entity_type: str, status: str, field_name: str) -> bool:
    return rule_for(entity_type, status).allows_field(field_name)


def editable_child_fields(entity_type: str, status: str, collection: str) -> FieldPolicy:
    """
    Child-collection policy: ALL (add/remove/edit anything), NONE, or the
    frozenset of child fields that may still change on existing rows.
    """
    return rule_for(entity_type, status).child_policy(collection)


def is_fully_editable(entity_type: str, status: str) -> bool:
    rule = rule_for(entity_type, status)
    return rule.editable == ALL and not rule.locked


def entry_timestamp_field(entity_type: str, status: str) -> str | None:
    return rule_for(entity_type, status).entry_timestamp


def revocable_statuses(entity_type: str) -> frozenset:
    return frozenset(s for s, rule in _table(entity_type).items() if REVOKED in rule.next_statuses)


def _policy_to_json(policy: FieldPolicy):
    if isinstance(policy, str):
        return policy
    return sorted(policy)


def editability(entity_type: str, status: str, collections: tuple[str, ...] = ()) -> dict:
    """Presentation payload for clients that disable locked inputs."""
    rule = rule_for(entity_type, status)
    return {
        "entity_type": entity_type,
        "status": status,
        "editable": _policy_to_json(rule.editable),
        "locked": sorted(rule.locked),
        "children": {name: _policy_to_json(rule.child_policy(name)) for name in collections},
        "allowed_transitions": sorted(rule.next_statuses),
        "terminal": not rule.next_statuses,
    }
