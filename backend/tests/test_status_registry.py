import pytest

from disposal_admin import status_registry as registry
from disposal_admin.errors import InvalidTransition, ValidationError


def test_every_entity_type_has_its_initial_status():
    assert set(registry.entity_types()) == {"invoice", "estimate", "job", "expense", "affidavit"}
    for entity_type, initial in registry.INITIAL_STATUS.items():
        assert initial in registry.statuses(entity_type)


def test_invoice_edges():
    assert registry.allowed_transitions("invoice", "draft") == {"sent", "void"}
    assert registry.allowed_transitions("invoice", "sent") == {"finalized", "void"}
    assert registry.allowed_transitions("invoice", "finalized") == {"paid", "void"}
    assert registry.is_terminal("invoice", "paid")
    assert registry.is_terminal("invoice", "void")


def test_paid_invoice_cannot_go_back_to_draft():
    assert not registry.can_transition("invoice", "paid", "draft")
    with pytest.raises(InvalidTransition) as exc:
        registry.require_transition("invoice", "paid", "draft")
    assert exc.value.current_status == "paid"
    assert exc.value.requested_status == "draft"


def test_no_self_transitions():
    for entity_type in registry.entity_types():
        for status in registry.statuses(entity_type):
            assert not registry.can_transition(entity_type, status, status)


def test_unknown_status_is_a_validation_error():
    with pytest.raises(ValidationError):
        registry.validate_status("invoice", "shipped")
    with pytest.raises(ValidationError):
        registry.rule_for("purchase_order", "draft")


def test_revoked_is_terminal_and_only_reachable_from_issued_or_locked():
    assert registry.is_terminal("affidavit", "revoked")
    assert registry.revocable_statuses("affidavit") == {"issued", "locked"}
    assert registry.revocable_statuses("invoice") == frozenset()


def test_estimate_pricing_lock_keeps_quantities_editable():
    assert registry.is_field_editable("estimate", "draft", "tax_rate")
    assert not registry.is_field_editable("estimate", "sent", "tax_rate")
    assert not registry.is_field_editable("estimate", "sent", "discount_value")
    assert registry.is_field_editable("estimate", "sent", "note_to_customer")

    lines = registry.editable_child_fields("estimate", "sent", "line_items")
    assert "quantity" in lines
    assert "unit_price" not in lines


def test_finalized_invoice_header_and_children():
    assert registry.is_field_editable("invoice", "finalized", "internal_notes")
    assert registry.is_field_editable("invoice", "finalized", "due_date")
    assert not registry.is_field_editable("invoice", "finalized", "customer_name")
    assert registry.editable_child_fields("invoice", "finalized", "adjustments") == registry.NONE
    assert registry.editable_child_fields("invoice", "draft", "adjustments") == registry.ALL


def test_completed_job_locks_core_fields_only():
    assert not registry.is_field_editable("job", "completed", "actual_completion_date")
    assert not registry.is_field_editable("job", "completed", "destruction_method")
    assert registry.is_field_editable("job", "completed", "special_handling_notes")
    assert registry.editable_child_fields("job", "completed", "materials") == registry.NONE
    assert not registry.is_fully_editable("job", "completed")
    assert registry.is_fully_editable("job", "in_progress")


def test_entry_timestamps():
    assert registry.entry_timestamp_field("invoice", "sent") == "sent_date"
    assert registry.entry_timestamp_field("job", "in_progress") == "started_timestamp"
    assert registry.entry_timestamp_field("affidavit", "revoked") == "revoked_timestamp"
    assert registry.entry_timestamp_field("invoice", "draft") is None


def test_editability_payload():
    payload = registry.editability("invoice", "finalized", ("line_items", "adjustments"))
    assert payload["status"] == "finalized"
    assert "internal_notes" in payload["editable"]
    assert payload["children"]["adjustments"] == "none"
    assert payload["children"]["line_items"] == ["description", "quantity", "sort_order"]
    assert payload["allowed_transitions"] == ["paid", "void"]
    assert payload["terminal"] is False


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        registry.REGISTRY["invoice"] = {}
