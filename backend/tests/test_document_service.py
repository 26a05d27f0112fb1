from datetime import date

import pytest

from conftest import make_estimate, make_invoice, make_job
from disposal_admin.errors import ConflictError, FieldLocked, NotFoundError, PreconditionUnmet, ValidationError
from disposal_admin.models import Invoice
from disposal_admin.services import delivery_service, document_service, lifecycle_service, payment_service


def _send(invoice):
    return lifecycle_service.transition_document("invoice", invoice.id, "sent")


def _finalize(invoice):
    _send(invoice)
    return lifecycle_service.transition_document("invoice", invoice.id, "finalized")


def test_numbers_are_sequential_per_type(db_session):
    first = make_invoice()
    second = make_invoice()
    estimate = make_estimate()

    assert first.invoice_number == "INV-0001"
    assert second.invoice_number == "INV-0002"
    assert estimate.estimate_number == "EST-0001"


def test_next_document_number_honours_padding(db_session):
    assert document_service.next_document_number(document_type="credit_memo", prefix="CM", pad=6) == "CM-000001"
    assert document_service.next_document_number(document_type="credit_memo", prefix="CM", pad=6) == "CM-000002"
    db_session.rollback()


def test_create_invoice_computes_totals(db_session):
    invoice = make_invoice(
        lines=[{"description": "Pallet destruction", "quantity": 4, "unit_price": 25}],
        adjustments=[{"adjustment_type": "transportation", "amount": 20, "reason": "Truck to brewery"}],
        discount_type="percent",
        discount_value=10,
        tax_rate=8,
        shipping_amount=5,
    )

    assert invoice.status == "draft"
    assert invoice.subtotal == pytest.approx(100.0)
    assert invoice.discount_amount == pytest.approx(10.0)
    assert invoice.taxable_subtotal == pytest.approx(90.0)
    assert invoice.tax_amount == pytest.approx(7.2)
    assert invoice.adjustments_total == pytest.approx(20.0)
    assert invoice.total_amount == pytest.approx(122.2)
    assert invoice.balance_due == pytest.approx(122.2)
    assert invoice.line_items[0].line_total == pytest.approx(100.0)


def test_due_date_follows_customer_terms(db_session, customer):
    invoice = make_invoice(customer_id=customer.id, customer_email=None, issue_date=date(2026, 10, 1))

    assert invoice.payment_terms == "net_15"
    assert invoice.due_date == date(2026, 10, 16)
    assert invoice.customer_email == "ap@harbor.test"


def test_due_date_before_issue_date_is_rejected(db_session):
    with pytest.raises(ValidationError):
        make_invoice(issue_date=date(2026, 10, 10), due_date=date(2026, 10, 1))
    assert db_session.query(Invoice).count() == 0


def test_unknown_customer_is_not_found(db_session):
    with pytest.raises(NotFoundError):
        make_invoice(customer_id=999999)


def test_update_replaces_children_and_recomputes(db_session):
    invoice = make_invoice()
    line = invoice.line_items[0]

    updated = document_service.update_document(
        "invoice",
        invoice.id,
        {"tax_rate": 10},
        children={"line_items": [
            {"id": line.id, "quantity": 3, "line_total": 12345},
            {"description": "Transport", "quantity": 1, "unit_price": 40},
        ]},
    )

    assert len(updated.line_items) == 2
    assert updated.subtotal == pytest.approx(70.0)
    assert updated.tax_amount == pytest.approx(7.0)
    assert updated.total_amount == pytest.approx(77.0)


def test_paid_invoice_quantity_edit_logs_open_balance(db_session, caplog):
    invoice = make_invoice()
    _send(invoice)
    payment_service.record_payment(
        payment_amount=20,
        allocations=[{"invoice_id": invoice.id, "amount_applied": 20}],
    )
    line_id = invoice.line_items[0].id

    with caplog.at_level("WARNING"):
        updated = document_service.update_document(
            "invoice", invoice.id, children={"line_items": [{"id": line_id, "quantity": 10}]}
        )

    assert updated.status == "paid"
    assert updated.balance_due == pytest.approx(80.0)
    assert "Paid invoice INV-0001 now has balance_due 80.00" in caplog.text


def test_missing_child_rows_are_removed(db_session):
    invoice = make_invoice(lines=[
        {"description": "A", "quantity": 1, "unit_price": 10},
        {"description": "B", "quantity": 1, "unit_price": 5},
    ])
    keep = invoice.line_items[0]

    updated = document_service.update_document(
        "invoice", invoice.id, children={"line_items": [{"id": keep.id}]}
    )

    assert [row.id for row in updated.line_items] == [keep.id]
    assert updated.subtotal == pytest.approx(10.0)


def test_locked_field_leaves_stored_row_unchanged(db_session):
    invoice = make_invoice(internal_notes="before")
    _finalize(invoice)

    with pytest.raises(FieldLocked) as exc:
        document_service.update_document(
            "invoice", invoice.id, {"internal_notes": "after", "customer_name": "Someone Else"}
        )
    assert exc.value.field == "customer_name"

    stored = document_service.get_document("invoice", invoice.id)
    assert stored.customer_name == "Harbor Breweries"
    assert stored.internal_notes == "before"
    assert stored.status == "finalized"


def test_finalized_invoice_allows_quantity_but_not_price(db_session):
    invoice = make_invoice()
    _finalize(invoice)
    line_id = invoice.line_items[0].id

    updated = document_service.update_document(
        "invoice", invoice.id, children={"line_items": [{"id": line_id, "quantity": 5}]}
    )
    assert updated.total_amount == pytest.approx(50.0)

    with pytest.raises(FieldLocked) as exc:
        document_service.update_document(
            "invoice", invoice.id, children={"line_items": [{"id": line_id, "unit_price": 11}]}
        )
    assert exc.value.field == "line_items.unit_price"

    with pytest.raises(FieldLocked):
        document_service.update_document(
            "invoice",
            invoice.id,
            children={"adjustments": [{"adjustment_type": "storage", "amount": 5, "reason": "Extra week"}]},
        )


def test_sent_estimate_locks_pricing_but_not_quantities(db_session):
    estimate = make_estimate(tax_rate=5)
    lifecycle_service.transition_document("estimate", estimate.id, "sent")
    line_id = estimate.line_items[0].id

    with pytest.raises(FieldLocked):
        document_service.update_document("estimate", estimate.id, {"tax_rate": 7})

    with pytest.raises(FieldLocked):
        document_service.update_document(
            "estimate", estimate.id, children={"line_items": [{"id": line_id, "unit_price": 30}]}
        )

    updated = document_service.update_document(
        "estimate", estimate.id, children={"line_items": [{"id": line_id, "quantity": 6}]}
    )
    assert updated.subtotal == pytest.approx(150.0)
    assert updated.tax_amount == pytest.approx(7.5)


def test_unknown_child_field_is_rejected(db_session):
    invoice = make_invoice()
    with pytest.raises(ValidationError):
        document_service.update_document(
            "invoice",
            invoice.id,
            children={"line_items": [{"description": "X", "quantity": 1, "unit_price": 1, "item_type": "charge"}]},
        )


def test_reorder_children(db_session):
    invoice = make_invoice(lines=[
        {"description": "A", "quantity": 1, "unit_price": 1},
        {"description": "B", "quantity": 1, "unit_price": 2},
        {"description": "C", "quantity": 1, "unit_price": 3},
    ])
    ids = [row.id for row in invoice.line_items]

    reordered = document_service.reorder_children("invoice", invoice.id, "line_items", list(reversed(ids)))

    assert [row.description for row in reordered.line_items] == ["C", "B", "A"]
    assert reordered.subtotal == pytest.approx(6.0)


def test_list_documents_filters_by_status(db_session):
    draft = make_invoice()
    sent = make_invoice()
    _send(sent)

    rows, total = document_service.list_documents("invoice", status="sent")
    assert total == 1
    assert [row.id for row in rows] == [sent.id]

    rows, total = document_service.list_documents("invoice")
    assert total == 2
    assert rows[0].id == sent.id
    assert rows[1].id == draft.id

    with pytest.raises(ValidationError):
        document_service.list_documents("invoice", status="shipped")


def test_job_requires_accepted_estimate(db_session, customer):
    estimate = make_estimate(customer_id=customer.id, job_reference="Expired IPA")

    with pytest.raises(PreconditionUnmet):
        document_service.create_document("job", {"estimate_id": estimate.id})

    lifecycle_service.transition_document("estimate", estimate.id, "sent")
    delivery_service.respond_to_estimate(estimate.id, "accept", "Looks good")

    job = document_service.create_document("job", {"estimate_id": estimate.id})
    assert job.job_number == "JOB-0001"
    assert job.status == "scheduled"
    assert job.customer_id == customer.id
    assert job.estimate_number == estimate.estimate_number
    assert job.job_name == "Expired IPA"


def test_job_materials_follow_job_lock(db_session):
    job = make_job()
    job = document_service.update_document(
        "job",
        job.id,
        {"actual_completion_date": date(2026, 10, 18)},
        children={"materials": [
            {"material_type": "alcoholic_beverages", "packaging_type": "aluminum_cans", "quantity": 40,
             "unit_of_measure": "cases", "final_disposition": "recycling"},
        ]},
    )
    assert len(job.materials) == 1

    lifecycle_service.transition_document("job", job.id, "completed")
    with pytest.raises(FieldLocked):
        document_service.update_document(
            "job", job.id, children={"materials": []}
        )
    updated = document_service.update_document("job", job.id, {"special_handling_notes": "Forklift needed"})
    assert updated.special_handling_notes == "Forklift needed"


def test_expense_requires_fields_and_takes_vendor_name(db_session, vendor):
    with pytest.raises(ValidationError) as exc:
        document_service.create_document("expense", {"vendor_id": vendor.id, "expense_type": "transport"})
    assert exc.value.details["missing"] == ["description", "expense_date"]

    expense = document_service.create_document("expense", {
        "vendor_id": vendor.id,
        "expense_type": "transport",
        "expense_date": date(2026, 10, 2),
        "description": "Hauling to landfill",
        "amount": 180,
    })
    assert expense.expense_number == "EXP-0001"
    assert expense.vendor_name == "County Landfill"
    assert expense.attachments == []


def test_delete_only_while_fully_editable(db_session):
    draft = make_invoice()
    finalized = make_invoice()
    _finalize(finalized)

    with pytest.raises(FieldLocked):
        document_service.delete_document("invoice", finalized.id)

    document_service.delete_document("invoice", draft.id)
    with pytest.raises(NotFoundError):
        document_service.get_document("invoice", draft.id)


def test_delete_refused_while_referenced(db_session):
    job = make_job()
    document_service.create_document("affidavit", {"job_id": job.id})

    with pytest.raises(ConflictError):
        document_service.delete_document("job", job.id)


def test_delete_refused_while_invoiced(db_session):
    job = make_job()
    estimate = make_estimate()
    make_invoice(job_id=job.id, estimate_id=estimate.id)

    with pytest.raises(ConflictError) as excinfo:
        document_service.delete_document("job", job.id)
    assert excinfo.value.details["referenced_by"] == "invoices"

    with pytest.raises(ConflictError):
        document_service.delete_document("estimate", estimate.id)

    assert document_service.get_document("job", job.id).id == job.id
    assert document_service.get_document("estimate", estimate.id).id == estimate.id


def test_unknown_entity_type(db_session):
    with pytest.raises(ValidationError):
        document_service.get_document("purchase_order", 1)
