from datetime import date

import pytest

from conftest import make_invoice, make_job
from disposal_admin.errors import InvalidTransition, PreconditionUnmet, RevocationDenied, ValidationError
from disposal_admin.services import document_service, payment_service, revocation_service
from disposal_admin.services.lifecycle_service import transition_document
from disposal_admin.time_utils import today


def _paid_invoice():
    invoice = make_invoice()
    transition_document("invoice", invoice.id, "sent")
    payment_service.record_payment(
        payment_amount=20,
        allocations=[{"invoice_id": invoice.id, "amount_applied": 20}],
    )
    return document_service.get_document("invoice", invoice.id)


def _completed_job():
    job = make_job()
    return transition_document(
        "job", job.id, "completed", changes={"actual_completion_date": date(2026, 10, 18)}
    )


def test_paid_invoice_cannot_return_to_draft(db_session):
    invoice = _paid_invoice()
    assert invoice.status == "paid"

    with pytest.raises(InvalidTransition):
        transition_document("invoice", invoice.id, "draft")
    with pytest.raises(InvalidTransition):
        document_service.update_document("invoice", invoice.id, target_status="draft")

    assert document_service.get_document("invoice", invoice.id).status == "paid"


def test_same_status_is_not_a_transition(db_session):
    invoice = make_invoice()
    with pytest.raises(InvalidTransition):
        transition_document("invoice", invoice.id, "draft")
    # A plain save that repeats the current status is accepted
    saved = document_service.update_document("invoice", invoice.id, {"internal_notes": "x"}, target_status="draft")
    assert saved.status == "draft"


def test_unknown_status_is_rejected(db_session):
    invoice = make_invoice()
    with pytest.raises(ValidationError):
        transition_document("invoice", invoice.id, "shipped")


def test_send_stamps_sent_date(db_session):
    invoice = make_invoice()
    assert invoice.sent_date is None

    sent = transition_document("invoice", invoice.id, "sent")

    assert sent.status == "sent"
    assert sent.sent_date is not None


def test_invoice_needs_email_before_sending(db_session):
    invoice = make_invoice(customer_email=None)
    with pytest.raises(PreconditionUnmet):
        transition_document("invoice", invoice.id, "sent")

    sent = transition_document("invoice", invoice.id, "sent", changes={"customer_email": "ap@harbor.test"})
    assert sent.status == "sent"


def test_invoice_needs_a_line_before_sending(db_session):
    invoice = make_invoice(lines=[])
    with pytest.raises(PreconditionUnmet):
        transition_document("invoice", invoice.id, "sent")
    assert document_service.get_document("invoice", invoice.id).status == "draft"


def test_void_from_finalized(db_session):
    invoice = make_invoice()
    transition_document("invoice", invoice.id, "sent")
    transition_document("invoice", invoice.id, "finalized")

    voided = transition_document("invoice", invoice.id, "void")

    assert voided.status == "void"
    assert voided.voided_date is not None
    assert voided.finalized_date is not None


def test_job_completion_requires_completion_date(db_session):
    job = make_job()

    with pytest.raises(PreconditionUnmet) as exc:
        transition_document("job", job.id, "completed")
    assert exc.value.details["field"] == "actual_completion_date"
    assert document_service.get_document("job", job.id).status == "scheduled"


def test_job_completion_with_bundled_date(db_session):
    job = _completed_job()

    assert job.status == "completed"
    assert job.actual_completion_date == date(2026, 10, 18)
    assert job.completed_timestamp is not None


def test_failed_transition_discards_bundled_changes(db_session):
    job = make_job()
    transition_document("job", job.id, "in_progress")
    transition_document("job", job.id, "completed", changes={"actual_completion_date": date(2026, 10, 18)})

    with pytest.raises(InvalidTransition):
        transition_document("job", job.id, "in_progress", changes={"special_handling_notes": "retry"})
    assert document_service.get_document("job", job.id).special_handling_notes is None


def test_starting_a_job_sets_start_date(db_session):
    job = make_job()

    started = transition_document("job", job.id, "in_progress")

    assert started.actual_start_date == today()
    assert started.started_timestamp is not None


def test_explicit_start_date_is_kept(db_session):
    job = make_job(actual_start_date=date(2026, 10, 1))
    started = transition_document("job", job.id, "in_progress")
    assert started.actual_start_date == date(2026, 10, 1)


def test_expense_approval_and_rejection(db_session, vendor):
    expense = document_service.create_document("expense", {
        "vendor_id": vendor.id,
        "expense_type": "transport",
        "expense_date": date(2026, 10, 2),
        "description": "Hauling",
        "amount": 95,
    })

    submitted = transition_document("expense", expense.id, "submitted")
    assert submitted.submitted_at is not None

    rejected = transition_document("expense", expense.id, "draft", context={"reason": "Missing receipt"})
    assert rejected.status == "draft"

    transition_document("expense", expense.id, "submitted")
    approved = transition_document("expense", expense.id, "approved")
    assert approved.approved_at is not None

    with pytest.raises(InvalidTransition):
        transition_document("expense", expense.id, "draft")


def test_affidavit_issue_requires_completed_job(db_session):
    job = make_job()
    affidavit = document_service.create_document("affidavit", {
        "job_id": job.id,
        "description_of_materials": "40 cases of IPA",
        "description_of_process": "Crushed and recycled",
    })
    assert affidavit.affidavit_number == "AFF-0001"
    assert affidavit.job_reference == job.job_number

    with pytest.raises(PreconditionUnmet):
        transition_document("affidavit", affidavit.id, "issued")


def test_affidavit_issue_requires_descriptions(db_session):
    job = _completed_job()
    affidavit = document_service.create_document("affidavit", {"job_id": job.id})

    with pytest.raises(PreconditionUnmet) as exc:
        transition_document("affidavit", affidavit.id, "issued")
    assert exc.value.details["missing"] == ["description_of_materials", "description_of_process"]

    issued = transition_document("affidavit", affidavit.id, "issued", changes={
        "description_of_materials": "40 cases of IPA",
        "description_of_process": "Crushed and recycled",
    })
    assert issued.status == "issued"
    assert issued.date_issued is not None


def test_affidavit_revocation(db_session):
    job = _completed_job()
    affidavit = document_service.create_document(
        "affidavit",
        {
            "job_id": job.id,
            "description_of_materials": "40 cases of IPA",
            "description_of_process": "Crushed and recycled",
        },
        target_status="issued",
    )
    assert affidavit.status == "issued"

    with pytest.raises(RevocationDenied):
        revocation_service.revoke("affidavit", affidavit.id, "   ")

    revoked = revocation_service.revoke("affidavit", affidavit.id, "Wrong job", revoked_by="ops")
    assert revoked.status == "revoked"
    assert revoked.revocation_reason == "Wrong job"
    assert revoked.revoked_by == "ops"
    assert revoked.revoked_timestamp is not None

    with pytest.raises(InvalidTransition):
        transition_document("affidavit", affidavit.id, "issued")


def test_revocation_through_transition_needs_reason(db_session):
    job = _completed_job()
    affidavit = document_service.create_document(
        "affidavit",
        {
            "job_id": job.id,
            "description_of_materials": "Pallets",
            "description_of_process": "Shredded",
        },
        target_status="issued",
    )
    transition_document("affidavit", affidavit.id, "locked")

    with pytest.raises(RevocationDenied):
        transition_document("affidavit", affidavit.id, "revoked")

    revoked = transition_document("affidavit", affidavit.id, "revoked", context={"reason": "Duplicate"})
    assert revoked.status == "revoked"


def test_pending_affidavit_cannot_be_revoked(db_session):
    job = make_job()
    affidavit = document_service.create_document("affidavit", {"job_id": job.id})

    with pytest.raises(RevocationDenied):
        revocation_service.revoke("affidavit", affidavit.id, "Mistake")
