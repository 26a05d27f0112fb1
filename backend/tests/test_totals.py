import pytest

from disposal_admin.errors import ValidationError
from disposal_admin.services.totals import (
    FIXED,
    PERCENT,
    DiscountSpec,
    compute_for_inputs,
    compute_totals,
    display_amount,
)


def test_evaluation_order():
    snapshot = compute_totals(
        subtotal=100.0,
        adjustments_total=20.0,
        discount=DiscountSpec(PERCENT, 10),
        tax_rate=8,
        shipping_amount=5,
    )
    assert snapshot.discount_amount == pytest.approx(10.0)
    assert snapshot.taxable_subtotal == pytest.approx(90.0)
    assert snapshot.tax_amount == pytest.approx(7.2)
    assert snapshot.total_amount == pytest.approx(122.2)
    assert snapshot.balance_due == pytest.approx(122.2)


def test_totals_are_idempotent():
    args = dict(
        subtotal=345.67,
        adjustments_total=-12.5,
        discount=DiscountSpec(FIXED, 20),
        tax_rate=6.25,
        shipping_amount=15,
        amount_paid=100,
    )
    assert compute_totals(**args) == compute_totals(**args)


def test_fixed_discount_reports_equivalent_percent():
    snapshot = compute_totals(200.0, 0.0, DiscountSpec(FIXED, 50), 0, 0)
    assert snapshot.discount_amount == 50.0
    assert snapshot.discount_percent == pytest.approx(25.0)


def test_adjustments_are_not_taxed():
    without = compute_totals(100.0, 0.0, DiscountSpec(), 10, 0)
    with_adjustment = compute_totals(100.0, 50.0, DiscountSpec(), 10, 0)
    assert with_adjustment.tax_amount == without.tax_amount
    assert with_adjustment.total_amount - without.total_amount == pytest.approx(50.0)


def test_amount_paid_reduces_balance():
    snapshot = compute_totals(100.0, 0.0, DiscountSpec(), 0, 0, amount_paid=40)
    assert snapshot.total_amount == 100.0
    assert snapshot.balance_due == 60.0


def test_discount_aliases_and_validation():
    assert DiscountSpec.from_payload("percentage", "10").type == PERCENT
    assert DiscountSpec.from_payload("$", 5).type == FIXED
    assert DiscountSpec.from_payload(None, None) == DiscountSpec(PERCENT, 0.0)
    with pytest.raises(ValidationError):
        DiscountSpec.from_payload("bogo", 1)
    with pytest.raises(ValidationError):
        DiscountSpec.from_payload("percent", -1)


def test_discount_cannot_exceed_subtotal():
    with pytest.raises(ValidationError) as excinfo:
        compute_totals(20.0, 0.0, DiscountSpec(FIXED, 50), 10, 0)
    assert excinfo.value.details["field"] == "discount_value"

    with pytest.raises(ValidationError):
        DiscountSpec.from_payload("percent", 150)

    full = compute_totals(20.0, 0.0, DiscountSpec(FIXED, 20), 10, 0)
    assert full.taxable_subtotal == 0.0
    assert full.tax_amount == 0.0


def test_negative_rates_rejected():
    with pytest.raises(ValidationError):
        compute_totals(10.0, 0.0, DiscountSpec(), -1, 0)
    with pytest.raises(ValidationError):
        compute_totals(10.0, 0.0, DiscountSpec(), 0, -5)


def test_compute_for_inputs_reads_document_shape():
    snapshot = compute_for_inputs(
        {"discount_type": "percent", "discount_value": 10, "tax_rate": 8, "shipping_amount": 5},
        subtotal=100.0,
        adjustments_total=20.0,
    )
    assert snapshot.total_amount == pytest.approx(122.2)
    assert snapshot.as_dict()["tax_rate"] == 8.0


def test_display_amount_rounds_half_up():
    assert display_amount(1234.5) == "1,234.50"
    assert display_amount(0.125) == "0.13"
    assert display_amount(None) == "0.00"
