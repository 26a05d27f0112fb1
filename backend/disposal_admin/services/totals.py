# Overview: Totals calculator; subtotal, discount, tax, adjustments and shipping into a snapshot.

"""
Totals Calculator

The server-side calculator is authoritative: every save recomputes the
snapshot from line items, adjustments and the four user inputs
(discount type/value, tax rate, shipping) before commit. Client-submitted
derived values are ignored.

EVALUATION ORDER (fixed):
    discount_amount  = subtotal * value / 100   (percent)  |  value  (fixed)
    taxable_subtotal = subtotal - discount_amount
    tax_amount       = taxable_subtotal * tax_rate / 100
    total_amount     = taxable_subtotal + adjustments_total + tax_amount + shipping_amount
    balance_due      = total_amount - amount_paid

Discount applies to the line-item subtotal only. Adjustments are added
after the tax base and are not taxed; that is a business-policy assumption,
not a jurisdiction rule.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping

from ..errors import ValidationError
from .line_items import to_number


PERCENT = "percent"
FIXED = "fixed"

_DISCOUNT_ALIASES = {
    "percent": PERCENT,
    "percentage": PERCENT,
    "%": PERCENT,
    "fixed": FIXED,
    "amount": FIXED,
    "dollar": FIXED,
    "$": FIXED,
}


@dataclass(frozen=True)
class DiscountSpec:
    type: str = PERCENT
    value: float = 0.0

    def __post_init__(self):
        if self.type not in (PERCENT, FIXED):
            raise ValidationError(f"discount_type must be '{PERCENT}' or '{FIXED}'")
        if self.value < 0:
            raise ValidationError("discount_value must be >= 0", details={"field": "discount_value"})
        if self.type == PERCENT and self.value > 100:
            raise ValidationError("percent discount_value must be <= 100", details={"field": "discount_value"})

    @classmethod
    def from_payload(cls, discount_type: Any, discount_value: Any) -> "DiscountSpec":
        kind = _DISCOUNT_ALIASES.get(str(discount_type or PERCENT).strip().lower())
        if kind is None:
            raise ValidationError(
                f"discount_type must be one of: {', '.join(sorted(_DISCOUNT_ALIASES))}",
                details={"field": "discount_type"},
            )
        value = 0.0 if discount_value in (None, "") else to_number(discount_value, "discount_value")
        return cls(type=kind, value=value)

    def amount_for(self, subtotal: float) -> float:
        if self.type == PERCENT:
            return subtotal * self.value / 100
        return self.value


@dataclass(frozen=True)
class TotalsSnapshot:
    subtotal: float
    discount_type: str
    discount_value: float
    discount_amount: float
    discount_percent: float
    adjustments_total: float
    taxable_subtotal: float
    tax_rate: float
    tax_amount: float
    shipping_amount: float
    total_amount: float
    amount_paid: float
    balance_due: float

    def as_dict(self) -> dict:
        return asdict(self)


def _non_negative(value: Any, name: str) -> float:
    number = 0.0 if value in (None, "") else to_number(value, name)
    if number < 0:
        raise ValidationError(f"{name} must be >= 0", details={"field": name})
    return number


def compute_totals(
    subtotal: float,
    adjustments_total: float,
    discount: DiscountSpec,
    tax_rate: float,
    shipping_amount: float,
    amount_paid: float = 0.0,
) -> TotalsSnapshot:
    """Pure and idempotent: identical inputs always produce an identical snapshot."""
    tax_rate = _non_negative(tax_rate, "tax_rate")
    shipping_amount = _non_negative(shipping_amount, "shipping_amount")
    amount_paid = _non_negative(amount_paid, "amount_paid")

    discount_amount = discount.amount_for(subtotal)
    if discount.type == FIXED and discount_amount > subtotal:
        raise ValidationError(
            "discount_value must not exceed the subtotal",
            details={"field": "discount_value", "subtotal": subtotal},
        )
    taxable_subtotal = subtotal - discount_amount
    tax_amount = taxable_subtotal * (tax_rate / 100)
    total_amount = taxable_subtotal + adjustments_total + tax_amount + shipping_amount
    balance_due = total_amount - amount_paid

    if discount.type == PERCENT:
        discount_percent = discount.value
    else:
        discount_percent = (discount_amount / subtotal * 100) if subtotal else 0.0

    return TotalsSnapshot(
        subtotal=subtotal,
        discount_type=discount.type,
        discount_value=discount.value,
        discount_amount=discount_amount,
        discount_percent=discount_percent,
        adjustments_total=adjustments_total,
        taxable_subtotal=taxable_subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        shipping_amount=shipping_amount,
        total_amount=total_amount,
        amount_paid=amount_paid,
        balance_due=balance_due,
    )


def compute_for_inputs(
    inputs: Mapping[str, Any],
    *,
    subtotal: float,
    adjustments_total: float = 0.0,
) -> TotalsSnapshot:
    """Snapshot from a document-shaped mapping of the user inputs plus amount_paid."""
    discount = DiscountSpec.from_payload(inputs.get("discount_type"), inputs.get("discount_value"))
    return compute_totals(
        subtotal,
        adjustments_total,
        discount,
        inputs.get("tax_rate") or 0.0,
        inputs.get("shipping_amount") or 0.0,
        inputs.get("amount_paid") or 0.0,
    )


def display_amount(value: float | None) -> str:
    """Two-decimal presentation rounding (half up); never fed back into computation."""
    quantized = Decimal(repr(float(value or 0.0))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{quantized:,.2f}"
