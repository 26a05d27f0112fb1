# Overview: Adjustment aggregation; signed, reason-justified charges and credits on invoices.

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from ..errors import ValidationError
from .line_items import OwnedCollection, to_int, to_number


ADJUSTMENT_TYPES = frozenset({
    "transportation",
    "fuel_surcharge",
    "cod_affidavit_fee",
    "storage",
    "disposal",
    "credit_discount",
    "other",
})


@dataclass
class Adjustment:
    id: Any = None
    adjustment_type: str = "other"
    amount: float = 0.0
    reason: str = ""
    sort_order: int = 0

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def require_reason(reason: Any) -> str:
    """Audit requirement: every charge or credit states why it exists."""
    if reason is None or not str(reason).strip():
        raise ValidationError("Adjustment reason is required", details={"field": "reason"})
    return str(reason).strip()


class AdjustmentAggregator(OwnedCollection):
    """
    Signed total over ad-hoc charges (positive) and credits (negative).

    Adjustments are added after the taxable subtotal by the totals
    calculator; they are neither discounted nor taxed.
    """

    item_class = Adjustment
    collection_name = "adjustments"
    writable_fields = frozenset({"adjustment_type", "amount", "reason", "sort_order"})

    def _prepare(self, item: Adjustment) -> Adjustment:
        item.reason = require_reason(item.reason)
        if item.adjustment_type not in ADJUSTMENT_TYPES:
            raise ValidationError(f"Unknown adjustment_type '{item.adjustment_type}'")
        return item

    def _coerce(self, name: str, value: Any) -> Any:
        if name == "amount":
            return to_number(value, "amount")
        if name == "reason":
            return require_reason(value)
        if name == "sort_order":
            return to_int(value, "sort_order")
        if name == "adjustment_type":
            if value not in ADJUSTMENT_TYPES:
                raise ValidationError(
                    f"adjustment_type must be one of: {', '.join(sorted(ADJUSTMENT_TYPES))}"
                )
            return value
        return value

    def _amount(self, item: Adjustment) -> float:
        return item.amount
