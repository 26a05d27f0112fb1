# Overview: Line item aggregation; quantity x unit price rollups shared by invoices and estimates.

"""
Line Item Aggregator

Pure, in-memory collection of line items for one document. No database
access here: the document service loads rows into LineItem values, runs the
requested edits through the aggregator (which enforces the status lock
policy it was built with), and writes the result back.

INVARIANTS:
- line_total == quantity * unit_price, recomputed on every quantity/price change
- total() is the sum of current line totals; any add/update/remove drops the
  cached subtotal, reorder() does not
- quantity == 0 is a valid placeholder line and contributes exactly 0
- no rounding here; amounts are rounded only when displayed
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Iterable

from ..errors import FieldLocked, ValidationError
from ..status_registry import ALL, NONE, FieldPolicy


ESTIMATE_ITEM_TYPES = frozenset({"service", "charge"})


def to_number(value: Any, name: str) -> float:
    """Coerce JSON-ish numeric input (int, float, numeric string) to float."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{name} must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        stripped = value.strip()
        try:
            return float(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be a number") from None
    raise ValidationError(f"{name} must be a number")


def to_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValidationError(f"{name} must be an integer")


@dataclass
class LineItem:
    id: Any = None
    description: str | None = None
    quantity: float = 0.0
    unit_price: float = 0.0
    line_total: float = 0.0
    service_id: int | None = None
    sort_order: int = 0
    item_type: str | None = None

    def recompute(self) -> "LineItem":
        self.line_total = self.quantity * self.unit_price
        return self

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class OwnedCollection:
    """
    Ordered child rows owned by one document, with a status lock policy.

    policy:
        ALL       add, remove, reorder and edit any field
        NONE      read-only
        frozenset only the listed fields of existing rows may change
    """

    item_class: type = LineItem
    collection_name = "line_items"
    # Fields a client may set; everything else (ids, derived values) is rejected
    writable_fields: frozenset = frozenset()

    def __init__(
        self,
        items: Iterable = (),
        *,
        policy: FieldPolicy = ALL,
        entity_type: str = "document",
        status: str = "draft",
    ):
        self._items: list = []
        self._policy = policy
        self._entity_type = entity_type
        self._status = status
        self._cached_total: float | None = None
        self._next_temp_id = 1
        for item in sorted(items, key=lambda i: (i.sort_order, str(i.id))):
            self._items.append(self._prepare(replace(item)))

    # ---------------------------------------------------------------- policy

    def _locked(self, what: str) -> FieldLocked:
        return FieldLocked(self._entity_type, self._status, what)

    def _require_structural_edit(self) -> None:
        if self._policy != ALL:
            raise self._locked(self.collection_name)

    def _require_field_edit(self, name: str) -> None:
        if self._policy == ALL:
            return
        if self._policy == NONE or name not in self._policy:
            raise self._locked(f"{self.collection_name}.{name}")

    # ---------------------------------------------------------------- hooks

    def _prepare(self, item):
        return item

    def _coerce(self, name: str, value: Any) -> Any:
        return value

    def _after_update(self, item, name: str) -> None:
        pass

    # ---------------------------------------------------------------- access

    def items(self) -> list:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, item_id):
        for item in self._items:
            if item.id == item_id or str(item.id) == str(item_id):
                return item
        raise ValidationError(
            f"Unknown {self.collection_name} item {item_id}",
            details={"id": item_id},
        )

    # ---------------------------------------------------------------- edits

    def add_item(self, **values):
        self._require_structural_edit()
        unknown = set(values) - self.writable_fields - {"id"}
        if unknown:
            raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

        item_id = values.pop("id", None)
        if item_id is None:
            item_id = f"new-{self._next_temp_id}"
            self._next_temp_id += 1

        coerced = {name: self._coerce(name, value) for name, value in values.items()}
        coerced.setdefault("sort_order", len(self._items))
        item = self._prepare(self.item_class(id=item_id, **coerced))
        self._items.append(item)
        self._cached_total = None
        return item

    def update_item(self, item_id, field_name: str, value: Any):
        if field_name not in self.writable_fields:
            raise ValidationError(f"Field not allowed: {field_name}")
        item = self.get(item_id)
        coerced = self._coerce(field_name, value)
        if getattr(item, field_name) == coerced:
            return item
        self._require_field_edit(field_name)
        setattr(item, field_name, coerced)
        self._after_update(item, field_name)
        self._cached_total = None
        return item

    def remove_item(self, item_id):
        self._require_structural_edit()
        item = self.get(item_id)
        self._items.remove(item)
        self._cached_total = None
        return item

    def reorder(self, ids: list) -> None:
        """Reassign sort_order to follow ids; totals are unaffected."""
        current = [str(i.id) for i in self._items]
        if sorted(str(i) for i in ids) != sorted(current):
            raise ValidationError(
                "reorder ids must list every item exactly once",
                details={"expected": current, "received": [str(i) for i in ids]},
            )
        self._require_field_edit("sort_order")
        by_id = {str(i.id): i for i in self._items}
        self._items = [by_id[str(i)] for i in ids]
        for position, item in enumerate(self._items):
            item.sort_order = position

    # ---------------------------------------------------------------- totals

    def _amount(self, item) -> float:
        raise NotImplementedError

    def total(self) -> float:
        if self._cached_total is None:
            self._cached_total = sum((self._amount(i) for i in self._items), 0.0)
        return self._cached_total


class LineItemAggregator(OwnedCollection):
    item_class = LineItem
    collection_name = "line_items"
    writable_fields = frozenset({
        "description", "quantity", "unit_price", "service_id", "sort_order", "item_type",
    })

    def _prepare(self, item: LineItem) -> LineItem:
        return item.recompute()

    def _coerce(self, name: str, value: Any) -> Any:
        if name == "quantity":
            qty = to_number(value, "quantity")
            if qty < 0:
                raise ValidationError("quantity must be >= 0")
            return qty
        if name == "unit_price":
            price = to_number(value, "unit_price")
            if price < 0:
                raise ValidationError("unit_price must be >= 0")
            return price
        if name == "sort_order":
            return to_int(value, "sort_order")
        if name == "service_id":
            return None if value in (None, "") else to_int(value, "service_id")
        if name == "item_type":
            if value is None:
                return None
            if value not in ESTIMATE_ITEM_TYPES:
                raise ValidationError(
                    f"item_type must be one of: {', '.join(sorted(ESTIMATE_ITEM_TYPES))}"
                )
            return value
        if name == "description":
            return None if value is None else str(value).strip()
        return value

    def _after_update(self, item: LineItem, name: str) -> None:
        if name in ("quantity", "unit_price"):
            item.recompute()

    def _amount(self, item: LineItem) -> float:
        return item.line_total
