# Overview: Job material rows; descriptive child collection under the job lock policy.

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from ..errors import ValidationError
from ..models.jobs import FINAL_DISPOSITIONS, MATERIAL_TYPES, PACKAGING_TYPES, UNITS_OF_MEASURE
from .line_items import OwnedCollection, to_int, to_number


_CHOICES = {
    "material_type": MATERIAL_TYPES,
    "packaging_type": PACKAGING_TYPES,
    "unit_of_measure": UNITS_OF_MEASURE,
    "final_disposition": FINAL_DISPOSITIONS,
}


@dataclass
class Material:
    id: Any = None
    material_type: str = "other"
    packaging_type: str = "other"
    quantity: float = 0.0
    unit_of_measure: str = "units"
    container_type: str | None = None
    final_disposition: str = "other"
    description: str | None = None
    sort_order: int = 0

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class MaterialCollection(OwnedCollection):
    item_class = Material
    collection_name = "materials"
    writable_fields = frozenset({
        "material_type", "packaging_type", "quantity", "unit_of_measure",
        "container_type", "final_disposition", "description", "sort_order",
    })

    def _coerce(self, name: str, value: Any) -> Any:
        if name in _CHOICES:
            if value not in _CHOICES[name]:
                raise ValidationError(
                    f"{name} must be one of: {', '.join(sorted(_CHOICES[name]))}",
                    details={"field": name, "value": value},
                )
            return value
        if name == "quantity":
            qty = to_number(value, "quantity")
            if qty < 0:
                raise ValidationError("quantity must be >= 0")
            return qty
        if name == "sort_order":
            return to_int(value, "sort_order")
        if value is None:
            return None
        return str(value).strip()

    def _amount(self, item: Material) -> float:
        # Total declared quantity; informational only, never priced
        return item.quantity
