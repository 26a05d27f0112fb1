import pytest

from disposal_admin.errors import FieldLocked, ValidationError
from disposal_admin.services.adjustments import Adjustment, AdjustmentAggregator
from disposal_admin.services.line_items import LineItem, LineItemAggregator
from disposal_admin.services.materials import MaterialCollection
from disposal_admin.status_registry import NONE, QUANTITY_ONLY


def _lines(*rows, **kwargs):
    items = [LineItem(id=i + 1, quantity=q, unit_price=p, sort_order=i) for i, (q, p) in enumerate(rows)]
    return LineItemAggregator(items, **kwargs)


def test_quantity_change_recomputes_line_total_and_subtotal():
    lines = _lines((2, 10.0))
    assert lines.get(1).line_total == 20.0
    before = lines.total()

    lines.update_item(1, "quantity", 5)

    assert lines.get(1).line_total == 50.0
    assert lines.total() - before == 30.0


def test_zero_quantity_line_contributes_nothing():
    lines = _lines((0, 99.0), (3, 2.5))
    assert lines.get(1).line_total == 0.0
    assert lines.total() == 7.5


def test_negative_inputs_are_rejected():
    lines = _lines((1, 1.0))
    with pytest.raises(ValidationError):
        lines.update_item(1, "quantity", -1)
    with pytest.raises(ValidationError):
        lines.add_item(description="Bad", quantity=1, unit_price=-5)


def test_add_and_remove_invalidate_cached_total():
    lines = _lines((1, 10.0))
    assert lines.total() == 10.0
    added = lines.add_item(description="Transport", quantity=1, unit_price=40)
    assert lines.total() == 50.0
    lines.remove_item(added.id)
    assert lines.total() == 10.0


def test_reorder_keeps_total():
    lines = _lines((1, 10.0), (2, 5.0), (3, 1.0))
    total = lines.total()
    lines.reorder([3, 1, 2])
    assert [i.id for i in lines.items()] == [3, 1, 2]
    assert [i.sort_order for i in lines.items()] == [0, 1, 2]
    assert lines.total() == total


def test_reorder_requires_every_id():
    lines = _lines((1, 10.0), (2, 5.0))
    with pytest.raises(ValidationError):
        lines.reorder([1])


def test_quantity_only_policy():
    lines = _lines((2, 10.0), policy=QUANTITY_ONLY, entity_type="estimate", status="sent")

    lines.update_item(1, "quantity", 3)
    assert lines.total() == 30.0

    with pytest.raises(FieldLocked) as exc:
        lines.update_item(1, "unit_price", 12)
    assert exc.value.field == "line_items.unit_price"
    with pytest.raises(FieldLocked):
        lines.add_item(description="Extra", quantity=1, unit_price=1)
    with pytest.raises(FieldLocked):
        lines.remove_item(1)


def test_unchanged_value_passes_a_lock():
    lines = _lines((2, 10.0), policy=NONE, entity_type="invoice", status="void")
    lines.update_item(1, "unit_price", "10")
    assert lines.get(1).unit_price == 10.0


def test_unknown_item_and_field():
    lines = _lines((1, 1.0))
    with pytest.raises(ValidationError):
        lines.get(42)
    with pytest.raises(ValidationError):
        lines.update_item(1, "line_total", 100)


def test_adjustments_total_is_signed():
    adjustments = AdjustmentAggregator([
        Adjustment(id=1, adjustment_type="transportation", amount=45.0, reason="Truck to site"),
        Adjustment(id=2, adjustment_type="credit_discount", amount=-15.0, reason="Loyalty credit"),
    ])
    assert adjustments.total() == 30.0


def test_adjustment_requires_reason():
    adjustments = AdjustmentAggregator()
    with pytest.raises(ValidationError):
        adjustments.add_item(adjustment_type="storage", amount=10, reason="  ")
    with pytest.raises(ValidationError):
        adjustments.add_item(adjustment_type="bribe", amount=10, reason="No")


def test_materials_validate_enumerations():
    materials = MaterialCollection()
    materials.add_item(material_type="alcoholic_beverages", packaging_type="aluminum_cans", quantity=12)
    assert materials.total() == 12.0
    with pytest.raises(ValidationError):
        materials.add_item(material_type="plutonium")
