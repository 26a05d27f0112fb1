# Overview: Shared column mixins and JSON serialization for document models.

from __future__ import annotations

from datetime import date, datetime

from ..extensions import db
from disposal_admin.time_utils import to_iso_date, to_utc_z


def serialize_value(value):
    # datetime is a date subclass, check it first
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, date):
        return to_iso_date(value)
    return value


class SerializeMixin:
    """Column-driven to_dict; models add their owned children on top."""

    def to_dict(self, include_children: bool = True) -> dict:
        # include_children only matters for models that own child rows
        return {
            col.key: serialize_value(getattr(self, col.key))
            for col in self.__table__.columns
        }


class TimestampMixin:
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())


class TotalsMixin:
    """
    Embedded totals snapshot.

    User inputs: discount_type, discount_value, tax_rate, shipping_amount.
    Everything else is written only by the totals calculator; amount_paid
    only by the payment service.
    """
    discount_type = db.Column(db.String(16), nullable=False, default="percent")  # percent, fixed
    discount_value = db.Column(db.Float, nullable=False, default=0.0)
    tax_rate = db.Column(db.Float, nullable=False, default=0.0)
    shipping_amount = db.Column(db.Float, nullable=False, default=0.0)

    subtotal = db.Column(db.Float, nullable=False, default=0.0)
    discount_amount = db.Column(db.Float, nullable=False, default=0.0)
    discount_percent = db.Column(db.Float, nullable=False, default=0.0)
    adjustments_total = db.Column(db.Float, nullable=False, default=0.0)
    taxable_subtotal = db.Column(db.Float, nullable=False, default=0.0)
    tax_amount = db.Column(db.Float, nullable=False, default=0.0)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)
    amount_paid = db.Column(db.Float, nullable=False, default=0.0)
    balance_due = db.Column(db.Float, nullable=False, default=0.0)


class LineItemMixin:
    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(500), nullable=True)
    quantity = db.Column(db.Float, nullable=False, default=0.0)
    unit_price = db.Column(db.Float, nullable=False, default=0.0)
    line_total = db.Column(db.Float, nullable=False, default=0.0)
    # Weak reference to the services catalog (lookup only, not owned)
    service_id = db.Column(db.Integer, nullable=True, index=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
