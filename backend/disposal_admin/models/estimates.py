from __future__ import annotations

from ..extensions import db
from .base import LineItemMixin, SerializeMixin, TimestampMixin, TotalsMixin, serialize_value


class Estimate(SerializeMixin, TimestampMixin, TotalsMixin, db.Model):
    """
    Estimate (quote) document.

    Lifecycle: draft -> sent -> accepted | expired | cancelled. Pricing
    (unit prices, discount, tax rate, shipping) locks once the estimate
    leaves draft; quantities stay editable.

    Operational charges are line items with item_type='charge' and roll into
    the subtotal like services do. Estimates carry no adjustments, so
    adjustments_total stays 0.
    """
    ENTITY_TYPE = "estimate"
    NUMBER_FIELD = "estimate_number"
    NUMBER_PREFIX = "EST"

    __tablename__ = "estimates"
    __table_args__ = (
        db.Index("ix_estimates_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    estimate_number = db.Column(db.String(64), nullable=False, unique=True)
    status = db.Column(db.String(16), nullable=False, default="draft", index=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)

    estimate_date = db.Column(db.Date, nullable=False)
    valid_until_date = db.Column(db.Date, nullable=False)
    destruction_type = db.Column(db.String(64), nullable=True)
    primary_service_location_id = db.Column(db.String(64), nullable=True)
    job_reference = db.Column(db.String(128), nullable=True)
    estimated_volume_weight = db.Column(db.String(128), nullable=True)
    allowed_variance = db.Column(db.Float, nullable=False, default=0.0)
    what_is_included = db.Column(db.Text, nullable=True)
    what_is_excluded = db.Column(db.Text, nullable=True)
    note_to_customer = db.Column(db.Text, nullable=True)
    memo_on_statement = db.Column(db.Text, nullable=True)
    internal_notes = db.Column(db.Text, nullable=True)

    # Customer response (accept / decline link)
    customer_response = db.Column(db.Text, nullable=True)
    response_date = db.Column(db.DateTime(timezone=True), nullable=True)

    sent_date = db.Column(db.DateTime(timezone=True), nullable=True)
    accepted_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_by = db.Column(db.String(255), nullable=True)
    updated_by = db.Column(db.String(255), nullable=True)

    line_items = db.relationship(
        "EstimateLineItem",
        backref="estimate",
        cascade="all, delete-orphan",
        order_by="EstimateLineItem.sort_order",
        lazy=True,
    )

    def to_dict(self, include_children: bool = True) -> dict:
        data = super().to_dict()
        if include_children:
            data["line_items"] = [line.to_dict() for line in self.line_items]
        return data


class EstimateLineItem(LineItemMixin, db.Model):
    __tablename__ = "estimate_line_items"
    __table_args__ = {"sqlite_autoincrement": True}

    estimate_id = db.Column(db.Integer, db.ForeignKey("estimates.id", ondelete="CASCADE"), nullable=False, index=True)
    item_type = db.Column(db.String(16), nullable=False, default="service")  # service, charge

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "estimate_id": self.estimate_id,
            "item_type": self.item_type,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
            "service_id": self.service_id,
            "sort_order": self.sort_order,
            "created_at": serialize_value(self.created_at),
        }
