from __future__ import annotations

from ..extensions import db
from .base import SerializeMixin, TimestampMixin


CUSTOMER_STATUSES = frozenset({"active", "inactive"})
VENDOR_STATUSES = frozenset({"active", "archived"})
VENDOR_CATEGORIES = frozenset({
    "demolition", "disposal", "transportation", "equipment_rental", "materials", "subcontractor", "other",
})
PAYMENT_TERMS = frozenset({"net_15", "net_30", "net_45", "net_60", "due_on_receipt", "custom"})
SERVICE_ITEM_TYPES = frozenset({"service", "adjustment"})
SERVICE_STATUSES = frozenset({"active", "inactive"})
REQUEST_STATUSES = frozenset({"new", "reviewing", "scheduled", "completed", "cancelled"})


class Customer(SerializeMixin, TimestampMixin, db.Model):
    """
    Customer master data.

    Contact and address fields are pass-through data; the document core
    only reads customer_name and email when a document is created.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_status", "customer_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(255), nullable=False)
    company_name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True, index=True)
    phone = db.Column(db.String(64), nullable=True)
    billing_address = db.Column(db.Text, nullable=True)
    service_address = db.Column(db.Text, nullable=True)
    payment_terms = db.Column(db.String(32), nullable=False, default="net_30")
    tax_exempt = db.Column(db.Boolean, nullable=False, default=False)
    customer_status = db.Column(db.String(16), nullable=False, default="active")
    notes = db.Column(db.Text, nullable=True)


class Vendor(SerializeMixin, TimestampMixin, db.Model):
    __tablename__ = "vendors"
    __table_args__ = (
        db.Index("ix_vendors_status", "vendor_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_name = db.Column(db.String(255), nullable=False, index=True)
    contact_person = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=False)
    address = db.Column(db.Text, nullable=True)
    payment_terms = db.Column(db.String(32), nullable=False, default="net_30")
    vendor_category = db.Column(db.String(32), nullable=False, default="other")
    tax_id = db.Column(db.String(64), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    vendor_status = db.Column(db.String(16), nullable=False, default="active")


class Service(SerializeMixin, TimestampMixin, db.Model):
    """
    Catalog entry referenced (weakly) by line items.

    default_rate pre-fills a line item's unit_price; the line keeps its own
    copy so catalog price changes never rewrite existing documents.
    """
    __tablename__ = "services"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    service_name = db.Column(db.String(255), nullable=False)
    item_type = db.Column(db.String(16), nullable=False, default="service")
    service_category = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=True)
    pricing_unit = db.Column(db.String(32), nullable=False)
    default_rate = db.Column(db.Float, nullable=False, default=0.0)
    estimated_cost_per_unit = db.Column(db.Float, nullable=False, default=0.0)
    is_taxable = db.Column(db.Boolean, nullable=False, default=True)
    allow_price_override_on_invoice = db.Column(db.Boolean, nullable=False, default=True)
    service_status = db.Column(db.String(16), nullable=False, default="active")
    sku = db.Column(db.String(64), nullable=True)


class CustomerRequest(SerializeMixin, TimestampMixin, db.Model):
    """Inbound service request from a customer; converted to an estimate by staff."""
    __tablename__ = "customer_requests"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    contact_email = db.Column(db.String(255), nullable=True)
    service_type = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)
    preferred_date = db.Column(db.Date, nullable=True)
    location = db.Column(db.Text, nullable=True)
    request_status = db.Column(db.String(16), nullable=False, default="new", index=True)

    customer = db.relationship("Customer", backref=db.backref("requests", lazy=True))
