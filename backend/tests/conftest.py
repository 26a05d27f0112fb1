"""
Pytest fixtures for Disposal Admin backend tests.

Provides the application on an in-memory database, a test client, a
per-test clean database, and small factories for common documents.
"""

import pytest

from disposal_admin import create_app
from disposal_admin.extensions import db
from disposal_admin.models import Customer, Vendor
from disposal_admin.services import document_service


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'MAIL_SERVER': None,
        'MAIL_SUPPRESS_SEND': True,
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp('uploads')),
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        app.extensions['mail_outbox'] = []

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(
        customer_name="Harbor Breweries",
        company_name="Harbor Breweries LLC",
        email="ap@harbor.test",
        payment_terms="net_15",
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def vendor(db_session):
    vendor = Vendor(
        vendor_name="County Landfill",
        email="billing@landfill.test",
        phone="555-0100",
        vendor_category="disposal",
    )
    db_session.add(vendor)
    db_session.commit()
    return vendor


def make_invoice(lines=None, adjustments=None, **fields):
    """Draft invoice with one 2 x 10.00 line unless told otherwise."""
    patch = {"customer_name": "Harbor Breweries", "customer_email": "ap@harbor.test"}
    patch.update(fields)
    children = {
        "line_items": lines if lines is not None else [
            {"description": "Can crushing", "quantity": 2, "unit_price": 10},
        ],
    }
    if adjustments is not None:
        children["adjustments"] = adjustments
    return document_service.create_document("invoice", patch, children=children)


def make_estimate(lines=None, **fields):
    patch = {"customer_name": "Harbor Breweries", "customer_email": "ap@harbor.test"}
    patch.update(fields)
    children = {
        "line_items": lines if lines is not None else [
            {"description": "Pallet destruction", "quantity": 4, "unit_price": 25, "item_type": "service"},
        ],
    }
    return document_service.create_document("estimate", patch, children=children)


def make_job(**fields):
    patch = {"job_name": "Expired seltzer", "customer_name": "Harbor Breweries"}
    patch.update(fields)
    return document_service.create_document("job", patch)
