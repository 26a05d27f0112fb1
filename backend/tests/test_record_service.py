import unittest
from datetime import date

from disposal_admin import create_app
from disposal_admin.errors import ConflictError, NotFoundError, ValidationError
from disposal_admin.extensions import db
from disposal_admin.models import Customer, CustomerRequest, Expense, Service, Vendor
from disposal_admin.services import document_service, record_service


class RecordServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "MAIL_SUPPRESS_SEND": True,
        })
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        self.customer = record_service.create_record("customer", {
            "customer_name": "Harbor Breweries",
            "email": "ap@harbor.test",
            "payment_terms": "net_45",
        })
        self.vendor = record_service.create_record("vendor", {
            "vendor_name": "County Landfill",
            "email": "billing@landfill.test",
            "phone": "555-0100",
            "vendor_category": "disposal",
        })

    def test_create_and_get(self):
        loaded = record_service.get_record("customer", self.customer.id)
        self.assertEqual(loaded.customer_name, "Harbor Breweries")
        self.assertEqual(loaded.customer_status, "active")

    def test_get_missing_record(self):
        with self.assertRaises(NotFoundError):
            record_service.get_record("vendor", 999999)

    def test_unknown_kind(self):
        with self.assertRaises(ValidationError):
            record_service.list_records("warehouse")

    def test_email_must_look_like_an_address(self):
        with self.assertRaises(ValidationError):
            record_service.create_record("customer", {"customer_name": "Bad", "email": "nope"})
        self.assertEqual(db.session.query(Customer).count(), 1)

    def test_service_rates_cannot_be_negative(self):
        with self.assertRaises(ValidationError):
            record_service.create_record("service", {
                "service_name": "Can crushing",
                "service_category": "destruction",
                "pricing_unit": "per_case",
                "default_rate": -1,
            })
        self.assertEqual(db.session.query(Service).count(), 0)

    def test_update_record(self):
        updated = record_service.update_record("customer", self.customer.id, {"phone": "555-0199"})
        self.assertEqual(updated.phone, "555-0199")

    def test_list_with_search_and_status(self):
        record_service.create_record("customer", {"customer_name": "Lakeside Cider", "customer_status": "inactive"})

        rows, total = record_service.list_records("customer", search="harbor")
        self.assertEqual(total, 1)
        self.assertEqual(rows[0].id, self.customer.id)

        rows, total = record_service.list_records("customer", status="inactive")
        self.assertEqual([r.customer_name for r in rows], ["Lakeside Cider"])

    def test_request_needs_existing_customer(self):
        with self.assertRaises(NotFoundError):
            record_service.create_record("customer_request", {"customer_id": 999999, "customer_name": "Ghost"})

        request = record_service.create_record("customer_request", {
            "customer_id": self.customer.id,
            "customer_name": "Harbor Breweries",
            "service_type": "destruction",
            "preferred_date": date(2026, 11, 2),
        })
        self.assertEqual(request.request_status, "new")
        self.assertEqual(db.session.query(CustomerRequest).count(), 1)

    def test_referenced_customer_cannot_be_deleted(self):
        document_service.create_document("invoice", {"customer_id": self.customer.id}, children={
            "line_items": [{"description": "Pickup", "quantity": 1, "unit_price": 50}],
        })

        with self.assertRaises(ConflictError):
            record_service.delete_record("customer", self.customer.id)
        self.assertEqual(db.session.query(Customer).count(), 1)

    def test_referenced_vendor_cannot_be_deleted(self):
        document_service.create_document("expense", {
            "vendor_id": self.vendor.id,
            "expense_type": "transport",
            "expense_date": date(2026, 10, 2),
            "description": "Hauling",
        })

        with self.assertRaises(ConflictError):
            record_service.delete_record("vendor", self.vendor.id)
        self.assertEqual(db.session.query(Expense).count(), 1)

    def test_unreferenced_record_is_deleted(self):
        record_service.delete_record("vendor", self.vendor.id)
        self.assertEqual(db.session.query(Vendor).count(), 0)

    def test_invoice_takes_customer_terms(self):
        invoice = document_service.create_document("invoice", {
            "customer_id": self.customer.id,
            "issue_date": date(2026, 10, 1),
        })
        self.assertEqual(invoice.customer_name, "Harbor Breweries")
        self.assertEqual(invoice.payment_terms, "net_45")
        self.assertEqual(invoice.due_date, date(2026, 11, 15))


if __name__ == "__main__":
    unittest.main()
