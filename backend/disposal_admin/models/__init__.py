from .sequences import DocumentSequence
from .records import Customer, Vendor, Service, CustomerRequest
from .invoices import Invoice, InvoiceLineItem, InvoiceAdjustment
from .estimates import Estimate, EstimateLineItem
from .jobs import Job, JobMaterial
from .expenses import Expense
from .affidavits import Affidavit
from .payments import Payment, PaymentAllocation

# entity_type -> model for every status-bearing document
DOCUMENT_MODELS = {
    "invoice": Invoice,
    "estimate": Estimate,
    "job": Job,
    "expense": Expense,
    "affidavit": Affidavit,
}

__all__ = [
    'DocumentSequence',
    'Customer', 'Vendor', 'Service', 'CustomerRequest',
    'Invoice', 'InvoiceLineItem', 'InvoiceAdjustment',
    'Estimate', 'EstimateLineItem',
    'Job', 'JobMaterial',
    'Expense',
    'Affidavit',
    'Payment', 'PaymentAllocation',
    'DOCUMENT_MODELS',
]
