# Overview: Flask API routes for vendor expenses; document surface plus the approval workflow.

from flask import Blueprint

from ..decorators import json_body, json_endpoint, ok
from ..models.expenses import EXPENSE_PAYMENT_METHODS, EXPENSE_PAYMENT_STATUSES, EXPENSE_TYPES
from ..services import lifecycle_service
from .documents import document_policy, register_document_routes


EXPENSE_POLICY = document_policy(
    "expense",
    writable_fields={
        "expense_type", "vendor_id", "vendor_name", "expense_date", "amount", "description",
        "payment_status", "payment_date", "payment_method", "job_id", "purchase_order_number",
        "attachments",
    },
    choices={
        "expense_type": EXPENSE_TYPES,
        "payment_status": EXPENSE_PAYMENT_STATUSES,
        "payment_method": EXPENSE_PAYMENT_METHODS,
    },
)

# action -> target status
EXPENSE_ACTIONS = {
    "submit": "submitted",
    "approve": "approved",
    "reject": "draft",
}

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.post("/<int:expense_id>/<any(submit, approve, reject):action>")
@json_endpoint("change expense status")
def expense_action_route(expense_id: int, action: str):
    """
    Approval workflow shortcuts:
    - submit:  draft -> submitted
    - approve: submitted -> approved
    - reject:  submitted -> draft (optional "reason" is kept in the log)
    """
    payload = json_body()
    expense = lifecycle_service.transition_document(
        "expense",
        expense_id,
        EXPENSE_ACTIONS[action],
        context={"reason": payload.get("reason")} if payload.get("reason") else None,
    )
    return ok(expense.to_dict())


register_document_routes(expenses_bp, "expense", EXPENSE_POLICY)
