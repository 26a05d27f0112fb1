# Overview: Flask API routes for affidavits of destruction; document surface plus revocation.

from flask import Blueprint

from ..decorators import json_body, json_endpoint, ok
from ..services import revocation_service
from .documents import document_policy, register_document_routes


AFFIDAVIT_POLICY = document_policy(
    "affidavit",
    writable_fields={
        "job_id", "job_reference", "customer_name", "description_of_materials",
        "description_of_process", "authorized_by", "witness_name", "media_references",
    },
    required_on_create={"job_id"},
)

affidavits_bp = Blueprint("affidavits", __name__, url_prefix="/api/affidavits")


@affidavits_bp.post("/<int:affidavit_id>/revoke")
@json_endpoint("revoke affidavit")
def revoke_affidavit_route(affidavit_id: int):
    """
    Revoke an issued or locked affidavit.

    Request body: {"reason": "...", "revoked_by": "..."}

    Revocation is terminal; the affidavit stays readable with its reason.
    """
    payload = json_body()
    affidavit = revocation_service.revoke(
        "affidavit",
        affidavit_id,
        payload.get("reason"),
        revoked_by=payload.get("revoked_by"),
    )
    return ok(affidavit.to_dict())


register_document_routes(affidavits_bp, "affidavit", AFFIDAVIT_POLICY)
