# Overview: Flask API routes for destruction jobs.

from flask import Blueprint

from ..models.jobs import DESTRUCTION_METHODS
from .documents import document_policy, register_document_routes


JOB_POLICY = document_policy(
    "job",
    writable_fields={
        "job_name", "customer_id", "customer_name", "estimate_id", "job_location_id",
        "scheduled_date", "actual_start_date", "actual_completion_date",
        "destruction_method", "destruction_description", "requires_affidavit",
        "special_handling_notes",
    },
    choices={"destruction_method": DESTRUCTION_METHODS},
    # Copied from the linked estimate
    ignored_fields={"estimate_number"},
)

jobs_bp = Blueprint("jobs", __name__, url_prefix="/api/jobs")

register_document_routes(jobs_bp, "job", JOB_POLICY)
