# backend/disposal_admin/routes/system.py
"""
System health and status-registry endpoints.

Provides a health check for the database and a read-only view of the
status registry so clients can build status pickers without hard-coding
the state machines.
"""

import time

from flask import Blueprint, current_app

from ..decorators import json_endpoint, ok
from ..extensions import db
from ..models import Customer, DOCUMENT_MODELS
from ..services.mail_service import outbox
from ..status_registry import editability, entity_types, statuses
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        counts = {
            f"{entity_type}s": db.session.query(model).count()
            for entity_type, model in DOCUMENT_MODELS.items()
        }
        counts["customers"] = db.session.query(Customer).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": counts,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def check_mail_health() -> dict:
    config = current_app.config
    if config.get("MAIL_SUPPRESS_SEND", True):
        return {"status": "degraded", "warning": "Mail sending suppressed", "outbox": len(outbox())}
    return {"status": "healthy", "server": config.get("MAIL_SERVER")}


@system_bp.get("/healthz")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: database reachable (mail suppression only degrades)
    - 503: database unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    mail_health = check_mail_health()

    if database_health["status"] == "unhealthy":
        overall_status = "unhealthy"
        http_status = 503
    elif mail_health["status"] == "degraded":
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "mail": mail_health,
        },
    }

    return response, http_status


@system_bp.get("/api/statuses")
@json_endpoint("load status registry")
def status_registry_route():
    """Every entity type with its statuses and their lock maps."""
    return ok({
        entity_type: {status: editability(entity_type, status) for status in statuses(entity_type)}
        for entity_type in entity_types()
    })
