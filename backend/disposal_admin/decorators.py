# Overview: Request decorators and JSON response helpers for API routes.

from functools import wraps

from flask import current_app, jsonify, request

from .errors import DomainError, ValidationError


def ok(data=None, status: int = 200, **extra):
    body = {"success": True, "data": data}
    body.update(extra)
    return jsonify(body), status


def error_response(error: DomainError):
    return jsonify({
        "success": False,
        "error": error.message,
        "details": error.details,
    }), error.status_code


def json_body() -> dict:
    """Request JSON object; a missing body is an empty dict, anything else is rejected."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def json_endpoint(action: str):
    """
    Render domain errors as JSON with their status code.

    Anything unexpected is logged with a traceback and answered with a
    generic 500 so internals never leak to the client.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except DomainError as e:
                if e.status_code >= 500:
                    current_app.logger.warning("Failed to %s: %s", action, e.message)
                return error_response(e)
            except Exception:
                current_app.logger.exception("Failed to %s", action)
                return jsonify({"success": False, "error": "Internal server error", "details": {}}), 500
        return decorated_function
    return decorator
