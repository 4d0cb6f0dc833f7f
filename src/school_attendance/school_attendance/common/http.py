"""Shared helpers for the Flask controllers: tenant header and error -> JSON mapping."""

from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request

from ..core.exceptions import BiometricError, DomainError, InfrastructureError, ValidationError
from .validators import require_positive_int

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-Tenant-ID"


def current_tenant_id() -> int:
    raw = request.headers.get(TENANT_HEADER)
    if raw is None or not raw.strip():
        raise ValidationError(f"Falta la cabecera {TENANT_HEADER}")
    return require_positive_int(raw.strip(), TENANT_HEADER)


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def error_response(error: Exception):
    if isinstance(error, BiometricError):
        body = {"success": False, "message": error.message, **error.to_dict()}
        return jsonify(body), error.http_status

    if isinstance(error, InfrastructureError):
        logger.exception("Infrastructure failure on %s", request.path)
        body = {"success": False, "message": "Error del sistema, intente nuevamente", "error_code": error.error_code}
        return jsonify(body), error.http_status

    if isinstance(error, DomainError):
        status = getattr(error, "http_status", 400)
        body = {"success": False, "message": str(error), "error_code": getattr(error, "error_code", None)}
        return jsonify(body), status

    logger.exception("Unhandled error while serving %s %s", request.method, request.path)
    return jsonify({"success": False, "message": "Error interno del sistema", "error_code": "INTERNAL_ERROR"}), 500


def json_errors(view):
    """Turn the domain exceptions raised by a view into JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except Exception as e:
            return error_response(e)

    return wrapper
