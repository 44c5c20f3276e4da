from flask import jsonify

from .eligibility.errors import (
    EligibilityError,
    EligibilityValidationError,
    MalformedInputError,
    QuotaExceededError,
)
from .logger import Log


# Handle PermissionError
def handle_permission_error(error):
    response = {
        "success": False,
        "error": "PermissionError",
        "message": str(error),
        "status_code": 403  # Forbidden
    }
    return jsonify(response), 403


# Handle marshmallow ValidationError
def handle_validation_error(error):
    response = {
        "success": False,
        "error": "Validation Error",
        "message": error.messages,
        "status_code": 400  # Bad Request
    }
    return jsonify(response), 400


# Handle eligibility errors that escaped a resource
def handle_eligibility_error(error):
    if isinstance(error, (EligibilityValidationError, MalformedInputError)):
        status_code = 400
    elif isinstance(error, QuotaExceededError):
        status_code = 422
    else:
        status_code = 400

    Log.info(f"[error_handlers.py][handle_eligibility_error] {error.code}: {error.message}")
    response = {
        "success": False,
        "error": error.code,
        "message": error.message,
        "errors": error.to_dict(),
        "status_code": status_code,
    }
    return jsonify(response), status_code


def handle_rate_limit(e):
    # e.description contains whatever you passed as error_message=
    return jsonify({
        "success": False,
        "status_code": 429,
        "error": "Too Many Requests",
        "message": e.description or "Too many requests, please try again later."
    }), 429


__all__ = [
    "EligibilityError",
    "handle_permission_error",
    "handle_validation_error",
    "handle_eligibility_error",
    "handle_rate_limit",
]
