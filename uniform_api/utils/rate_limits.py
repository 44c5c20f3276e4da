# uniform_api/utils/rate_limits.py

from flask import g
from flask_limiter.util import get_remote_address

from ..extensions import limiter


def user_key_func():
    """Rate-limit per authenticated user, falling back to the client IP."""
    user = g.get("current_user") or {}
    user_id = user.get("user_id") or user.get("sub")
    if user_id is not None:
        return f"user:{user_id}"
    return get_remote_address()


def crud_write_limiter(
    entity_name: str,
    limit_str: str = "20 per minute; 200 per hour",
    scope: str | None = None,
):
    """
    Generic limiter for WRITE (POST/PUT/PATCH/DELETE) operations.

    Example:
        @crud_write_limiter("bulk_orders", "5 per minute")
    """
    scope = scope or f"{entity_name}-write"
    error_message = f"Too many {entity_name} write requests. Please try again later."

    return limiter.shared_limit(
        limit_str,
        scope=scope,
        key_func=user_key_func,
        methods=["POST", "PUT", "PATCH", "DELETE"],
        error_message=error_message,
    )
