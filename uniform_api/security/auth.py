from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, request
from flask_smorest import abort

from ..constants.service_code import AUTHENTICATION_MESSAGES
from ..utils.logger import Log

TOKEN_CLAIMS = ("user_id", "company_id", "role", "employee_id")


def generate_access_token(user_id, company_id, role, employee_id=None, expires_in_minutes=60, secret_key=None):
    payload = {
        "user_id": str(user_id),
        "company_id": str(company_id) if company_id is not None else None,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_in_minutes),
    }
    if employee_id:
        payload["employee_id"] = str(employee_id)
    return jwt.encode(payload, secret_key or current_app.config["SECRET_KEY"], algorithm="HS256")


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get('Authorization')
        if not auth_header or not auth_header.startswith("Bearer "):
            abort(401, message=AUTHENTICATION_MESSAGES["AUTHENTICATION_REQUIRED"])

        token = auth_header.split()[1]
        log_tag = "[auth.py][token_required]"

        try:
            data = jwt.decode(token, current_app.config["SECRET_KEY"], algorithms=["HS256"])
        except jwt.ExpiredSignatureError:
            Log.info(f"{log_tag} expired token")
            abort(401, message=AUTHENTICATION_MESSAGES["TOKEN_EXPIRED"])
        except jwt.InvalidTokenError:
            Log.info(f"{log_tag} invalid token")
            abort(401, message=AUTHENTICATION_MESSAGES["INVALID_TOKEN"])

        if not data.get("role") or not data.get("user_id"):
            abort(401, message=AUTHENTICATION_MESSAGES["INVALID_TOKEN"])

        g.current_user = {key: data.get(key) for key in TOKEN_CLAIMS}
        return f(*args, **kwargs)
    return decorated
