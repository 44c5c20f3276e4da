from bson import ObjectId
from flask import request


def make_log_tag(file, resource, method, ip, user_id, role, auth_company_id, target_company_id, **kwargs):
    log_tag = (
        f"[{file}]"
        f"[{resource}]"
        f"[{method}]"
        f"[ip:{ip}]"
        f"[user:{user_id}]"
        f"[role:{role}]"
        f"[auth_company:{auth_company_id}]"
        f"[target_company:{target_company_id}]"
    )

    # Append extra context fields
    for key, value in kwargs.items():
        log_tag += f"[{key}:{value}]"

    return log_tag


def stringify_ids(doc):
    """Return a JSON-safe copy of a Mongo document (ObjectIds and datetimes as strings)."""
    if doc is None:
        return None
    if isinstance(doc, list):
        return [stringify_ids(d) for d in doc]
    if isinstance(doc, dict):
        return {k: stringify_ids(v) for k, v in doc.items()}
    if isinstance(doc, ObjectId):
        return str(doc)
    if hasattr(doc, "isoformat"):
        return doc.isoformat()
    return doc


def session_log_tag(file, resource, method, session, target_company_id=None, **kwargs):
    """make_log_tag for a request acting under a SessionContext."""
    return make_log_tag(
        file,
        resource,
        method,
        request.remote_addr,
        session.user_id,
        session.role,
        session.company_id,
        target_company_id or session.company_id,
        **kwargs,
    )
