# uniform_api/extensions/queue.py

from __future__ import annotations

import os
from typing import Any, Optional

from redis import Redis
from rq import Queue

from .db import redis_connection


# -------------------------------------------------------------------
# Queue names / RQ defaults (can be overridden per enqueue)
# -------------------------------------------------------------------

DEFAULT_QUEUE_NAME = (os.getenv("ELIGIBILITY_RESET_QUEUE") or "eligibility").strip() or "eligibility"

RQ_DEFAULT_TIMEOUT = int(os.getenv("RQ_DEFAULT_TIMEOUT", "600"))           # seconds
RQ_DEFAULT_RESULT_TTL = int(os.getenv("RQ_DEFAULT_RESULT_TTL", "300"))     # seconds
RQ_DEFAULT_FAILURE_TTL = int(os.getenv("RQ_DEFAULT_FAILURE_TTL", "86400")) # seconds


def get_connection() -> Redis:
    """
    Redis connection of the running app, or one built from env when called
    from a worker / script that never created the Flask app.
    """
    if redis_connection.connection is None:
        redis_connection.connection = Redis(
            host=os.getenv("REDIS_HOST", "localhost"),
            port=int(os.getenv("REDIS_PORT", 6379)),
        )
    return redis_connection.connection


def normalise_queue_name(name: Optional[str]) -> str:
    n = (name or "").strip()
    if not n:
        return DEFAULT_QUEUE_NAME
    return n


def get_queue(name: str = None) -> Queue:
    return Queue(normalise_queue_name(name), connection=get_connection(), default_timeout=RQ_DEFAULT_TIMEOUT)


def enqueue(
    func: str,
    *args: Any,
    queue_name: str = None,
    job_timeout: Optional[int] = None,
    result_ttl: Optional[int] = None,
    failure_ttl: Optional[int] = None,
    **kwargs: Any,
):
    """
    Convenience enqueue wrapper with consistent defaults.

    Example:
      enqueue(
        "uniform_api.services.eligibility_reset_service.recompute_consumed_eligibility",
        company_id, rule_id,
        queue_name="eligibility",
      )
    """
    q = get_queue(queue_name)

    return q.enqueue(
        func,
        *args,
        **kwargs,
        job_timeout=job_timeout or RQ_DEFAULT_TIMEOUT,
        result_ttl=result_ttl if result_ttl is not None else RQ_DEFAULT_RESULT_TTL,
        failure_ttl=failure_ttl if failure_ttl is not None else RQ_DEFAULT_FAILURE_TTL,
    )
