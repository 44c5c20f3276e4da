# uniform_api/extensions/__init__.py

from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from .db import db, redis_connection

# Only app-aware extensions should be global
cors = CORS()
limiter = Limiter(key_func=get_remote_address)

__all__ = [
    "cors",
    "limiter",
    "db",
    "redis_connection"
]
