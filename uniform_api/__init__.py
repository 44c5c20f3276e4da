from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix
from marshmallow import ValidationError
from flask_smorest import Api
from flask_limiter.errors import RateLimitExceeded

from .extensions import db, redis_connection, cors, limiter
from .config import load_config
from .routes import register_routes
from .utils.eligibility.errors import EligibilityError
from .utils.error_handlers import (
    handle_permission_error, handle_validation_error, handle_eligibility_error,
    handle_rate_limit
)
from .utils.logger import Log


def create_app(config_name=None, mongo_client=None):
    app = Flask(__name__)

    #get actual client IP
    app.wsgi_app = ProxyFix(
        app.wsgi_app,
        x_for=1,      # Trust X-Forwarded-For
        x_proto=1,    # Trust X-Forwarded-Proto
        x_host=1,     # Trust X-Forwarded-Host
    )

    # Load configuration (includes the flask-smorest OpenAPI keys)
    env = load_config(app, config_name)

    api = Api(app)

    # Initialize all extensions
    limiter.init_app(app)
    db.init_app(app, client=mongo_client)
    redis_connection.init_app(app)
    cors.init_app(app)

    # Register custom error handlers
    app.errorhandler(PermissionError)(handle_permission_error)
    app.errorhandler(ValidationError)(handle_validation_error)
    app.errorhandler(EligibilityError)(handle_eligibility_error)
    app.errorhandler(RateLimitExceeded)(handle_rate_limit)

    # Register all blueprints using `api.register_blueprint(...)`
    register_routes(app, api)

    Log.info(f"[__init__.py][create_app] app created env={env}")
    return app
