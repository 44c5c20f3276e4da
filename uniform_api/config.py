from dotenv import load_dotenv
load_dotenv()  # Load environment variables from .env file

import os


class Config:
    """Base configuration class."""
    APP_NAME = os.getenv("APP_NAME", "Uniform Eligibility API")

    SECRET_KEY = os.getenv("SECRET_KEY", "your_default_secret_key")
    DEBUG = os.getenv("FLASK_DEBUG", "False") == "True"
    TESTING = False

    # ========================================
    # DATABASE
    # ========================================
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017/uniforms")
    DB_NAME = os.getenv("DB_NAME", "uniforms")

    # ========================================
    # REDIS / RQ
    # ========================================
    REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
    ELIGIBILITY_RESET_QUEUE = os.getenv("ELIGIBILITY_RESET_QUEUE", "eligibility")

    # ========================================
    # BULK IMPORT
    # ========================================
    BULK_IMPORT_MAX_ROWS = int(os.getenv("BULK_IMPORT_MAX_ROWS", 10000))

    # ========================================
    # RATE LIMITING (flask-limiter)
    # ========================================
    RATELIMIT_ENABLED = os.getenv("RATELIMIT_ENABLED", "True") == "True"
    RATELIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

    # ========================================
    # OPENAPI (flask-smorest)
    # ========================================
    API_TITLE = "Uniform Eligibility API"
    API_VERSION = "v1"
    OPENAPI_VERSION = "3.0.3"
    OPENAPI_URL_PREFIX = "/api"
    OPENAPI_JSON_PATH = "openapi.json"
    OPENAPI_SWAGGER_UI_PATH = "/docs"
    OPENAPI_SWAGGER_UI_URL = "https://cdn.jsdelivr.net/npm/swagger-ui-dist/"


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    MONGO_URI = os.getenv("DEV_MONGO_URI", "mongodb://localhost:27017/uniforms_dev")


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    SECRET_KEY = "test-secret-key"
    MONGO_URI = os.getenv("TEST_MONGO_URI", "mongodb://localhost:27017/uniforms_test")
    DB_NAME = "uniforms_test"
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    MONGO_URI = os.getenv("PROD_MONGO_URI", Config.MONGO_URI)


CONFIG_BY_NAME = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def load_config(app, config_name=None):
    name = (config_name or os.getenv("APP_ENV", "development")).strip().lower()
    app.config.from_object(CONFIG_BY_NAME.get(name, DevelopmentConfig))
    return name
