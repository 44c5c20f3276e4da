"""
Shared fixtures: mongomock-backed database, Flask app and bearer tokens.
"""

import os

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_ENV", "testing")

from datetime import datetime, timezone

import mongomock
import pytest

from uniform_api import create_app
from uniform_api.extensions.db import db
from uniform_api.models.employee_model import Employee
from uniform_api.models.product_model import Product
from uniform_api.security.auth import generate_access_token

COMPANY_ID = "company-1"
OTHER_COMPANY_ID = "company-2"
TEST_SECRET = "test-secret-key"


@pytest.fixture
def mongo_db():
    """Fresh in-memory database bound to the global `db` extension."""
    db.init_client(mongomock.MongoClient(), "uniforms_test")
    yield db.db
    db.client = None
    db.db = None


@pytest.fixture
def app():
    application = create_app("testing", mongo_client=mongomock.MongoClient())
    yield application
    db.client = None
    db.db = None


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_token():
    def _make(role="company_admin", company_id=COMPANY_ID, employee_id=None, user_id="user-1"):
        return generate_access_token(
            user_id=user_id,
            company_id=company_id,
            role=role,
            employee_id=employee_id,
            secret_key=TEST_SECRET,
        )
    return _make


@pytest.fixture
def auth_header(make_token):
    def _header(**kwargs):
        return {"Authorization": f"Bearer {make_token(**kwargs)}"}
    return _header


@pytest.fixture
def seed_employee():
    def _seed(employee_id="IND-001", company_id=COMPANY_ID, designation="Pilot", gender="male", **kwargs):
        kwargs.setdefault("first_name", "Asha")
        kwargs.setdefault("last_name", "Rao")
        kwargs.setdefault("date_of_joining", datetime(2025, 10, 1, tzinfo=timezone.utc))
        Employee.create(
            company_id=company_id,
            employee_id=employee_id,
            designation=designation,
            gender=gender,
            **kwargs,
        )
        return employee_id
    return _seed


@pytest.fixture
def seed_product():
    def _seed(sku="SHIRT-M-01", category="shirt", sizes=("S", "M", "L"), price=25.0, company_ids=(COMPANY_ID,),
              gender="unisex"):
        Product.create(
            sku=sku,
            name=f"{category.title()} {sku}",
            category=category,
            sizes=list(sizes),
            price=price,
            company_ids=list(company_ids),
            gender=gender,
        )
        return sku
    return _seed
