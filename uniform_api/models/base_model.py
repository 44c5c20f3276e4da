# uniform_api/models/base_model.py

from datetime import datetime, timezone

from bson.objectid import ObjectId
from bson.errors import InvalidId

from ..extensions.db import db
from ..utils.logger import Log


def to_object_id(value):
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


class BaseModel:
    """
    A base class for company-scoped models providing common CRUD operations.
    """
    collection_name = None

    def __init__(self, company_id, **kwargs):
        self.company_id = str(company_id) if company_id is not None else None
        self.created_at = datetime.now(timezone.utc)
        self.updated_at = datetime.now(timezone.utc)

        # Initialize model attributes based on kwargs
        for key, value in kwargs.items():
            setattr(self, key, value)

    def to_dict(self):
        """
        Convert the model object to a dictionary representation (None fields dropped).
        """
        return {key: value for key, value in self.__dict__.items() if value is not None}

    @classmethod
    def collection(cls):
        return db.get_collection(cls.collection_name)

    def save(self):
        result = self.collection().insert_one(self.to_dict())
        Log.info(f"[base_model.py][{self.__class__.__name__}][save] inserted {result.inserted_id}")
        return str(result.inserted_id)

    @classmethod
    def get_by_id(cls, record_id, company_id=None):
        """
        Retrieve a record by its ID, scoped to the company when one is given.
        """
        oid = to_object_id(record_id)
        if oid is None:
            return None

        query = {"_id": oid}
        if company_id is not None:
            query["company_id"] = str(company_id)
        return cls.collection().find_one(query)

    @classmethod
    def update(cls, record_id, company_id, **updates):
        oid = to_object_id(record_id)
        if oid is None:
            return False

        updates["updated_at"] = datetime.now(timezone.utc)
        result = cls.collection().update_one(
            {"_id": oid, "company_id": str(company_id)},
            {"$set": updates},
        )
        return result.matched_count > 0
