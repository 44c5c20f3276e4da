# uniform_api/utils/eligibility/errors.py
from __future__ import annotations


class EligibilityError(Exception):
    code = "ELIGIBILITY_ERROR"

    def __init__(self, message: str, code: str | None = None, meta=None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.meta = meta or {}

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, **self.meta}


class EligibilityValidationError(EligibilityError):
    """Malformed eligibility rule (missing designation, categories, quantity or frequency)."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, category=None, code: str | None = None, meta=None):
        meta = dict(meta or {})
        if category is not None:
            meta["category"] = getattr(category, "value", category)
        super().__init__(message, code=code, meta=meta)
        self.category = meta.get("category")


class QuotaExceededError(EligibilityError):
    code = "QUOTA_EXCEEDED"

    def __init__(self, category, requested: int, remaining: int, total: int | None = None):
        category = getattr(category, "value", category)
        message = (
            f"Eligibility exceeded: requested {requested} {category}(s), "
            f"but only {remaining} remaining"
        )
        meta = {"category": category, "requested": requested, "remaining": remaining}
        if total is not None:
            meta["total"] = total
        super().__init__(message, meta=meta)
        self.category = category
        self.requested = requested
        self.remaining = remaining
        self.total = total


class MalformedInputError(EligibilityError):
    """Whole-file failure of a bulk import (missing columns, empty file, too many rows)."""

    code = "MALFORMED_INPUT"

    def __init__(self, message: str, missing_columns=None):
        meta = {}
        if missing_columns:
            meta["missing_columns"] = list(missing_columns)
        super().__init__(message, meta=meta)
        self.missing_columns = list(missing_columns or [])


class RowProcessingError(EligibilityError):
    code = "ROW_FAILED"

    def __init__(self, row_number: int, message: str):
        super().__init__(message, meta={"row_number": row_number})
        self.row_number = row_number
