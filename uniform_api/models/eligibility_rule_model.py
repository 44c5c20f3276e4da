# uniform_api/models/eligibility_rule_model.py

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Callable, Optional

from ..models.base_model import BaseModel, to_object_id
from ..utils.eligibility.errors import EligibilityValidationError
from ..utils.eligibility.records import (
    GENDER_UNISEX,
    RULE_STATUS_ACTIVE,
    RULE_STATUS_INACTIVE,
    EligibilityRule as EligibilityRuleRecord,
)
from ..utils.eligibility.rules import (
    build_item_eligibility,
    designation_key,
    validate_rule_header,
)
from ..utils.logger import Log


class EligibilityRule(BaseModel):
    """
    Designation eligibility rules: which uniform categories a
    (company, designation, gender) may order, how many per cycle, and how
    often the allowance renews.

    Key rules:
      ✅ At most one ACTIVE rule per (company, designation, gender)
      ✅ New rules are male/female only; legacy "unisex" rows are read, never written
      ✅ Category aliases (trouser/pant, blazer/jacket) stored under one canonical key
      ✅ propagate_reset only emits an intent; this model never touches employees/orders
    """

    collection_name = "designation_eligibilities"

    def __init__(
        self,
        company_id,
        designation,
        gender,
        item_eligibility=None,
        allowed_categories=None,
        company_name=None,
        status=RULE_STATUS_ACTIVE,
        **kwargs,
    ):
        super().__init__(company_id=company_id, **kwargs)

        name, gender_value = validate_rule_header(designation, gender)
        items = build_item_eligibility(item_eligibility, allowed_categories)

        self.company_name = company_name
        self.designation = name
        self.designation_key = designation_key(name)
        self.gender = gender_value
        self.item_eligibility = {c.value: e.to_dict() for c, e in items.items()}
        self.allowed_categories = [c.value for c in items]
        self.status = status

    # ---------------- Normalisation ----------------
    @classmethod
    def _normalise(cls, doc: Optional[dict]) -> Optional[dict]:
        if not doc:
            return None
        return EligibilityRuleRecord.from_doc(doc).to_dict() | {
            "created_at": doc.get("created_at"),
            "updated_at": doc.get("updated_at"),
        }

    @staticmethod
    def _company_clause(company_id) -> dict:
        """Rows written here carry company_id; legacy rows only companyId (string or ObjectId)."""
        legacy_ids = [str(company_id)]
        oid = to_object_id(company_id)
        if oid is not None:
            legacy_ids.append(oid)
        return {"$or": [{"company_id": str(company_id)}, {"companyId": {"$in": legacy_ids}}]}

    @staticmethod
    def _designation_clause(key) -> dict:
        """designation_key, or the raw designation of legacy rows that never had one."""
        words = [re.escape(w) for w in key.split(" ") if w]
        pattern = r"^\s*" + r"\s+".join(words) + r"\s*$"
        return {"$or": [
            {"designation_key": key},
            {"designation_key": {"$exists": False}, "designation": {"$regex": pattern, "$options": "i"}},
        ]}

    @classmethod
    def _scope(cls, company_id, key=None, **extra) -> dict:
        clauses = [cls._company_clause(company_id)]
        if key is not None:
            clauses.append(cls._designation_clause(key))
        return {"$and": clauses, **extra}

    @classmethod
    def _active_duplicate(cls, company_id, key, gender, exclude_id=None):
        query = cls._scope(company_id, key, gender=gender, status=RULE_STATUS_ACTIVE)
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        return cls.collection().find_one(query, {"_id": 1})

    # ---------------- Create ----------------
    @classmethod
    def create(cls, company_id, designation, gender, item_eligibility=None, allowed_categories=None,
               company_name=None) -> dict:
        log_tag = f"[eligibility_rule_model.py][EligibilityRule][create][{company_id}]"

        rule = cls(
            company_id=company_id,
            designation=designation,
            gender=gender,
            item_eligibility=item_eligibility,
            allowed_categories=allowed_categories,
            company_name=company_name,
        )

        if cls._active_duplicate(company_id, rule.designation_key, rule.gender):
            Log.info(f"{log_tag} duplicate active rule for {rule.designation}/{rule.gender}")
            raise EligibilityValidationError(
                f"An active eligibility rule already exists for {rule.designation} ({rule.gender})",
                code="DUPLICATE_RULE",
                meta={"designation": rule.designation, "gender": rule.gender},
            )

        rule_id = rule.save()
        Log.info(f"{log_tag} created rule {rule_id} for {rule.designation}/{rule.gender}")
        return cls.get_by_id(rule_id, company_id)

    # ---------------- Read ----------------
    @classmethod
    def _find_raw(cls, record_id, company_id=None) -> Optional[dict]:
        oid = to_object_id(record_id)
        if oid is None:
            return None
        if company_id is None:
            return cls.collection().find_one({"_id": oid})
        return cls.collection().find_one(cls._scope(company_id, _id=oid))

    @classmethod
    def _set_fields(cls, oid, company_id, **fields) -> bool:
        """$set on a rule of the company; legacy rows pick up company_id on the way."""
        fields["company_id"] = str(company_id)
        fields["updated_at"] = datetime.now(timezone.utc)
        result = cls.collection().update_one(cls._scope(company_id, _id=oid), {"$set": fields})
        return result.matched_count > 0

    @classmethod
    def get_by_id(cls, record_id, company_id=None) -> Optional[dict]:
        return cls._normalise(cls._find_raw(record_id, company_id))

    @classmethod
    def list_by_company(cls, company_id, include_inactive: bool = False) -> list:
        query = cls._scope(company_id)
        if not include_inactive:
            query["status"] = RULE_STATUS_ACTIVE
        cursor = cls.collection().find(query).sort("designation_key", 1)
        return [cls._normalise(doc) for doc in cursor]

    @classmethod
    def find_rule(cls, company_id, designation, gender) -> Optional[EligibilityRuleRecord]:
        """
        Active rule for (company, designation, gender).

        A gender-specific rule wins; otherwise a legacy "unisex" rule for the
        designation applies to either gender.
        """
        base = cls._scope(company_id, designation_key(designation), status=RULE_STATUS_ACTIVE)

        wanted = str(gender or "").strip().lower()
        doc = None
        if wanted and wanted != GENDER_UNISEX:
            doc = cls.collection().find_one({**base, "gender": wanted})
        if doc is None:
            doc = cls.collection().find_one({**base, "gender": GENDER_UNISEX})

        return EligibilityRuleRecord.from_doc(doc) if doc else None

    # ---------------- Update ----------------
    @classmethod
    def update(
        cls,
        record_id,
        company_id,
        propagate_reset: bool = False,
        reset_emitter: Optional[Callable[[dict], object]] = None,
        **updates,
    ) -> Optional[dict]:
        """
        Validate and apply an edit. Editing a legacy unisex rule keeps it unisex
        unless the caller sends an explicit gender.

        When propagate_reset is true the reset intent is handed to
        `reset_emitter` (default: the eligibility reset queue).
        """
        log_tag = f"[eligibility_rule_model.py][EligibilityRule][update][{company_id}][{record_id}]"

        oid = to_object_id(record_id)
        existing = cls._find_raw(oid, company_id) if oid else None
        if not existing:
            return None

        current = EligibilityRuleRecord.from_doc(existing)
        legacy_gender = current.gender == GENDER_UNISEX and "gender" not in updates

        name, gender = validate_rule_header(
            updates.get("designation", current.designation),
            updates.get("gender", current.gender),
            allow_legacy_gender=legacy_gender,
        )

        if "item_eligibility" in updates or "allowed_categories" in updates:
            items = build_item_eligibility(
                updates.get("item_eligibility", {c.value: e.to_dict() for c, e in current.item_eligibility.items()}),
                updates.get("allowed_categories"),
            )
        else:
            items = current.item_eligibility

        status = str(updates.get("status", current.status)).lower()
        if status not in (RULE_STATUS_ACTIVE, RULE_STATUS_INACTIVE):
            raise EligibilityValidationError(f"Status must be {RULE_STATUS_ACTIVE} or {RULE_STATUS_INACTIVE}")

        key = designation_key(name)
        if status == RULE_STATUS_ACTIVE and cls._active_duplicate(company_id, key, gender, exclude_id=oid):
            raise EligibilityValidationError(
                f"An active eligibility rule already exists for {name} ({gender})",
                code="DUPLICATE_RULE",
                meta={"designation": name, "gender": gender},
            )

        fields = {
            "designation": name,
            "designation_key": key,
            "gender": gender,
            "item_eligibility": {c.value: e.to_dict() for c, e in items.items()},
            "allowed_categories": [c.value for c in items],
            "status": status,
        }
        cls._set_fields(oid, company_id, **fields)
        Log.info(f"{log_tag} updated rule")

        if propagate_reset:
            intent = {
                "company_id": str(company_id),
                "rule_id": str(oid),
                "designation": name,
                "gender": gender,
                "requested_at": datetime.now(timezone.utc).isoformat(),
            }
            emitter = reset_emitter
            if emitter is None:
                from ..services.eligibility_reset_service import enqueue_eligibility_reset
                emitter = enqueue_eligibility_reset
            emitter(intent)
            Log.info(f"{log_tag} eligibility reset intent emitted")

        return cls.get_by_id(record_id, company_id)

    @classmethod
    def deactivate(cls, record_id, company_id) -> bool:
        oid = to_object_id(record_id)
        ok = oid is not None and cls._set_fields(oid, company_id, status=RULE_STATUS_INACTIVE)
        Log.info(f"[eligibility_rule_model.py][EligibilityRule][deactivate][{company_id}][{record_id}] ok={ok}")
        return ok
