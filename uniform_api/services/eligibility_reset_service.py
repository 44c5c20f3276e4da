# uniform_api/services/eligibility_reset_service.py

from datetime import datetime, timezone

from flask import current_app, has_app_context

from ..extensions.db import db
from ..extensions.queue import enqueue
from ..models.eligibility_rule_model import EligibilityRule
from ..models.employee_model import Employee
from ..utils.eligibility.records import GENDER_UNISEX, EligibilityRule as EligibilityRuleRecord
from ..utils.logger import Log

SNAPSHOT_COLLECTION = "eligibility_snapshots"
RESET_JOB = "uniform_api.services.eligibility_reset_service.recompute_consumed_eligibility"


def _reset_queue_name():
    if has_app_context():
        return current_app.config.get("ELIGIBILITY_RESET_QUEUE")
    return None


def enqueue_eligibility_reset(intent: dict):
    """Hand a rule-change reset intent to the RQ worker."""
    log_tag = f"[eligibility_reset_service.py][enqueue_eligibility_reset][{intent.get('company_id')}]"

    job = enqueue(
        RESET_JOB,
        intent["company_id"],
        intent["rule_id"],
        queue_name=_reset_queue_name(),
    )
    Log.info(f"{log_tag} queued job {getattr(job, 'id', None)} for rule {intent.get('rule_id')}")
    return job


def recompute_consumed_eligibility(company_id, rule_id, as_of=None) -> int:
    """
    Recompute the allowance summary of every active employee the rule applies
    to and upsert one snapshot per employee. Returns the number written.
    """
    from .eligibility_service import build_quota_engine

    log_tag = f"[eligibility_reset_service.py][recompute_consumed_eligibility][{company_id}][{rule_id}]"

    if db.db is None:
        from ..config import Config
        from pymongo import MongoClient

        db.init_client(MongoClient(Config.MONGO_URI), Config.DB_NAME)

    doc = EligibilityRule.get_by_id(rule_id, company_id)
    rule = EligibilityRuleRecord.from_doc(doc) if doc else None
    if rule is None or not rule.is_active:
        Log.warning(f"{log_tag} rule missing or inactive, nothing to recompute")
        return 0

    # legacy unisex rules cover both genders
    gender = None if rule.gender == GENDER_UNISEX else rule.gender
    employees = Employee.list_active_by_company(company_id, designation=rule.designation, gender=gender)

    engine = build_quota_engine(as_of=as_of)
    snapshots = db.get_collection(SNAPSHOT_COLLECTION)
    now = datetime.now(timezone.utc)

    written = 0
    for employee in employees:
        snapshots.update_one(
            {"company_id": str(company_id), "employee_id": employee.employee_id},
            {"$set": {
                "rule_id": str(rule_id),
                "designation": employee.designation,
                "gender": employee.gender,
                "allowances": engine.allowance_summary(employee),
                "computed_at": now,
            }},
            upsert=True,
        )
        written += 1

    Log.info(f"{log_tag} {written} snapshot(s) written")
    return written
