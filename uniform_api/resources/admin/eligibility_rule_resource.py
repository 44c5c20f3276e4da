from flask.views import MethodView
from flask_smorest import Blueprint

from ...models.eligibility_rule_model import EligibilityRule
from ...schemas.eligibility_schema import (
    EligibilityRuleQuerySchema,
    EligibilityRuleSchema,
    EligibilityRuleUpdateSchema,
)
from ...security.auth import token_required
from ...utils.eligibility.errors import EligibilityValidationError
from ...utils.helpers import session_log_tag, stringify_ids
from ...utils.json_response import prepared_response
from ...utils.logger import Log
from ...utils.rate_limits import crud_write_limiter
from ...utils.session import SessionContext

blp_eligibility_rule = Blueprint(
    "eligibility_rule", __name__, description="Designation eligibility rules"
)


@blp_eligibility_rule.route("/eligibility-rules")
class EligibilityRulesResource(MethodView):

    @token_required
    @crud_write_limiter("eligibility_rule")
    @blp_eligibility_rule.arguments(EligibilityRuleSchema)
    @blp_eligibility_rule.response(201)
    @blp_eligibility_rule.doc(
        summary="Create an eligibility rule",
        description="""
            Create the uniform allowance for a (designation, gender) in the caller's company.
            Gender must be male or female. One active rule per designation and gender.
        """,
        security=[{"Bearer": []}],
    )
    def post(self, rule_data):
        session = SessionContext.from_current_user()
        session.require_company_admin()
        log_tag = session_log_tag("eligibility_rule_resource.py", "EligibilityRulesResource", "post", session)

        try:
            rule = EligibilityRule.create(
                company_id=session.company_id,
                designation=rule_data.get("designation"),
                gender=rule_data.get("gender"),
                item_eligibility=rule_data.get("item_eligibility"),
                allowed_categories=rule_data.get("allowed_categories"),
                company_name=rule_data.get("company_name"),
            )
        except EligibilityValidationError as e:
            Log.warning(f"{log_tag} rejected: {e.message}")
            status = "CONFLICT" if e.code == "DUPLICATE_RULE" else "BAD_REQUEST"
            return prepared_response(False, status, e.message, errors=e.to_dict())
        except Exception as e:
            Log.error(f"{log_tag} error creating rule: {e}", exc_info=True)
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An error occurred while creating the rule.")

        Log.info(f"{log_tag} rule created {rule.get('_id')}")
        return prepared_response(True, "CREATED", "Eligibility rule created.", data=stringify_ids(rule))

    @token_required
    @blp_eligibility_rule.arguments(EligibilityRuleQuerySchema, location="query")
    @blp_eligibility_rule.response(200)
    @blp_eligibility_rule.doc(summary="List eligibility rules of the caller's company", security=[{"Bearer": []}])
    def get(self, query):
        session = SessionContext.from_current_user()
        session.require_company_admin()

        rules = EligibilityRule.list_by_company(session.company_id, include_inactive=query.get("include_inactive"))
        return prepared_response(True, "OK", "Eligibility rules retrieved.", data=stringify_ids(rules))


@blp_eligibility_rule.route("/eligibility-rules/<rule_id>")
class EligibilityRuleResource(MethodView):

    @token_required
    @blp_eligibility_rule.response(200)
    @blp_eligibility_rule.doc(summary="Get an eligibility rule", security=[{"Bearer": []}])
    def get(self, rule_id):
        session = SessionContext.from_current_user()
        session.require_company_admin()

        rule = EligibilityRule.get_by_id(rule_id, session.company_id)
        if not rule:
            return prepared_response(False, "NOT_FOUND", "Eligibility rule not found.")
        return prepared_response(True, "OK", "Eligibility rule retrieved.", data=stringify_ids(rule))

    @token_required
    @crud_write_limiter("eligibility_rule")
    @blp_eligibility_rule.arguments(EligibilityRuleUpdateSchema)
    @blp_eligibility_rule.response(200)
    @blp_eligibility_rule.doc(
        summary="Edit an eligibility rule",
        description="""
            Partial update. With propagate_reset=true a background job recomputes
            the allowance snapshots of the employees the rule applies to.
        """,
        security=[{"Bearer": []}],
    )
    def patch(self, rule_data, rule_id):
        session = SessionContext.from_current_user()
        session.require_company_admin()
        log_tag = session_log_tag("eligibility_rule_resource.py", "EligibilityRuleResource", "patch", session, rule_id=rule_id)

        propagate_reset = rule_data.pop("propagate_reset", False)
        try:
            rule = EligibilityRule.update(
                rule_id,
                session.company_id,
                propagate_reset=propagate_reset,
                **rule_data,
            )
        except EligibilityValidationError as e:
            Log.warning(f"{log_tag} rejected: {e.message}")
            status = "CONFLICT" if e.code == "DUPLICATE_RULE" else "BAD_REQUEST"
            return prepared_response(False, status, e.message, errors=e.to_dict())
        except Exception as e:
            Log.error(f"{log_tag} error updating rule: {e}", exc_info=True)
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An error occurred while updating the rule.")

        if not rule:
            return prepared_response(False, "NOT_FOUND", "Eligibility rule not found.")

        Log.info(f"{log_tag} rule updated propagate_reset={propagate_reset}")
        return prepared_response(True, "OK", "Eligibility rule updated.", data=stringify_ids(rule))

    @token_required
    @crud_write_limiter("eligibility_rule")
    @blp_eligibility_rule.response(200)
    @blp_eligibility_rule.doc(summary="Deactivate an eligibility rule", security=[{"Bearer": []}])
    def delete(self, rule_id):
        session = SessionContext.from_current_user()
        session.require_company_admin()
        log_tag = session_log_tag("eligibility_rule_resource.py", "EligibilityRuleResource", "delete", session, rule_id=rule_id)

        if not EligibilityRule.deactivate(rule_id, session.company_id):
            return prepared_response(False, "NOT_FOUND", "Eligibility rule not found.")

        Log.info(f"{log_tag} rule deactivated")
        return prepared_response(True, "OK", "Eligibility rule deactivated.")
