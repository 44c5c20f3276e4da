from flask.views import MethodView
from flask_smorest import Blueprint

from ...schemas.order_schema import CartValidationSchema, PlaceOrderSchema
from ...security.auth import token_required
from ...services import eligibility_service
from ...services.eligibility_service import EmployeeNotFound
from ...utils.eligibility.errors import EligibilityValidationError, QuotaExceededError
from ...utils.helpers import session_log_tag
from ...utils.json_response import prepared_response
from ...utils.logger import Log
from ...utils.rate_limits import crud_write_limiter
from ...utils.session import SessionContext

blp_allowance = Blueprint("allowance", __name__, description="Employee allowances, cart checks and checkout")


@blp_allowance.route("/employees/<employee_id>/allowances")
class EmployeeAllowanceResource(MethodView):

    @token_required
    @blp_allowance.response(200)
    @blp_allowance.doc(
        summary="Remaining uniform allowance per category",
        description="Employees may read their own allowance; company admins any employee of their company.",
        security=[{"Bearer": []}],
    )
    def get(self, employee_id):
        session = SessionContext.from_current_user()
        log_tag = session_log_tag("allowance_resource.py", "EmployeeAllowanceResource", "get", session,
                                  employee_id=employee_id)

        try:
            summary = eligibility_service.allowance_summary(session, employee_id)
        except EmployeeNotFound as e:
            return prepared_response(False, "NOT_FOUND", str(e))
        except PermissionError:
            raise
        except Exception as e:
            Log.error(f"{log_tag} error computing allowance: {e}", exc_info=True)
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An error occurred while computing allowance.")

        return prepared_response(True, "OK", "Allowance retrieved.", data=summary)


@blp_allowance.route("/employees/<employee_id>/catalog")
class EmployeeCatalogResource(MethodView):

    @token_required
    @blp_allowance.response(200)
    @blp_allowance.doc(
        summary="Products the employee may order",
        description="""
            Company products matching the employee's gender or unisex, limited to
            categories their eligibility rule allows, each with the remaining allowance.
        """,
        security=[{"Bearer": []}],
    )
    def get(self, employee_id):
        session = SessionContext.from_current_user()
        log_tag = session_log_tag("allowance_resource.py", "EmployeeCatalogResource", "get", session,
                                  employee_id=employee_id)

        try:
            catalog = eligibility_service.eligible_catalog(session, employee_id)
        except EmployeeNotFound as e:
            return prepared_response(False, "NOT_FOUND", str(e))
        except PermissionError:
            raise
        except Exception as e:
            Log.error(f"{log_tag} error building catalog: {e}", exc_info=True)
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An error occurred while loading the catalog.")

        return prepared_response(True, "OK", "Catalog retrieved.", data=catalog)


@blp_allowance.route("/employees/<employee_id>/cart/validate")
class CartValidationResource(MethodView):

    @token_required
    @blp_allowance.arguments(CartValidationSchema)
    @blp_allowance.response(200)
    @blp_allowance.doc(
        summary="Check a cart against the remaining allowance",
        description="""
            Advisory check for the catalogue and cart screens. mode=checkout decides
            every category in items; mode=add decides one category being added.
        """,
        security=[{"Bearer": []}],
    )
    def post(self, cart_data, employee_id):
        session = SessionContext.from_current_user()
        log_tag = session_log_tag("allowance_resource.py", "CartValidationResource", "post", session,
                                  employee_id=employee_id, mode=cart_data.get("mode"))

        try:
            result = eligibility_service.validate_cart(
                session,
                employee_id,
                cart_data.get("items"),
                mode=cart_data.get("mode"),
                category=cart_data.get("category"),
                quantity=cart_data.get("quantity"),
            )
        except EmployeeNotFound as e:
            return prepared_response(False, "NOT_FOUND", str(e))
        except EligibilityValidationError as e:
            Log.warning(f"{log_tag} invalid cart: {e.message}")
            return prepared_response(False, "BAD_REQUEST", e.message, errors=e.to_dict())

        if not result.accepted:
            Log.info(f"{log_tag} cart rejected")
            return prepared_response(
                False, "VALIDATION_ERROR", result.rejections[0].message, data=result.to_dict()
            )
        return prepared_response(True, "OK", "Cart is within allowance.", data=result.to_dict())


@blp_allowance.route("/employees/<employee_id>/orders")
class EmployeeOrderResource(MethodView):

    @token_required
    @crud_write_limiter("orders")
    @blp_allowance.arguments(PlaceOrderSchema)
    @blp_allowance.response(201)
    @blp_allowance.doc(
        summary="Place a uniform order",
        description="Re-checks the whole cart against the current allowance, then creates the order.",
        security=[{"Bearer": []}],
    )
    def post(self, order_data, employee_id):
        session = SessionContext.from_current_user()
        log_tag = session_log_tag("allowance_resource.py", "EmployeeOrderResource", "post", session,
                                  employee_id=employee_id)

        try:
            placed = eligibility_service.place_order(session, employee_id, order_data.get("items"))
        except EmployeeNotFound as e:
            return prepared_response(False, "NOT_FOUND", str(e))
        except QuotaExceededError as e:
            Log.info(f"{log_tag} quota exceeded: {e.meta}")
            return prepared_response(False, "VALIDATION_ERROR", e.message, errors=e.to_dict())
        except EligibilityValidationError as e:
            Log.warning(f"{log_tag} invalid order: {e.message}")
            return prepared_response(False, "BAD_REQUEST", e.message, errors=e.to_dict())

        Log.info(f"{log_tag} order placed {placed['order_id']}")
        return prepared_response(True, "CREATED", "Order placed.", data=placed)
