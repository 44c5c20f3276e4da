from flask import current_app, make_response, request
from flask.views import MethodView
from flask_smorest import Blueprint

from ...constants.service_code import BULK_IMPORT_ALLOWED_EXTENSIONS
from ...models.order_model import InvalidStatusTransition, Order
from ...schemas.order_schema import BulkImportQuerySchema
from ...security.auth import token_required
from ...services.bulk_order_import_service import import_orders
from ...utils.eligibility.errors import MalformedInputError
from ...utils.eligibility.records import ORDER_STATUS_AWAITING_FULFILMENT, ORDER_STATUS_REJECTED
from ...utils.helpers import session_log_tag, stringify_ids
from ...utils.json_response import prepared_response
from ...utils.logger import Log
from ...utils.rate_limits import crud_write_limiter
from ...utils.session import SessionContext

blp_order_admin = Blueprint("order_admin", __name__, description="Order approval and bulk order import")


def _move_order(order_id, new_status, resource, message):
    session = SessionContext.from_current_user()
    session.require_company_admin()
    log_tag = session_log_tag("order_admin_resource.py", resource, "post", session, order_id=order_id)

    try:
        order = Order.update_status(order_id, session.company_id, new_status)
    except InvalidStatusTransition as e:
        Log.warning(f"{log_tag} {e}")
        return prepared_response(False, "CONFLICT", str(e))

    if not order:
        return prepared_response(False, "NOT_FOUND", "Order not found.")

    Log.info(f"{log_tag} order moved to {new_status}")
    return prepared_response(True, "OK", message, data=stringify_ids(order))


@blp_order_admin.route("/orders/<order_id>/approve")
class OrderApproveResource(MethodView):

    @token_required
    @crud_write_limiter("orders")
    @blp_order_admin.response(200)
    @blp_order_admin.doc(summary="Approve an order awaiting approval", security=[{"Bearer": []}])
    def post(self, order_id):
        return _move_order(order_id, ORDER_STATUS_AWAITING_FULFILMENT, "OrderApproveResource", "Order approved.")


@blp_order_admin.route("/orders/<order_id>/reject")
class OrderRejectResource(MethodView):

    @token_required
    @crud_write_limiter("orders")
    @blp_order_admin.response(200)
    @blp_order_admin.doc(
        summary="Reject an order awaiting approval",
        description="Rejected orders no longer count against the employee's allowance.",
        security=[{"Bearer": []}],
    )
    def post(self, order_id):
        return _move_order(order_id, ORDER_STATUS_REJECTED, "OrderRejectResource", "Order rejected.")


@blp_order_admin.route("/orders/bulk/import")
class BulkOrderImportResource(MethodView):

    @token_required
    @crud_write_limiter("orders_bulk", "5 per minute; 50 per hour")
    @blp_order_admin.arguments(BulkImportQuerySchema, location="query")
    @blp_order_admin.response(200)
    @blp_order_admin.doc(
        summary="Bulk order import",
        description="""
            Multipart upload of a CSV or Excel file with columns
            Employee ID, SKU, Size, Quantity. Each row is processed on its own;
            ?format=csv returns the per-row report as a CSV download.
        """,
        security=[{"Bearer": []}],
    )
    def post(self, query):
        session = SessionContext.from_current_user()
        session.require_company_admin()
        log_tag = session_log_tag("order_admin_resource.py", "BulkOrderImportResource", "post", session)

        upload = request.files.get("file")
        if upload is None or not upload.filename:
            return prepared_response(False, "BAD_REQUEST", "A file is required.", required_fields=["file"])

        extension = upload.filename.rsplit(".", 1)[-1].lower() if "." in upload.filename else ""
        if extension not in BULK_IMPORT_ALLOWED_EXTENSIONS:
            return prepared_response(
                False,
                "BAD_REQUEST",
                f"Unsupported file type. Allowed: {', '.join(sorted(BULK_IMPORT_ALLOWED_EXTENSIONS))}",
            )

        try:
            report = import_orders(
                session.company_id,
                upload.filename,
                upload.read(),
                max_rows=current_app.config.get("BULK_IMPORT_MAX_ROWS", 10000),
            )
        except MalformedInputError as e:
            Log.warning(f"{log_tag} malformed file: {e.message}")
            return prepared_response(False, "BAD_REQUEST", e.message, errors=e.to_dict())
        except Exception as e:
            Log.error(f"{log_tag} bulk import failed: {e}", exc_info=True)
            return prepared_response(False, "INTERNAL_SERVER_ERROR", "An error occurred while importing orders.")

        Log.info(
            f"{log_tag} imported file={upload.filename} "
            f"total={report.total} successful={report.successful} failed={report.failed}"
        )

        if query.get("format") == "csv":
            response = make_response(report.to_csv())
            response.headers["Content-Type"] = "text/csv; charset=utf-8"
            response.headers["Content-Disposition"] = "attachment; filename=bulk_order_report.csv"
            return response

        return prepared_response(True, "OK", "Bulk import completed.", data=report.to_dict())
