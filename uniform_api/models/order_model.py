# uniform_api/models/order_model.py

from datetime import datetime, timezone

from ..constants.service_code import DISPATCH_ESTIMATES
from ..models.base_model import BaseModel, to_object_id
from ..utils.eligibility.categories import require_category
from ..utils.eligibility.records import (
    ORDER_STATUS_AWAITING_APPROVAL,
    ORDER_STATUS_AWAITING_FULFILMENT,
    ORDER_STATUS_DELIVERED,
    ORDER_STATUS_DISPATCHED,
    ORDER_STATUS_REJECTED,
)
from ..utils.logger import Log

ORDER_SOURCE_CHECKOUT = "checkout"
ORDER_SOURCE_BULK_IMPORT = "bulk_import"

ALLOWED_TRANSITIONS = {
    ORDER_STATUS_AWAITING_APPROVAL: (ORDER_STATUS_AWAITING_FULFILMENT, ORDER_STATUS_REJECTED),
    ORDER_STATUS_AWAITING_FULFILMENT: (ORDER_STATUS_DISPATCHED,),
    ORDER_STATUS_DISPATCHED: (ORDER_STATUS_DELIVERED,),
    ORDER_STATUS_DELIVERED: (),
    ORDER_STATUS_REJECTED: (),
}


class InvalidStatusTransition(ValueError):
    pass


class Order(BaseModel):
    """
    Uniform orders. New orders wait for company approval; rejected orders
    no longer count against the employee's allowance.
    """

    collection_name = "orders"

    def __init__(self, company_id, employee_id, items, employee_name=None, dispatch_preference=None,
                 delivery_address=None, source=ORDER_SOURCE_CHECKOUT, **kwargs):
        super().__init__(company_id=company_id, **kwargs)

        lines = []
        total = 0.0
        for item in items:
            quantity = int(item.get("quantity") or 0)
            unit_price = float(item.get("unit_price") or item.get("price") or 0.0)
            lines.append({
                "product_id": str(item.get("product_id")) if item.get("product_id") is not None else None,
                "product_name": item.get("product_name"),
                "category": require_category(item.get("category")).value,
                "size": item.get("size"),
                "quantity": quantity,
                "unit_price": unit_price,
            })
            total += quantity * unit_price

        dispatch = (dispatch_preference or "direct").lower()

        self.employee_id = str(employee_id)
        self.employee_name = employee_name
        self.items = lines
        self.total = round(total, 2)
        self.status = ORDER_STATUS_AWAITING_APPROVAL
        self.order_date = datetime.now(timezone.utc)
        self.dispatch_location = dispatch
        self.delivery_address = delivery_address
        self.estimated_delivery_time = DISPATCH_ESTIMATES.get(dispatch)
        self.source = source

    @classmethod
    def create(cls, company_id, employee, items, source=ORDER_SOURCE_CHECKOUT) -> str:
        """Write a new order for an EmployeeProfile; returns the order id."""
        order = cls(
            company_id=company_id,
            employee_id=employee.employee_id,
            employee_name=employee.full_name,
            items=items,
            dispatch_preference=employee.dispatch_preference,
            delivery_address=employee.address,
            source=source,
        )
        order_id = order.save()
        Log.info(
            f"[order_model.py][Order][create][{company_id}][{employee.employee_id}] "
            f"order {order_id} source={source} lines={len(order.items)}"
        )
        return order_id

    @classmethod
    def get_for_employee(cls, employee_id) -> list:
        return list(cls.collection().find({"employee_id": str(employee_id)}))

    @classmethod
    def update_status(cls, order_id, company_id, new_status) -> dict:
        """
        Move an order along its lifecycle. Returns the updated document, None
        when the order is not in this company, and raises
        InvalidStatusTransition for an illegal move.
        """
        order = cls.get_by_id(order_id, company_id)
        if not order:
            return None

        current = order.get("status")
        if new_status not in ALLOWED_TRANSITIONS.get(current, ()):
            raise InvalidStatusTransition(f"Cannot move order from '{current}' to '{new_status}'")

        cls.update(order_id, company_id, status=new_status)
        Log.info(f"[order_model.py][Order][update_status][{company_id}][{order_id}] {current} -> {new_status}")
        return cls.collection().find_one({"_id": to_object_id(order_id)})
