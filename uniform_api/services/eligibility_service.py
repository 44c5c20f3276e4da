# uniform_api/services/eligibility_service.py

from __future__ import annotations

from typing import Optional

from ..models.eligibility_rule_model import EligibilityRule
from ..models.employee_model import Employee
from ..models.order_model import ORDER_SOURCE_CHECKOUT, Order
from ..models.product_model import Product
from ..utils.eligibility.categories import normalize_category
from ..utils.eligibility.errors import EligibilityValidationError
from ..utils.eligibility.order_validator import CartValidationResult, OrderValidator
from ..utils.eligibility.quota_engine import QuotaEngine
from ..utils.eligibility.records import EmployeeProfile
from ..utils.logger import Log
from ..utils.session import SessionContext

CART_MODE_CHECKOUT = "checkout"
CART_MODE_ADD = "add"


class EmployeeNotFound(LookupError):
    pass


def build_quota_engine(as_of=None) -> QuotaEngine:
    """Quota engine reading rules and order history from MongoDB."""
    return QuotaEngine(
        find_rule=EligibilityRule.find_rule,
        get_orders_for_employee=Order.get_for_employee,
        as_of=as_of,
    )


def load_employee_for_session(session: SessionContext, employee_id) -> EmployeeProfile:
    employee = Employee.get_profile(employee_id)
    if employee is None:
        raise EmployeeNotFound(f"Employee {employee_id} not found")
    if not session.can_act_for_employee(employee):
        raise PermissionError("You are not allowed to act for this employee.")
    return employee


def allowance_summary(session: SessionContext, employee_id, engine: Optional[QuotaEngine] = None) -> dict:
    employee = load_employee_for_session(session, employee_id)
    engine = engine or build_quota_engine()

    return {
        "employee_id": employee.employee_id,
        "designation": employee.designation,
        "gender": employee.gender,
        "allowances": engine.allowance_summary(employee),
    }


def validate_cart(
    session: SessionContext,
    employee_id,
    cart,
    mode: str = CART_MODE_CHECKOUT,
    category=None,
    quantity: int = 1,
    engine: Optional[QuotaEngine] = None,
) -> CartValidationResult:
    """
    mode "checkout" decides the whole cart; mode "add" decides only `category`
    when `quantity` more of it is added to `cart`.
    """
    employee = load_employee_for_session(session, employee_id)
    validator = OrderValidator(engine or build_quota_engine())

    if mode == CART_MODE_ADD:
        if category is None:
            raise EligibilityValidationError("category is required when adding to cart")
        return validator.validate_add_to_cart(employee, cart, category, quantity)
    if mode != CART_MODE_CHECKOUT:
        raise EligibilityValidationError(f"Unknown validation mode: {mode}")
    return validator.validate_checkout(employee, cart)


def resolve_order_lines(company_id, items, gender=None) -> list:
    """
    Turn [{sku, size, quantity}] into order lines priced from the catalogue.
    With `gender` set, gendered products of the other gender are refused.
    """
    lines = []
    for item in items or []:
        sku = str(item.get("sku") or "").strip()
        product = Product.get_by_sku(company_id, sku)
        if product is None:
            raise EligibilityValidationError(f"Product {sku} not found", meta={"sku": sku})

        if gender is not None and not Product.suits_gender(product, gender):
            raise EligibilityValidationError(
                f"Product {sku} is not available for {gender} employees",
                meta={"sku": sku, "product_gender": product.get("gender")},
            )

        size = item.get("size")
        if not Product.offers_size(product, size):
            raise EligibilityValidationError(f"Size {size} is not available for {sku}", meta={"sku": sku})

        try:
            quantity = int(item.get("quantity"))
        except (TypeError, ValueError):
            raise EligibilityValidationError(f"Quantity for {sku} must be a whole number", meta={"sku": sku})
        if quantity <= 0:
            raise EligibilityValidationError(f"Quantity for {sku} must be greater than zero", meta={"sku": sku})

        lines.append({
            "product_id": product.get("_id"),
            "product_name": product.get("name"),
            "category": product.get("category"),
            "size": size,
            "quantity": quantity,
            "unit_price": product.get("price") or 0.0,
        })
    return lines


def place_order(session: SessionContext, employee_id, items, engine: Optional[QuotaEngine] = None) -> dict:
    """
    Checkout: re-validate the whole cart against current history, then write
    the order. Raises QuotaExceededError for the first rejected category.
    """
    log_tag = f"[eligibility_service.py][place_order][{session.company_id}][{employee_id}]"

    employee = load_employee_for_session(session, employee_id)
    lines = resolve_order_lines(employee.company_id, items, gender=employee.gender)
    if not lines:
        raise EligibilityValidationError("Order must contain at least one item")

    result = OrderValidator(engine or build_quota_engine()).validate_checkout(employee, lines)
    if not result.accepted:
        Log.warning(f"{log_tag} checkout rejected: {[e.to_dict() for e in result.rejections]}")
        result.raise_for_rejection()

    order_id = Order.create(employee.company_id, employee, lines, source=ORDER_SOURCE_CHECKOUT)
    Log.info(f"{log_tag} order {order_id} placed")
    return {"order_id": order_id, "validation": result.to_dict()}


def eligible_catalog(session: SessionContext, employee_id, engine: Optional[QuotaEngine] = None) -> dict:
    """
    Company products the employee may order: their gender or unisex, and only
    in categories their rule allows. Each item carries the category's
    remaining allowance.
    """
    employee = load_employee_for_session(session, employee_id)
    engine = engine or build_quota_engine()
    allowances = {row["category"]: row for row in engine.allowance_summary(employee)}

    items = []
    for product in Product.list_for_employee(employee.company_id, employee.gender):
        category = normalize_category(product.get("category"))
        allowance = allowances.get(category.value) if category else None
        if allowance is None:
            continue
        items.append({
            "product_id": str(product.get("_id")),
            "sku": product.get("sku"),
            "name": product.get("name"),
            "category": category.value,
            "gender": product.get("gender"),
            "sizes": product.get("sizes") or [],
            "price": product.get("price") or 0.0,
            "total": allowance["total"],
            "remaining": allowance["remaining"],
        })

    return {
        "employee_id": employee.employee_id,
        "gender": employee.gender,
        "items": items,
    }
