# uniform_api/utils/eligibility/order_validator.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .categories import Category, normalize_category
from .errors import EligibilityValidationError, QuotaExceededError
from .quota_engine import QuotaEngine
from .records import as_employee


@dataclass
class CategoryDecision:
    category: str
    requested: int
    remaining: int
    total: int
    error: Optional[QuotaExceededError] = None

    @property
    def accepted(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        doc = {
            "category": self.category,
            "requested": self.requested,
            "remaining": self.remaining,
            "total": self.total,
            "accepted": self.accepted,
        }
        if self.error is not None:
            doc["error"] = self.error.to_dict()
        return doc


@dataclass
class CartValidationResult:
    decisions: List[CategoryDecision] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return all(d.accepted for d in self.decisions)

    @property
    def rejections(self) -> List[QuotaExceededError]:
        return [d.error for d in self.decisions if d.error is not None]

    def raise_for_rejection(self):
        if self.rejections:
            raise self.rejections[0]

    def to_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "decisions": [d.to_dict() for d in self.decisions],
        }


def merge_cart(cart) -> Dict[Category, int]:
    """
    Collapse a cart to {Category: quantity}.

    Accepts either a mapping {category_label: quantity} or an iterable of
    line dicts with "category" and "quantity". Alias labels ("trouser",
    "pant") land in the same bucket.
    """
    if cart is None:
        return {}

    pairs: Iterable
    if isinstance(cart, dict):
        pairs = cart.items()
    else:
        pairs = ((line.get("category"), line.get("quantity")) for line in cart)

    merged: Dict[Category, int] = {}
    for label, quantity in pairs:
        category = normalize_category(label)
        if category is None:
            raise EligibilityValidationError(f"Unknown product category: {label}", category=label)
        try:
            qty = int(quantity)
        except (TypeError, ValueError):
            raise EligibilityValidationError(f"Quantity for {category.value} must be a whole number", category=category)
        if qty < 0:
            raise EligibilityValidationError(f"Quantity for {category.value} cannot be negative", category=category)
        merged[category] = merged.get(category, 0) + qty
    return merged


class OrderValidator:
    """
    Checks a proposed cart against the employee's remaining allowance.

    This is advisory validation for fast feedback in the UI. It reads the
    order history and compares; it does not reserve anything. Two sessions of
    the same employee can both pass this check for the last remaining item.
    Only the order-creation write can make quota enforcement race-safe.
    """

    def __init__(self, engine: QuotaEngine):
        self.engine = engine

    def validate_checkout(self, employee, cart) -> CartValidationResult:
        """Whole-cart check, every category decided against the same snapshot."""
        employee = as_employee(employee)
        requested = merge_cart(cart)

        rule = self.engine.rule_for(employee)
        orders = self.engine.orders_for(employee) if rule else []

        result = CartValidationResult()
        for category, quantity in requested.items():
            total = self.engine.total_allowance(employee, category, rule)
            remaining = self.engine.remaining_allowance(employee, category, rule, orders) if rule else 0
            error = None
            if quantity > remaining:
                error = QuotaExceededError(category, requested=quantity, remaining=remaining, total=total)
            result.decisions.append(
                CategoryDecision(
                    category=category.value,
                    requested=quantity,
                    remaining=remaining,
                    total=total,
                    error=error,
                )
            )
        return result

    def validate_add_to_cart(self, employee, cart, category, quantity: int = 1) -> CartValidationResult:
        """
        Incremental check when adding `quantity` of `category` to an existing cart.
        Only the touched category is decided.
        """
        target = normalize_category(category)
        if target is None:
            raise EligibilityValidationError(f"Unknown product category: {category}", category=category)

        in_cart = merge_cart(cart).get(target, 0)
        proposed = merge_cart({target: quantity})
        return self.validate_checkout(employee, {target: in_cart + proposed[target]})
