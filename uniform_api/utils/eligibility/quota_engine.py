# uniform_api/utils/eligibility/quota_engine.py
from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from .categories import DEFAULT_CYCLE_MONTHS, Category, normalize_category
from .cycles import CycleWindow, current_cycle
from .records import EligibilityRule, as_employee, as_order, as_rule

RuleFinder = Callable[[str, str, str], Optional[object]]
OrderHistory = Callable[[str], Iterable[object]]


class QuotaEngine:
    """
    Per-category allowance for an employee in the current renewal cycle.

      total     = quantity configured on the employee's (company, designation, gender) rule
      consumed  = items of that category ordered inside the current cycle
      remaining = max(0, total - consumed)

    Collaborators:
      find_rule(company_id, designation, gender) -> rule doc | EligibilityRule | None
      get_orders_for_employee(employee_id)       -> iterable of order docs | OrderRecord

    Nothing is cached or persisted; every call reads through the collaborators,
    so two calls with no order written in between return the same numbers.
    """

    def __init__(self, find_rule: RuleFinder, get_orders_for_employee: OrderHistory, as_of=None):
        self._find_rule = find_rule
        self._get_orders = get_orders_for_employee
        self.as_of = as_of

    # ---------------- Lookups ----------------
    def rule_for(self, employee) -> Optional[EligibilityRule]:
        employee = as_employee(employee)
        return as_rule(self._find_rule(employee.company_id, employee.designation, employee.gender))

    def orders_for(self, employee) -> list:
        employee = as_employee(employee)
        return list(self._get_orders(employee.employee_id) or [])

    def cycle_months(self, employee, category, rule: Optional[EligibilityRule] = None) -> int:
        employee = as_employee(employee)
        category = normalize_category(category)

        override = employee.cycle_override(category)
        if override:
            return override

        settings = rule.for_category(category) if rule else None
        if settings is not None:
            return settings.cycle_months

        return DEFAULT_CYCLE_MONTHS.get(category, 12)

    def cycle_for(self, employee, category, rule: Optional[EligibilityRule] = None) -> CycleWindow:
        employee = as_employee(employee)
        months = self.cycle_months(employee, category, rule)
        return current_cycle(employee.date_of_joining, months, self.as_of)

    # ---------------- Allowance ----------------
    def total_allowance(self, employee, category, rule: Optional[EligibilityRule] = None) -> int:
        category = normalize_category(category)
        if category is None:
            return 0
        if rule is None:
            rule = self.rule_for(employee)
        if rule is None:
            return 0

        settings = rule.for_category(category)
        return max(int(settings.quantity), 0) if settings else 0

    def consumed(self, employee, category, rule: Optional[EligibilityRule] = None, orders=None) -> int:
        employee = as_employee(employee)
        category = normalize_category(category)
        if category is None:
            return 0

        window = self.cycle_for(employee, category, rule if rule is not None else self.rule_for(employee))
        if orders is None:
            orders = self._get_orders(employee.employee_id) or []

        total = 0
        for raw in orders:
            order = as_order(raw)
            if not order.counts_towards_quota or not window.contains(order.order_date):
                continue
            total += sum(line.quantity for line in order.items if line.category == category)
        return total

    def remaining_allowance(self, employee, category, rule: Optional[EligibilityRule] = None, orders=None) -> int:
        employee = as_employee(employee)
        if rule is None:
            rule = self.rule_for(employee)

        total = self.total_allowance(employee, category, rule)
        if total == 0:
            return 0
        return max(0, total - self.consumed(employee, category, rule, orders))

    def allowance_summary(self, employee) -> List[dict]:
        """Allowance for every category the employee's rule allows, as plain data."""
        employee = as_employee(employee)
        rule = self.rule_for(employee)
        if rule is None:
            return []

        orders = self.orders_for(employee)
        summary = []
        for category in Category:
            if rule.for_category(category) is None:
                continue
            total = self.total_allowance(employee, category, rule)
            consumed = self.consumed(employee, category, rule, orders)
            summary.append({
                "category": category.value,
                "total": total,
                "consumed": consumed,
                "remaining": max(0, total - consumed),
                "cycle": self.cycle_for(employee, category, rule).to_dict(),
            })
        return summary
