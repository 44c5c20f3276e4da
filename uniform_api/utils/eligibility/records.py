# uniform_api/utils/eligibility/records.py
"""
Plain records the eligibility core works on.

Storage documents are converted here, once, on the way in: category aliases
are collapsed, dates become aware UTC datetimes and legacy camelCase keys are
accepted. Nothing in this module holds a reference to a collection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .categories import Category, normalize_category
from .cycles import (
    DEFAULT_DATE_OF_JOINING,
    RENEWAL_UNIT_MONTHS,
    cycle_length_months,
    to_utc,
)

GENDER_MALE = "male"
GENDER_FEMALE = "female"
GENDER_UNISEX = "unisex"  # legacy rule rows only

RULE_STATUS_ACTIVE = "active"
RULE_STATUS_INACTIVE = "inactive"

ORDER_STATUS_AWAITING_APPROVAL = "Awaiting approval"
ORDER_STATUS_AWAITING_FULFILMENT = "Awaiting fulfilment"
ORDER_STATUS_DISPATCHED = "Dispatched"
ORDER_STATUS_DELIVERED = "Delivered"
ORDER_STATUS_REJECTED = "Rejected"

# Orders in these states count against the employee's allowance.
CONSUMING_ORDER_STATUSES = (
    ORDER_STATUS_AWAITING_APPROVAL,
    ORDER_STATUS_AWAITING_FULFILMENT,
    ORDER_STATUS_DISPATCHED,
    ORDER_STATUS_DELIVERED,
)

# UI defaults applied to a ticked category that has no explicit settings.
DEFAULT_CATEGORY_QUANTITY = 1
DEFAULT_RENEWAL_FREQUENCY = 6


def _pick(doc: dict, *keys, default=None):
    for key in keys:
        if key in doc and doc[key] is not None:
            return doc[key]
    return default


def _as_id(value) -> Optional[str]:
    return str(value) if value is not None else None


@dataclass(frozen=True)
class CategoryEligibility:
    quantity: int
    renewal_frequency: int
    renewal_unit: str = RENEWAL_UNIT_MONTHS

    @property
    def cycle_months(self) -> int:
        return cycle_length_months(self.renewal_frequency, self.renewal_unit)

    @classmethod
    def from_doc(cls, doc: dict) -> "CategoryEligibility":
        return cls(
            quantity=int(_pick(doc, "quantity", default=0)),
            renewal_frequency=int(_pick(doc, "renewal_frequency", "renewalFrequency", default=0)),
            renewal_unit=str(_pick(doc, "renewal_unit", "renewalUnit", default=RENEWAL_UNIT_MONTHS)).lower(),
        )

    def to_dict(self) -> dict:
        return {
            "quantity": self.quantity,
            "renewal_frequency": self.renewal_frequency,
            "renewal_unit": self.renewal_unit,
        }


@dataclass
class EligibilityRule:
    company_id: str
    designation: str
    gender: str
    item_eligibility: Dict[Category, CategoryEligibility] = field(default_factory=dict)
    status: str = RULE_STATUS_ACTIVE
    rule_id: Optional[str] = None
    company_name: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == RULE_STATUS_ACTIVE

    @property
    def allowed_categories(self) -> List[Category]:
        return list(self.item_eligibility.keys())

    def for_category(self, category) -> Optional[CategoryEligibility]:
        category = normalize_category(category)
        if category is None:
            return None
        return self.item_eligibility.get(category)

    @classmethod
    def from_doc(cls, doc: dict) -> "EligibilityRule":
        raw_items = _pick(doc, "item_eligibility", "itemEligibility", default={}) or {}

        items: Dict[Category, CategoryEligibility] = {}
        canonical_names = {c.value for c in Category}
        # canonical keys first so "pant" beats a stale "trouser" copy
        for canonical_pass in (True, False):
            for key, value in raw_items.items():
                is_canonical = str(key).strip().lower() in canonical_names
                if is_canonical != canonical_pass or not isinstance(value, dict):
                    continue
                category = normalize_category(key)
                if category is not None and category not in items:
                    items[category] = CategoryEligibility.from_doc(value)

        # legacy rows: ticked categories without per-category settings
        for name in _pick(doc, "allowed_categories", "allowedProductCategories", default=[]) or []:
            category = normalize_category(name)
            if category is not None and category not in items:
                items[category] = CategoryEligibility(
                    quantity=DEFAULT_CATEGORY_QUANTITY,
                    renewal_frequency=DEFAULT_RENEWAL_FREQUENCY,
                )

        return cls(
            company_id=_as_id(_pick(doc, "company_id", "companyId")),
            designation=str(_pick(doc, "designation", default="")).strip(),
            gender=str(_pick(doc, "gender", default=GENDER_UNISEX)).strip().lower(),
            item_eligibility=items,
            status=str(_pick(doc, "status", default=RULE_STATUS_ACTIVE)).lower(),
            rule_id=_as_id(_pick(doc, "_id", "id")),
            company_name=_pick(doc, "company_name", "companyName"),
        )

    def to_dict(self) -> dict:
        return {
            "_id": self.rule_id,
            "company_id": self.company_id,
            "company_name": self.company_name,
            "designation": self.designation,
            "gender": self.gender,
            "status": self.status,
            "allowed_categories": [c.value for c in self.allowed_categories],
            "item_eligibility": {c.value: e.to_dict() for c, e in self.item_eligibility.items()},
        }


@dataclass
class EmployeeProfile:
    employee_id: str
    company_id: str
    designation: str
    gender: str
    date_of_joining: datetime = DEFAULT_DATE_OF_JOINING
    cycle_duration: Dict[Category, int] = field(default_factory=dict)
    first_name: str = ""
    last_name: str = ""
    address: Optional[str] = None
    dispatch_preference: Optional[str] = None
    status: str = "active"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def cycle_override(self, category: Category) -> Optional[int]:
        months = self.cycle_duration.get(category)
        if months is None or int(months) <= 0:
            return None
        return int(months)

    @classmethod
    def from_doc(cls, doc: dict) -> "EmployeeProfile":
        overrides: Dict[Category, int] = {}
        for key, months in (_pick(doc, "cycle_duration", "cycleDuration", default={}) or {}).items():
            category = normalize_category(key)
            if category is not None and months is not None:
                overrides.setdefault(category, int(months))

        return cls(
            employee_id=str(_pick(doc, "employee_id", "employeeId")),
            company_id=_as_id(_pick(doc, "company_id", "companyId")),
            designation=str(_pick(doc, "designation", default="")).strip(),
            gender=str(_pick(doc, "gender", default="")).strip().lower(),
            date_of_joining=to_utc(_pick(doc, "date_of_joining", "dateOfJoining")) or DEFAULT_DATE_OF_JOINING,
            cycle_duration=overrides,
            first_name=_pick(doc, "first_name", "firstName", default=""),
            last_name=_pick(doc, "last_name", "lastName", default=""),
            address=_pick(doc, "address"),
            dispatch_preference=_pick(doc, "dispatch_preference", "dispatchPreference"),
            status=str(_pick(doc, "status", default="active")).lower(),
        )


@dataclass(frozen=True)
class OrderLine:
    category: Optional[Category]
    quantity: int
    size: Optional[str] = None
    product_id: Optional[str] = None
    unit_price: float = 0.0

    @classmethod
    def from_doc(cls, doc: dict) -> "OrderLine":
        return cls(
            category=normalize_category(doc.get("category")),
            quantity=int(doc.get("quantity") or 0),
            size=doc.get("size"),
            product_id=_as_id(doc.get("product_id")),
            unit_price=float(_pick(doc, "unit_price", "price", default=0.0)),
        )


@dataclass
class OrderRecord:
    employee_id: str
    order_date: Optional[datetime]
    items: List[OrderLine] = field(default_factory=list)
    status: str = ORDER_STATUS_AWAITING_APPROVAL
    order_id: Optional[str] = None

    @property
    def counts_towards_quota(self) -> bool:
        return self.status in CONSUMING_ORDER_STATUSES and self.order_date is not None

    @classmethod
    def from_doc(cls, doc: dict) -> "OrderRecord":
        return cls(
            employee_id=str(_pick(doc, "employee_id", "employeeId")),
            order_date=to_utc(_pick(doc, "order_date", "orderDate")),
            items=[OrderLine.from_doc(i) for i in (doc.get("items") or [])],
            status=_pick(doc, "status", default=ORDER_STATUS_AWAITING_APPROVAL),
            order_id=_as_id(_pick(doc, "_id", "id")),
        )


def as_employee(value: Any) -> EmployeeProfile:
    return value if isinstance(value, EmployeeProfile) else EmployeeProfile.from_doc(value)


def as_rule(value: Any) -> Optional[EligibilityRule]:
    if value is None or isinstance(value, EligibilityRule):
        return value
    return EligibilityRule.from_doc(value)


def as_order(value: Any) -> OrderRecord:
    return value if isinstance(value, OrderRecord) else OrderRecord.from_doc(value)
