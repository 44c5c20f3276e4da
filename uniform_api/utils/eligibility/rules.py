# uniform_api/utils/eligibility/rules.py
from __future__ import annotations

from typing import Dict, Iterable, Optional

from .categories import Category, normalize_category
from .cycles import RENEWAL_UNIT_MONTHS, RENEWAL_UNITS
from .errors import EligibilityValidationError
from .records import (
    DEFAULT_CATEGORY_QUANTITY,
    DEFAULT_RENEWAL_FREQUENCY,
    GENDER_FEMALE,
    GENDER_MALE,
    GENDER_UNISEX,
    CategoryEligibility,
)

WRITABLE_GENDERS = (GENDER_MALE, GENDER_FEMALE)
READABLE_GENDERS = (GENDER_MALE, GENDER_FEMALE, GENDER_UNISEX)


def designation_key(designation) -> str:
    return " ".join(str(designation or "").split()).lower()


def _positive_int(value, field_name: str, category: Category) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise EligibilityValidationError(
            f"Please set a valid {field_name} (greater than 0) for {category.value}",
            category=category,
        )
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise EligibilityValidationError(
            f"{field_name} for {category.value} must be a whole number",
            category=category,
        )
    if number <= 0 or number != float(value):
        raise EligibilityValidationError(
            f"Please set a valid {field_name} (greater than 0) for {category.value}",
            category=category,
        )
    return number


def build_item_eligibility(
    item_eligibility: Optional[dict],
    selected_categories: Optional[Iterable] = None,
) -> Dict[Category, CategoryEligibility]:
    """
    Validate and normalize the per-category settings of a rule.

    `selected_categories` are the ticked categories; when omitted the keys of
    `item_eligibility` are the selection. A ticked category with no settings at
    all gets the defaults (1 item every 6 months); a category whose settings are
    present but zero/blank is rejected.
    """
    raw = item_eligibility or {}
    if not isinstance(raw, dict):
        raise EligibilityValidationError("item_eligibility must be an object keyed by category")

    settings: Dict[Category, dict] = {}
    for key, value in raw.items():
        category = normalize_category(key)
        if category is None:
            raise EligibilityValidationError(f"Unknown product category: {key}", category=key)
        if category in settings:
            # "trouser" and "pant" sent together describe one bucket
            continue
        if not isinstance(value, dict):
            raise EligibilityValidationError(
                f"Eligibility settings for {category.value} must be an object", category=category
            )
        settings[category] = value

    if selected_categories is None:
        selected = list(settings.keys())
    else:
        selected = []
        for name in selected_categories:
            category = normalize_category(name)
            if category is None:
                raise EligibilityValidationError(f"Unknown product category: {name}", category=name)
            if category not in selected:
                selected.append(category)

    if not selected:
        raise EligibilityValidationError("Select at least one product category")

    result: Dict[Category, CategoryEligibility] = {}
    for category in selected:
        value = settings.get(category)
        if value is None:
            result[category] = CategoryEligibility(
                quantity=DEFAULT_CATEGORY_QUANTITY,
                renewal_frequency=DEFAULT_RENEWAL_FREQUENCY,
            )
            continue

        quantity = _positive_int(value.get("quantity"), "quantity", category)
        frequency = _positive_int(
            value.get("renewal_frequency", value.get("renewalFrequency")), "renewal frequency", category
        )
        unit = str(value.get("renewal_unit") or value.get("renewalUnit") or RENEWAL_UNIT_MONTHS).strip().lower()
        if unit not in RENEWAL_UNITS:
            raise EligibilityValidationError(
                f"Renewal unit for {category.value} must be one of: {', '.join(RENEWAL_UNITS)}",
                category=category,
            )
        result[category] = CategoryEligibility(quantity=quantity, renewal_frequency=frequency, renewal_unit=unit)

    return result


def validate_rule_header(designation, gender, *, allow_legacy_gender: bool = False) -> tuple:
    name = " ".join(str(designation or "").split())
    if not name:
        raise EligibilityValidationError("Designation is required")

    value = str(gender or "").strip().lower()
    allowed = READABLE_GENDERS if allow_legacy_gender else WRITABLE_GENDERS
    if value not in allowed:
        raise EligibilityValidationError(
            f"Gender must be one of: {', '.join(allowed)}", meta={"gender": gender}
        )
    return name, value
