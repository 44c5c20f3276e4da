# uniform_api/utils/eligibility/categories.py
from __future__ import annotations

from enum import Enum
from typing import Optional


class Category(str, Enum):
    SHIRT = "shirt"
    PANT = "pant"
    SHOE = "shoe"
    JACKET = "jacket"
    ACCESSORY = "accessory"


# Order matters: "shirt" must be checked before anything that could appear
# inside a longer product label.
_MATCHERS = (
    (("shirt",), Category.SHIRT),
    (("trouser", "pant"), Category.PANT),
    (("shoe",), Category.SHOE),
    (("blazer", "jacket"), Category.JACKET),
    (("accessor",), Category.ACCESSORY),
)

# Cycle length (months) used when neither the employee nor the rule says otherwise.
DEFAULT_CYCLE_MONTHS = {
    Category.SHIRT: 6,
    Category.PANT: 6,
    Category.SHOE: 6,
    Category.JACKET: 12,
    Category.ACCESSORY: 12,
}


def normalize_category(value) -> Optional[Category]:
    """
    Resolve any category label to its canonical bucket.

      "Trousers" / "pant" / "PANTS"  -> Category.PANT
      "blazer" / "Jacket"            -> Category.JACKET
      "t-shirt"                      -> Category.SHIRT

    Unknown or empty labels return None.
    """
    if value is None:
        return None
    if isinstance(value, Category):
        return value

    lower = str(value).strip().lower()
    if not lower:
        return None

    for needles, category in _MATCHERS:
        if any(n in lower for n in needles):
            return category
    return None


def require_category(value) -> Category:
    category = normalize_category(value)
    if category is None:
        raise ValueError(f"Unknown product category: {value!r}")
    return category
