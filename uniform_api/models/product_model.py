# uniform_api/models/product_model.py

from ..models.base_model import BaseModel
from ..utils.eligibility.categories import require_category
from ..utils.logger import Log

PRODUCT_GENDER_UNISEX = "unisex"


class Product(BaseModel):
    """Uniform catalogue items. Category is stored in canonical form."""

    collection_name = "uniforms"

    def __init__(self, sku, name, category, gender=PRODUCT_GENDER_UNISEX, sizes=None, price=0.0, company_ids=None, **kwargs):
        super().__init__(company_id=None, **kwargs)
        self.sku = str(sku).strip()
        self.name = name
        self.category = require_category(category).value
        self.gender = str(gender or PRODUCT_GENDER_UNISEX).strip().lower()
        self.sizes = [str(s).strip() for s in (sizes or [])]
        self.price = float(price or 0.0)
        self.company_ids = [str(c) for c in (company_ids or [])]

    @classmethod
    def create(cls, sku, name, category, company_ids, **kwargs) -> str:
        product = cls(sku=sku, name=name, category=category, company_ids=company_ids, **kwargs)
        record_id = product.save()
        Log.info(f"[product_model.py][Product][create] sku={product.sku} category={product.category}")
        return record_id

    @classmethod
    def get_by_sku(cls, company_id, sku):
        """Product with this SKU linked to the company, or None."""
        if not sku:
            return None
        return cls.collection().find_one({"sku": str(sku).strip(), "company_ids": str(company_id)})

    @staticmethod
    def offers_size(product: dict, size) -> bool:
        sizes = product.get("sizes") or []
        if not sizes:
            return True
        wanted = str(size or "").strip().lower()
        return any(str(s).strip().lower() == wanted for s in sizes)

    @staticmethod
    def suits_gender(product: dict, gender) -> bool:
        """Unisex items suit everyone; gendered items only their own gender."""
        product_gender = str(product.get("gender") or PRODUCT_GENDER_UNISEX).strip().lower()
        if product_gender == PRODUCT_GENDER_UNISEX:
            return True
        return product_gender == str(gender or "").strip().lower()

    @classmethod
    def list_for_employee(cls, company_id, gender) -> list:
        """Company catalogue an employee of `gender` may order from, sorted by name."""
        wanted = str(gender or "").strip().lower()
        # a missing gender reads as unisex
        genders = [PRODUCT_GENDER_UNISEX, None] + ([wanted] if wanted else [])
        cursor = cls.collection().find(
            {"company_ids": str(company_id), "gender": {"$in": genders}}
        ).sort("name", 1)
        return list(cursor)
