# uniform_api/models/employee_model.py

from ..models.base_model import BaseModel
from ..utils.eligibility.categories import normalize_category
from ..utils.eligibility.cycles import DEFAULT_DATE_OF_JOINING, to_utc
from ..utils.eligibility.records import EmployeeProfile
from ..utils.eligibility.rules import designation_key
from ..utils.logger import Log


class Employee(BaseModel):
    """
    Company employees. `employee_id` is the human code printed on staff
    cards (e.g. IND-001) and is what bulk files and URLs carry.
    """

    collection_name = "employees"

    def __init__(
        self,
        company_id,
        employee_id,
        first_name,
        last_name,
        designation,
        gender,
        date_of_joining=None,
        cycle_duration=None,
        address=None,
        dispatch_preference=None,
        status="active",
        **kwargs,
    ):
        super().__init__(company_id=company_id, **kwargs)
        self.employee_id = str(employee_id).strip()
        self.first_name = first_name
        self.last_name = last_name
        self.designation = str(designation or "").strip()
        self.gender = str(gender or "").strip().lower()
        self.date_of_joining = to_utc(date_of_joining) or DEFAULT_DATE_OF_JOINING
        self.address = address
        self.dispatch_preference = dispatch_preference
        self.status = status

        overrides = {}
        for key, months in (cycle_duration or {}).items():
            category = normalize_category(key)
            if category is not None and months:
                overrides[category.value] = int(months)
        self.cycle_duration = overrides or None

    @classmethod
    def create(cls, company_id, employee_id, first_name, last_name, designation, gender, **kwargs) -> str:
        employee = cls(
            company_id=company_id,
            employee_id=employee_id,
            first_name=first_name,
            last_name=last_name,
            designation=designation,
            gender=gender,
            **kwargs,
        )
        record_id = employee.save()
        Log.info(f"[employee_model.py][Employee][create][{company_id}] employee {employee.employee_id}")
        return record_id

    @classmethod
    def get_by_employee_id(cls, employee_id):
        """Raw employee document by human code (any company), or None."""
        if employee_id is None:
            return None
        return cls.collection().find_one({"employee_id": str(employee_id).strip()})

    @classmethod
    def get_profile(cls, employee_id):
        doc = cls.get_by_employee_id(employee_id)
        return EmployeeProfile.from_doc(doc) if doc else None

    @classmethod
    def list_active_by_company(cls, company_id, designation=None, gender=None) -> list:
        query = {"company_id": str(company_id), "status": "active"}
        cursor = cls.collection().find(query)
        wanted_key = designation_key(designation) if designation is not None else None

        profiles = []
        for doc in cursor:
            profile = EmployeeProfile.from_doc(doc)
            if wanted_key is not None and designation_key(profile.designation) != wanted_key:
                continue
            if gender is not None and profile.gender != str(gender).strip().lower():
                continue
            profiles.append(profile)
        return profiles
