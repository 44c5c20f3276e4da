# uniform_api/utils/session.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import g

from ..constants.service_code import SYSTEM_USERS


@dataclass(frozen=True)
class SessionContext:
    """Who is acting, for which tenant. Passed explicitly into every service call."""

    company_id: Optional[str]
    role: str
    employee_id: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def is_company_admin(self) -> bool:
        return self.role == SYSTEM_USERS["COMPANY_ADMIN"]

    @property
    def is_super_admin(self) -> bool:
        return self.role == SYSTEM_USERS["SUPER_ADMIN"]

    @property
    def is_employee(self) -> bool:
        return self.role == SYSTEM_USERS["EMPLOYEE"]

    def can_manage_company(self, company_id) -> bool:
        if self.is_super_admin:
            return True
        return self.is_company_admin and str(company_id) == str(self.company_id)

    def can_act_for_employee(self, employee) -> bool:
        """Employees act on themselves only; admins on anyone in their company."""
        if self.can_manage_company(employee.company_id):
            return True
        return (
            self.is_employee
            and self.employee_id is not None
            and str(employee.employee_id) == str(self.employee_id)
            and str(employee.company_id) == str(self.company_id)
        )

    def require_company_admin(self):
        if not (self.is_company_admin or self.is_super_admin):
            raise PermissionError("Only company administrators can perform this action.")
        # admin actions are company-scoped; a super admin token may carry no company
        if not self.company_id:
            raise PermissionError("Select a company before performing this action.")

    @classmethod
    def from_claims(cls, claims: dict) -> "SessionContext":
        return cls(
            company_id=claims.get("company_id"),
            role=claims.get("role") or SYSTEM_USERS["EMPLOYEE"],
            employee_id=claims.get("employee_id"),
            user_id=claims.get("user_id") or claims.get("sub"),
        )

    @classmethod
    def from_current_user(cls) -> "SessionContext":
        user = g.get("current_user")
        if not user:
            raise PermissionError("No current user found for this request.")
        return cls.from_claims(user)
