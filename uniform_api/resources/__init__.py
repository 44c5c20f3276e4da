# Admin Resources
from .admin.eligibility_rule_resource import blp_eligibility_rule
from .admin.order_admin_resource import blp_order_admin

# Employee Resources
from .employee.allowance_resource import blp_allowance

__all__ = [
    "blp_eligibility_rule",
    "blp_order_admin",
    "blp_allowance",
]
