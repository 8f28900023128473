"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    User roles across the sales, insurance and finance desks.

    - BD: Business developer, owns leads and drives the BD-side steps
    - TEAM_LEAD: Leads a BD team, sees team leads
    - INSURANCE / INSURANCE_HEAD: Insurance desk (hospital suggestions, pre-auth decisions)
    - ADMIN: Business admin, bypasses ownership checks
    """

    ADMIN = "admin"
    MD = "md"
    SALES_HEAD = "sales_head"
    TEAM_LEAD = "team_lead"
    BD = "bd"
    INSURANCE_HEAD = "insurance_head"
    INSURANCE = "insurance"
    PL_HEAD = "pl_head"
    OUTSTANDING_HEAD = "outstanding_head"
    HR_HEAD = "hr_head"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_
