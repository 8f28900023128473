"""Capability registry with metadata, and the role -> capability defaults.

Capabilities are a closed enum. Checks go through has_permission() so a
misspelled capability fails at import time instead of silently denying.
"""

from dataclasses import dataclass
from enum import Enum

from app.db.enums import Role


class PermissionKey(str, Enum):
    LEADS_READ = "leads:read"
    LEADS_WRITE = "leads:write"
    LEADS_ASSIGN = "leads:assign"
    TARGETS_READ = "targets:read"
    TARGETS_WRITE = "targets:write"
    ANALYTICS_READ = "analytics:read"
    USERS_READ = "users:read"
    USERS_WRITE = "users:write"
    INSURANCE_READ = "insurance:read"
    INSURANCE_WRITE = "insurance:write"
    PL_READ = "pl:read"
    PL_WRITE = "pl:write"
    REPORTS_EXPORT = "reports:export"


class PermissionCategory(str, Enum):
    """Permission categories for UI grouping."""
    LEADS = "Leads"
    INSURANCE = "Insurance"
    FINANCE = "Finance"
    TEAM = "Team"
    REPORTING = "Reporting"


@dataclass(frozen=True)
class PermissionDef:
    """Permission definition with metadata."""
    key: PermissionKey
    label: str
    description: str
    category: PermissionCategory


P = PermissionKey

PERMISSION_REGISTRY: dict[PermissionKey, PermissionDef] = {
    P.LEADS_READ: PermissionDef(
        P.LEADS_READ, "View Leads", "See lead list and case details", PermissionCategory.LEADS
    ),
    P.LEADS_WRITE: PermissionDef(
        P.LEADS_WRITE, "Edit Leads",
        "Create leads and drive BD-side workflow steps", PermissionCategory.LEADS
    ),
    P.LEADS_ASSIGN: PermissionDef(
        P.LEADS_ASSIGN, "Assign Leads", "Reassign leads between BDs", PermissionCategory.LEADS
    ),
    P.TARGETS_READ: PermissionDef(
        P.TARGETS_READ, "View Targets", "See BD and team targets", PermissionCategory.REPORTING
    ),
    P.TARGETS_WRITE: PermissionDef(
        P.TARGETS_WRITE, "Set Targets", "Create and edit targets", PermissionCategory.REPORTING
    ),
    P.ANALYTICS_READ: PermissionDef(
        P.ANALYTICS_READ, "View Analytics", "Access dashboards", PermissionCategory.REPORTING
    ),
    P.USERS_READ: PermissionDef(
        P.USERS_READ, "View Users", "See the user directory", PermissionCategory.TEAM
    ),
    P.USERS_WRITE: PermissionDef(
        P.USERS_WRITE, "Manage Users", "Create users and change roles", PermissionCategory.TEAM
    ),
    P.INSURANCE_READ: PermissionDef(
        P.INSURANCE_READ, "View Insurance", "See KYP and pre-auth details",
        PermissionCategory.INSURANCE
    ),
    P.INSURANCE_WRITE: PermissionDef(
        P.INSURANCE_WRITE, "Handle Insurance",
        "Suggest hospitals and decide pre-authorizations", PermissionCategory.INSURANCE
    ),
    P.PL_READ: PermissionDef(
        P.PL_READ, "View P&L", "See case P&L records", PermissionCategory.FINANCE
    ),
    P.PL_WRITE: PermissionDef(
        P.PL_WRITE, "Edit P&L", "Edit case P&L records", PermissionCategory.FINANCE
    ),
    P.REPORTS_EXPORT: PermissionDef(
        P.REPORTS_EXPORT, "Export Reports", "Download report exports", PermissionCategory.REPORTING
    ),
}


# =============================================================================
# Role Defaults
# =============================================================================

ROLE_DEFAULTS: dict[Role, frozenset[PermissionKey]] = {
    Role.ADMIN: frozenset(PermissionKey),
    Role.MD: frozenset(
        {P.LEADS_READ, P.TARGETS_READ, P.ANALYTICS_READ, P.USERS_READ,
         P.INSURANCE_READ, P.PL_READ, P.REPORTS_EXPORT}
    ),
    Role.SALES_HEAD: frozenset(
        {P.LEADS_READ, P.LEADS_WRITE, P.LEADS_ASSIGN, P.TARGETS_READ,
         P.TARGETS_WRITE, P.ANALYTICS_READ, P.USERS_READ, P.REPORTS_EXPORT}
    ),
    Role.TEAM_LEAD: frozenset(
        {P.LEADS_READ, P.LEADS_WRITE, P.LEADS_ASSIGN, P.TARGETS_READ, P.ANALYTICS_READ}
    ),
    Role.BD: frozenset({P.LEADS_READ, P.LEADS_WRITE, P.TARGETS_READ, P.ANALYTICS_READ}),
    Role.INSURANCE_HEAD: frozenset({P.LEADS_READ, P.INSURANCE_READ, P.INSURANCE_WRITE}),
    Role.INSURANCE: frozenset({P.LEADS_READ, P.INSURANCE_READ, P.INSURANCE_WRITE}),
    Role.PL_HEAD: frozenset({P.LEADS_READ, P.PL_READ, P.PL_WRITE, P.REPORTS_EXPORT}),
    Role.OUTSTANDING_HEAD: frozenset({P.LEADS_READ, P.PL_READ}),
    Role.HR_HEAD: frozenset({P.USERS_READ, P.USERS_WRITE}),
}


def get_role_permissions(role: Role | str) -> frozenset[PermissionKey]:
    """Capabilities granted to a role (empty for unknown roles)."""
    role_value = role.value if isinstance(role, Role) else role
    if not Role.has_value(role_value):
        return frozenset()
    return ROLE_DEFAULTS.get(Role(role_value), frozenset())


def has_permission(role: Role | str, permission: PermissionKey) -> bool:
    """Check a capability for a role."""
    return permission in get_role_permissions(role)
