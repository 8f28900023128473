"""Role groups used for access checks and notification fan-out."""

from app.db.enums.auth import Role


ROLES_BD_SIDE = frozenset({Role.BD, Role.TEAM_LEAD, Role.SALES_HEAD, Role.ADMIN})
ROLES_INSURANCE_SIDE = frozenset({Role.INSURANCE_HEAD, Role.INSURANCE, Role.ADMIN})

# Roles that see every lead without an ownership check
ROLES_SEE_ALL_LEADS = frozenset(
    {
        Role.ADMIN,
        Role.MD,
        Role.SALES_HEAD,
        Role.INSURANCE_HEAD,
        Role.INSURANCE,
        Role.PL_HEAD,
        Role.OUTSTANDING_HEAD,
    }
)
