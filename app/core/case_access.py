"""Lead access control - centralized ownership checks for case operations.

Access is owner-based:
- BD: only leads where they are the assigned BD
- TEAM_LEAD: leads owned by their team (or assigned to them)
- Desk roles (insurance, finance, management): every lead
"""

from sqlalchemy.orm import Query

from app.core.errors import ForbiddenError
from app.db.enums import ROLES_SEE_ALL_LEADS, Role
from app.db.models import Lead
from app.schemas.auth import UserSession


def can_access_lead(session: UserSession, lead: Lead) -> bool:
    """Whether the session may see (and, role permitting, act on) a lead."""
    if session.role in ROLES_SEE_ALL_LEADS:
        return True
    if lead.bd_id == session.user_id:
        return True
    if session.role == Role.TEAM_LEAD:
        return session.team_id is not None and lead.team_id == session.team_id
    return False


def check_lead_access(session: UserSession, lead: Lead) -> None:
    """
    Raise if the session cannot access the lead.

    Raises:
        ForbiddenError: lead belongs to someone else
    """
    if not can_access_lead(session, lead):
        raise ForbiddenError("You do not have access to this lead")


def scope_lead_query(query: Query, session: UserSession) -> Query:
    """Apply the same ownership rules to a Lead list query."""
    if session.role in ROLES_SEE_ALL_LEADS:
        return query
    if session.role == Role.TEAM_LEAD and session.team_id is not None:
        return query.filter(
            (Lead.team_id == session.team_id) | (Lead.bd_id == session.user_id)
        )
    return query.filter(Lead.bd_id == session.user_id)
