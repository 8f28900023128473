"""Lead service - create, read, list and mark-lost for patient cases."""

import logging
import secrets
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.case_access import check_lead_access, scope_lead_query
from app.core.errors import ForbiddenError, InvalidStateError, NotFoundError, ValidationFailedError
from app.core.permissions import PermissionKey, has_permission
from app.db.enums import CaseAction, CaseStage, PipelineStage, ROLES_BD_SIDE, Role
from app.db.models import Lead, User
from app.schemas.auth import UserSession
from app.schemas.lead import LeadCreate, MarkLostRequest
from app.services import case_events, case_stage_service
from app.utils.normalization import normalize_name
from app.utils.pagination import PaginationParams

logger = logging.getLogger(__name__)


def generate_lead_ref() -> str:
    """L-YYYYMMDD-XXXXXX, date in UTC."""
    today = datetime.now(timezone.utc).strftime("%Y%m%d")
    return f"L-{today}-{secrets.token_hex(3).upper()}"


def create_lead(db: Session, session: UserSession, data: LeadCreate) -> Lead:
    """
    Create a lead at NEW_LEAD.

    BD-side roles only. A BD always owns the leads they create; leads and
    admins may assign another BD.
    """
    if session.role not in ROLES_BD_SIDE or not has_permission(
        session.role, PermissionKey.LEADS_WRITE
    ):
        raise ForbiddenError(f"Role '{session.role.value}' cannot create leads")

    bd_id = session.user_id
    team_id = session.team_id
    if data.bd_id and data.bd_id != session.user_id:
        if session.role == Role.BD:
            raise ForbiddenError("BDs can only create leads for themselves")
        bd = db.get(User, data.bd_id)
        if not bd or not bd.is_active or bd.role != Role.BD.value:
            raise ValidationFailedError("Assigned BD not found or inactive")
        bd_id = bd.id
        team_id = bd.team_id

    lead = Lead(
        lead_ref=generate_lead_ref(),
        patient_name=normalize_name(data.patient_name) or data.patient_name.strip(),
        phone_number=data.phone_number,
        city=data.city,
        insurance_name=data.insurance_name,
        bd_id=bd_id,
        team_id=team_id,
        created_by_user_id=session.user_id,
        case_stage=CaseStage.NEW_LEAD.value,
        pipeline_stage=PipelineStage.NEW.value,
    )
    db.add(lead)
    db.commit()
    db.refresh(lead)
    return lead


def get_lead(db: Session, session: UserSession, lead_id: UUID) -> Lead:
    """
    Fetch a lead the session can see.

    Raises:
        NotFoundError: no such lead
        ForbiddenError: lead belongs to someone else
    """
    lead = db.get(Lead, lead_id)
    if not lead:
        raise NotFoundError("Lead not found")
    check_lead_access(session, lead)
    return lead


def list_leads(
    db: Session,
    session: UserSession,
    pagination: PaginationParams,
    stage: CaseStage | None = None,
) -> tuple[list[Lead], int]:
    """Leads visible to the session, newest first."""
    if not has_permission(session.role, PermissionKey.LEADS_READ):
        raise ForbiddenError("Missing permission 'leads:read'")

    query = scope_lead_query(db.query(Lead), session)
    if stage:
        query = query.filter(Lead.case_stage == stage.value)
    total = query.count()
    items = (
        query.order_by(Lead.created_at.desc())
        .offset(pagination.offset)
        .limit(pagination.limit)
        .all()
    )
    return items, total


def mark_lost(
    db: Session,
    session: UserSession,
    lead_id: UUID,
    data: MarkLostRequest,
) -> Lead:
    """
    Mark an in-progress case as lost.

    Moves the sales pipeline to LOST; the case stage stays where it is, so
    no history row is written.
    """
    lead = case_stage_service.lock_lead(db, lead_id)
    case_stage_service.check_transition(session, lead, CaseAction.MARK_LOST)

    if session.role != Role.ADMIN and lead.bd_id != session.user_id:
        raise ForbiddenError("You can only mark your own leads as lost")
    if lead.pipeline_stage == PipelineStage.LOST.value:
        raise InvalidStateError("Case is already marked as lost")

    reason = data.lost_reason.value
    if data.lost_reason_detail:
        reason = f"{reason}: {data.lost_reason_detail.strip()}"

    with case_stage_service.transition_scope(db):
        lead.pipeline_stage = PipelineStage.LOST.value
        lead.lost_reason = reason
        lead.lost_at = datetime.now(timezone.utc)

    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.MARK_LOST,
            actor_id=session.user_id,
            chat_text=f"Case marked as lost. Reason: {reason}",
        ),
    )
    db.refresh(lead)
    return lead
