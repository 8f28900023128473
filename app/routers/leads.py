"""Lead routes - create, list, detail, stage history, mark lost."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_session, get_db, require_csrf_header, require_permission
from app.core.policies import POLICIES
from app.core.stage_definitions import get_stage_label
from app.core.stage_rules import allowed_actions
from app.db.enums import CaseStage
from app.db.models import Lead
from app.schemas.admission import AdmissionRead
from app.schemas.auth import UserSession
from app.schemas.common import ok
from app.schemas.kyp import KypRead, PreAuthRead
from app.schemas.lead import (
    LeadCreate,
    LeadDetail,
    LeadListResponse,
    LeadRead,
    MarkLostRequest,
    StageHistoryRead,
)
from app.services import case_stage_service, lead_service
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter()


def _lead_detail(lead: Lead, session: UserSession) -> LeadDetail:
    base = LeadRead.model_validate(lead).model_dump()
    kyp = lead.kyp_submission
    pre_auth = kyp.pre_auth if kyp else None
    admission = lead.admission_record
    return LeadDetail(
        **base,
        case_stage_label=get_stage_label(lead.case_stage),
        kyp_submission=(
            KypRead.model_validate(kyp).model_dump(mode="json", by_alias=True) if kyp else None
        ),
        pre_auth=(
            PreAuthRead.model_validate(pre_auth).model_dump(mode="json", by_alias=True)
            if pre_auth
            else None
        ),
        admission_record=(
            AdmissionRead.model_validate(admission).model_dump(mode="json", by_alias=True)
            if admission
            else None
        ),
        allowed_actions=[a.value for a in allowed_actions(lead.case_stage, session.role)],
    )


@router.post("", dependencies=[Depends(require_csrf_header)])
def create_lead(
    data: LeadCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Create a lead at NEW_LEAD."""
    lead = lead_service.create_lead(db, session, data)
    return ok(LeadRead.model_validate(lead), "Lead created successfully")


@router.get("")
def list_leads(
    stage: CaseStage | None = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Leads visible to the caller, newest first."""
    items, total = lead_service.list_leads(db, session, pagination, stage=stage)
    return ok(
        LeadListResponse(
            items=[LeadRead.model_validate(lead) for lead in items],
            total=total,
            limit=pagination.limit,
            offset=pagination.offset,
        )
    )


@router.get("/{lead_id}")
def get_lead(
    lead_id: UUID,
    session: UserSession = Depends(require_permission(POLICIES["leads"].default)),
    db: Session = Depends(get_db),
):
    """Lead detail with KYP, pre-auth, admission and the caller's next actions."""
    lead = lead_service.get_lead(db, session, lead_id)
    return ok(_lead_detail(lead, session))


@router.get("/{lead_id}/stage-history")
def get_stage_history(
    lead_id: UUID,
    session: UserSession = Depends(require_permission(POLICIES["leads"].default)),
    db: Session = Depends(get_db),
):
    """Stage changes for a lead, newest first."""
    lead = lead_service.get_lead(db, session, lead_id)
    rows = case_stage_service.get_stage_history(db, lead.id)
    return ok(
        [
            StageHistoryRead(
                id=row.id,
                from_stage=row.from_stage,
                to_stage=row.to_stage,
                note=row.note,
                changed_at=row.changed_at,
                changed_by_id=row.changed_by_id,
                changed_by_name=row.changed_by.display_name if row.changed_by else None,
            )
            for row in rows
        ]
    )


@router.post("/{lead_id}/mark-lost", dependencies=[Depends(require_csrf_header)])
def mark_lost(
    lead_id: UUID,
    data: MarkLostRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Mark an in-progress case as lost (pipeline only)."""
    lead = lead_service.mark_lost(db, session, lead_id, data)
    return ok(LeadRead.model_validate(lead), "Case marked as lost")
