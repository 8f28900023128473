"""Pre-auth decision routes (insurance side)."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_current_session, get_db, require_csrf_header
from app.schemas.auth import UserSession
from app.schemas.common import ok
from app.schemas.kyp import PreAuthRead
from app.schemas.pre_auth import PreAuthDecisionRequest, PreAuthRejectRequest
from app.services import pre_auth_service

router = APIRouter(dependencies=[Depends(require_csrf_header)])


@router.post("/{kyp_submission_id}/approve")
def approve_pre_auth(
    kyp_submission_id: UUID,
    data: PreAuthDecisionRequest | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Approve a raised pre-auth (approvalStatus REJECTED delegates to reject)."""
    data = data or PreAuthDecisionRequest()
    pre_auth = pre_auth_service.decide_pre_auth(db, session, kyp_submission_id, data)
    message = (
        "Pre-authorization rejected"
        if data.approval_status == "REJECTED"
        else "Pre-authorization approved successfully"
    )
    return ok(PreAuthRead.model_validate(pre_auth), message)


@router.post("/{kyp_submission_id}/reject")
def reject_pre_auth(
    kyp_submission_id: UUID,
    data: PreAuthRejectRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    pre_auth = pre_auth_service.reject_pre_auth(db, session, kyp_submission_id, data.reason)
    return ok(PreAuthRead.model_validate(pre_auth), "Pre-authorization rejected")


@router.post("/{kyp_submission_id}/mark-new-hospital-raised")
def mark_new_hospital_raised(
    kyp_submission_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    pre_auth = pre_auth_service.mark_new_hospital_raised(db, session, kyp_submission_id)
    return ok(PreAuthRead.model_validate(pre_auth), "New hospital pre-auth marked as raised")
