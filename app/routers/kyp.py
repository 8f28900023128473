"""KYP routes - BD submission, insurance details, follow-up."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_current_session, get_db, require_csrf_header
from app.schemas.auth import UserSession
from app.schemas.common import ok
from app.schemas.kyp import (
    FollowUpRead,
    FollowUpRequest,
    InsuranceDetailsRequest,
    KypRead,
    KypSubmitRequest,
    PreAuthRead,
)
from app.services import kyp_service

router = APIRouter(dependencies=[Depends(require_csrf_header)])


@router.post("/submit")
def submit_kyp(
    data: KypSubmitRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Submit KYP (basic or detailed)."""
    kyp = kyp_service.submit_kyp(db, session, data)
    return ok(KypRead.model_validate(kyp), "KYP submitted successfully")


@router.post("/pre-auth")
def update_insurance_details(
    data: InsuranceDetailsRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Insurance-side details; the effect depends on the lead's current stage."""
    pre_auth = kyp_service.update_insurance_details(db, session, data)
    return ok(PreAuthRead.model_validate(pre_auth), "Insurance details saved successfully")


@router.post("/follow-up")
def add_follow_up(
    data: FollowUpRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    follow_up = kyp_service.add_follow_up(db, session, data)
    return ok(FollowUpRead.model_validate(follow_up), "Follow-up details saved successfully")
