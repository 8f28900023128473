"""Lead workflow routes - raise pre-auth, initiate admission, IPD mark, discharge."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_current_session, get_db, require_csrf_header
from app.schemas.admission import (
    AdmissionRead,
    DischargeRequest,
    InitiateAdmissionRequest,
    IpdMarkRequest,
)
from app.schemas.auth import UserSession
from app.schemas.common import ok
from app.schemas.kyp import PreAuthRead
from app.schemas.lead import LeadRead
from app.schemas.pre_auth import RaisePreAuthRequest
from app.services import admission_service, pre_auth_service

router = APIRouter(dependencies=[Depends(require_csrf_header)])


@router.post("/{lead_id}/raise-preauth")
def raise_pre_auth(
    lead_id: UUID,
    data: RaisePreAuthRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """BD raises pre-auth for a suggested (or new) hospital."""
    pre_auth = pre_auth_service.raise_pre_auth(db, session, lead_id, data)
    return ok(PreAuthRead.model_validate(pre_auth), "Pre-auth raised successfully")


@router.post("/{lead_id}/initiate")
def initiate_admission(
    lead_id: UUID,
    data: InitiateAdmissionRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    admission = admission_service.initiate_admission(db, session, lead_id, data)
    return ok(AdmissionRead.model_validate(admission), "Admission initiated successfully")


@router.post("/{lead_id}/ipd-mark")
def mark_ipd_status(
    lead_id: UUID,
    data: IpdMarkRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Record the IPD outcome; only DISCHARGED moves the case stage."""
    admission = admission_service.mark_ipd_status(db, session, lead_id, data)
    return ok(
        AdmissionRead.model_validate(admission),
        f"IPD status marked as {data.status.value} successfully",
    )


@router.post("/{lead_id}/discharge")
def mark_discharged(
    lead_id: UUID,
    data: DischargeRequest | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    lead = admission_service.mark_discharged(db, session, lead_id, data)
    return ok(LeadRead.model_validate(lead), "Discharge marked successfully")
