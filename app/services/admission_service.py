"""Admission service - initiate admission, IPD status marks, discharge."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import InvalidStateError, ValidationFailedError
from app.db.enums import CaseAction, IpdStatus, NotificationType, PipelineStage
from app.db.models import AdmissionRecord, Lead
from app.schemas.admission import DischargeRequest, InitiateAdmissionRequest, IpdMarkRequest
from app.schemas.auth import UserSession
from app.services import case_events, case_stage_service

logger = logging.getLogger(__name__)


IPD_NOTIFICATION_TITLES = {
    IpdStatus.ADMITTED_DONE: "Surgery Confirmed",
    IpdStatus.POSTPONED: "Surgery Postponed",
    IpdStatus.CANCELLED: "Case Cancelled",
    IpdStatus.DISCHARGED: "Patient Discharged",
}


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def initiate_admission(
    db: Session,
    session: UserSession,
    lead_id: UUID,
    data: InitiateAdmissionRequest,
) -> AdmissionRecord:
    """
    Record the admission plan after pre-auth: PREAUTH_COMPLETE -> INITIATED.

    Raises:
        InvalidStageTransition: pre-auth not complete
        InvalidStateError: admission already initiated
    """
    lead = case_stage_service.lock_lead(db, lead_id)
    rule = case_stage_service.check_actor(session, lead, CaseAction.INITIATE_ADMISSION)
    case_stage_service.check_stage(lead, rule)
    if lead.admission_record is not None:
        raise InvalidStateError("Admission already initiated for this case")

    hospital = data.admitting_hospital.strip()
    with case_stage_service.transition_scope(db):
        admission = AdmissionRecord(
            lead_id=lead.id,
            admission_date=data.admission_date,
            admission_time=data.admission_time.strip(),
            admitting_hospital=hospital,
            hospital_address=data.hospital_address.strip(),
            google_map_location=_clean(data.google_map_location),
            surgery_date=data.surgery_date,
            surgery_time=data.surgery_time.strip(),
            tpa=data.tpa.strip(),
            instrument=_clean(data.instrument),
            implant_consumables=_clean(data.implant_consumables),
            notes=_clean(data.notes),
            initiated_by_id=session.user_id,
        )
        db.add(admission)
        lead.hospital_name = hospital
        lead.ipd_admission_date = data.admission_date
        lead.pipeline_stage = PipelineStage.ADMISSION.value
        case_stage_service.apply_action_stage(
            db,
            lead,
            CaseAction.INITIATE_ADMISSION,
            session.user_id,
            note=f"Patient admitted at {hospital}",
        )

    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.INITIATE_ADMISSION,
            actor_id=session.user_id,
            chat_text=f"BD marked patient admitted at {hospital}.",
            notification_type=NotificationType.INITIATED,
            title="Patient Admitted",
            body=f"{lead.patient_name} ({lead.lead_ref}) has been admitted at {hospital}",
            entity_type="admission",
            entity_id=admission.id,
            recipient_roles=case_events.insurance_roles(),
        ),
    )
    db.refresh(admission)
    return admission


def _validate_ipd_fields(data: IpdMarkRequest) -> None:
    reason = _clean(data.reason)
    if data.status == IpdStatus.POSTPONED:
        if not reason:
            raise ValidationFailedError("Reason is required for postponed status")
        if not data.new_surgery_date:
            raise ValidationFailedError("New surgery date is required for postponed status")
    elif data.status == IpdStatus.CANCELLED:
        if not reason:
            raise ValidationFailedError("Reason is required for cancelled status")
    elif data.status == IpdStatus.DISCHARGED:
        if not data.discharge_date:
            raise ValidationFailedError("Discharge date is required for discharged status")


def _ipd_chat_text(data: IpdMarkRequest) -> str:
    reason = _clean(data.reason) or "No reason provided"
    if data.status == IpdStatus.POSTPONED:
        detail = f"Surgery postponed - {reason}. New surgery date: {data.new_surgery_date}"
    elif data.status == IpdStatus.CANCELLED:
        detail = f"Case cancelled - {reason}"
    elif data.status == IpdStatus.DISCHARGED:
        detail = f"Patient discharged on {data.discharge_date}"
    else:
        detail = "Surgery confirmed done."
    return f"BD marked IPD status: {detail}"


def mark_ipd_status(
    db: Session,
    session: UserSession,
    lead_id: UUID,
    data: IpdMarkRequest,
) -> AdmissionRecord:
    """
    Record the IPD outcome on the admission record.

    Only DISCHARGED moves the case (INITIATED -> DISCHARGED); the other
    outcomes are sub-status updates and leave no history row.
    """
    lead = case_stage_service.lock_lead(db, lead_id)
    rule = case_stage_service.check_actor(session, lead, CaseAction.MARK_IPD)
    case_stage_service.check_stage(lead, rule)

    admission = lead.admission_record
    if admission is None:
        raise ValidationFailedError("Admission record not found")
    _validate_ipd_fields(data)

    reason = _clean(data.reason)
    note = f"IPD status: {data.status.value}"
    if reason:
        note += f" - {reason}"

    with case_stage_service.transition_scope(db):
        admission.ipd_status = data.status.value
        admission.ipd_status_reason = reason
        admission.ipd_status_notes = _clean(data.notes)
        admission.ipd_status_updated_at = datetime.now(timezone.utc)
        admission.ipd_status_updated_by_id = session.user_id
        if data.status == IpdStatus.POSTPONED:
            admission.new_surgery_date = data.new_surgery_date
        if data.status == IpdStatus.DISCHARGED:
            admission.ipd_discharge_date = data.discharge_date
            lead.ipd_discharge_date = data.discharge_date
        case_stage_service.apply_action_stage(
            db,
            lead,
            CaseAction.MARK_IPD,
            session.user_id,
            note=note,
            outcome=data.status.value,
        )

    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.MARK_IPD,
            actor_id=session.user_id,
            chat_text=_ipd_chat_text(data),
            notification_type=NotificationType.IPD_MARKED,
            title=IPD_NOTIFICATION_TITLES[data.status],
            body=f"IPD status updated for {lead.patient_name} ({lead.lead_ref}): {data.status.value}",
            entity_type="admission",
            entity_id=admission.id,
            recipient_roles=case_events.insurance_roles(),
        ),
    )
    db.refresh(admission)
    return admission


def mark_discharged(
    db: Session,
    session: UserSession,
    lead_id: UUID,
    data: DischargeRequest | None = None,
) -> Lead:
    """Direct discharge: INITIATED (or legacy ADMITTED) -> DISCHARGED."""
    data = data or DischargeRequest()
    lead = case_stage_service.lock_lead(db, lead_id)
    case_stage_service.check_transition(session, lead, CaseAction.MARK_DISCHARGED)

    with case_stage_service.transition_scope(db):
        if data.discharge_date:
            lead.ipd_discharge_date = data.discharge_date
            if lead.admission_record is not None:
                lead.admission_record.ipd_discharge_date = data.discharge_date
        case_stage_service.apply_action_stage(
            db,
            lead,
            CaseAction.MARK_DISCHARGED,
            session.user_id,
            note=_clean(data.notes) or "Patient discharged",
        )

    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.MARK_DISCHARGED,
            actor_id=session.user_id,
            chat_text="BD marked patient discharged.",
            notification_type=NotificationType.DISCHARGED,
            title="Patient Discharged",
            body=f"Patient {lead.patient_name} ({lead.lead_ref}) has been discharged",
            recipient_roles=case_events.insurance_roles(),
        ),
    )
    db.refresh(lead)
    return lead
