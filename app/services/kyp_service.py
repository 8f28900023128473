"""KYP service - BD submissions, insurance details, and follow-up."""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.core.errors import InvalidStateError, NotFoundError, ValidationFailedError
from app.db.enums import (
    CaseAction,
    CaseStage,
    KypStatus,
    KypSubmissionType,
    NotificationType,
    PipelineStage,
)
from app.db.models import (
    HospitalSuggestion,
    KYPSubmission,
    Lead,
    PatientFollowUp,
    PreAuthorization,
)
from app.schemas.auth import UserSession
from app.schemas.kyp import FollowUpRequest, InsuranceDetailsRequest, KypSubmitRequest
from app.services import case_events, case_stage_service, pre_auth_service

logger = logging.getLogger(__name__)


_BASIC_FIELDS = (
    "aadhar",
    "pan",
    "insurance_card",
    "location",
    "area",
    "remark",
    "aadhar_file_url",
    "pan_file_url",
    "insurance_card_file_url",
    "insurance_card_files",
    "other_files",
)


# =============================================================================
# BD submission
# =============================================================================


def submit_kyp(db: Session, session: UserSession, data: KypSubmitRequest) -> KYPSubmission:
    """Dispatch on submission type (basic / detailed)."""
    if data.type == KypSubmissionType.DETAILED:
        return submit_kyp_detailed(db, session, data)
    return submit_kyp_basic(db, session, data)


def submit_kyp_basic(db: Session, session: UserSession, data: KypSubmitRequest) -> KYPSubmission:
    """
    Create the KYP submission for a new lead: NEW_LEAD -> KYP_BASIC_PENDING.

    Raises:
        ValidationFailedError: insurance card, location or area missing
        InvalidStateError: a KYP submission already exists
    """
    lead = case_stage_service.lock_lead(db, data.lead_id)
    rule = case_stage_service.check_actor(session, lead, CaseAction.SUBMIT_KYP_BASIC)

    has_card = bool(
        (data.insurance_card and data.insurance_card.strip())
        or data.insurance_card_file_url
        or data.insurance_card_files
    )
    if not has_card or not (data.location and data.location.strip()) or not (
        data.area and data.area.strip()
    ):
        raise ValidationFailedError(
            "Insurance card, location and area are required for KYP (Basic)"
        )
    if lead.kyp_submission is not None:
        raise InvalidStateError("KYP submission already exists for this lead")

    case_stage_service.check_stage(lead, rule)

    with case_stage_service.transition_scope(db):
        kyp = KYPSubmission(
            lead_id=lead.id,
            submitted_by_id=session.user_id,
            status=KypStatus.PENDING.value,
            **{name: getattr(data, name) for name in _BASIC_FIELDS},
        )
        db.add(kyp)
        _copy_patient_fields(lead, data)
        lead.pipeline_stage = PipelineStage.KYP.value
        case_stage_service.apply_action_stage(
            db, lead, CaseAction.SUBMIT_KYP_BASIC, session.user_id, note="KYP (Basic) submitted"
        )

    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.SUBMIT_KYP_BASIC,
            actor_id=session.user_id,
            chat_text="BD submitted KYP (Basic). Insurance can now suggest hospitals.",
            notification_type=NotificationType.KYP_SUBMITTED,
            title="New KYP Submission",
            body=f"{lead.patient_name} ({lead.lead_ref}): KYP (Basic) submitted",
            entity_type="kyp",
            entity_id=kyp.id,
            recipient_roles=case_events.insurance_roles(),
        ),
    )
    db.refresh(kyp)
    return kyp


def submit_kyp_detailed(
    db: Session, session: UserSession, data: KypSubmitRequest
) -> KYPSubmission:
    """Add disease details: KYP_BASIC_COMPLETE -> KYP_DETAILED_COMPLETE."""
    lead = case_stage_service.lock_lead(db, data.lead_id)
    rule = case_stage_service.check_actor(session, lead, CaseAction.SUBMIT_KYP_DETAILED)

    if not data.disease or not data.disease.strip():
        raise ValidationFailedError("Disease is required for KYP (Detailed)")
    kyp = lead.kyp_submission
    if kyp is None:
        raise ValidationFailedError("Submit KYP (Basic) first.")

    case_stage_service.check_stage(lead, rule)

    with case_stage_service.transition_scope(db):
        kyp.disease = data.disease.strip()
        kyp.disease_photos = data.disease_photos
        kyp.patient_consent = data.patient_consent
        kyp.detailed_submitted_at = datetime.now(timezone.utc)
        for name in _BASIC_FIELDS:
            value = getattr(data, name)
            if value:
                setattr(kyp, name, value)
        _copy_patient_fields(lead, data)
        case_stage_service.apply_action_stage(
            db,
            lead,
            CaseAction.SUBMIT_KYP_DETAILED,
            session.user_id,
            note="KYP (Detailed) submitted",
        )

    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.SUBMIT_KYP_DETAILED,
            actor_id=session.user_id,
            chat_text="BD submitted KYP (Detailed). Pre-auth can now be raised.",
        ),
    )
    db.refresh(kyp)
    return kyp


def _copy_patient_fields(lead: Lead, data: KypSubmitRequest) -> None:
    for name in ("patient_name", "phone_number", "city", "insurance_name"):
        value = getattr(data, name)
        if value and value.strip():
            setattr(lead, name, value.strip())


# =============================================================================
# Insurance details
# =============================================================================


def update_insurance_details(
    db: Session,
    session: UserSession,
    data: InsuranceDetailsRequest,
) -> PreAuthorization:
    """
    Insurance-side write for a lead; what it does depends on the case stage.

    - KYP_BASIC_PENDING: suggest hospitals -> KYP_BASIC_COMPLETE
    - KYP_PENDING (legacy): add KYP details -> KYP_COMPLETE
    - KYP_COMPLETE / KYP_DETAILED_*: edit details, stage unchanged
    - PREAUTH_RAISED: edit details and approve -> PREAUTH_COMPLETE
    """
    lead = case_stage_service.lock_lead(db, data.lead_id)
    kyp = lead.kyp_submission
    stage = lead.case_stage

    if stage == CaseStage.KYP_BASIC_PENDING:
        case_stage_service.check_transition(session, lead, CaseAction.SUGGEST_HOSPITALS)
        return _suggest_hospitals(db, session, lead, _require_kyp(kyp), data)

    if stage == CaseStage.KYP_PENDING:
        case_stage_service.check_transition(session, lead, CaseAction.ADD_KYP_DETAILS)
        return _add_legacy_details(db, session, lead, _require_kyp(kyp), data)

    if stage == CaseStage.PREAUTH_RAISED:
        rule = case_stage_service.check_actor(session, lead, CaseAction.APPROVE_PREAUTH)
        kyp = _require_kyp(kyp)
        pre_auth = kyp.pre_auth
        if pre_auth is None:
            raise ValidationFailedError("Pre-authorization data not found")
        return pre_auth_service.approve_locked(
            db,
            session,
            lead,
            kyp,
            pre_auth,
            approved_amount=data.approved_amount,
            before_commit=lambda: _apply_insurance_fields(pre_auth, data),
            rule=rule,
        )

    rule = case_stage_service.check_actor(session, lead, CaseAction.UPDATE_KYP_DETAILS)
    case_stage_service.check_stage(lead, rule)
    kyp = _require_kyp(kyp)
    if kyp.pre_auth is not None and kyp.pre_auth.pre_auth_raised_at is not None:
        raise InvalidStateError("Pre-auth already raised for this case")

    with case_stage_service.transition_scope(db):
        pre_auth = _get_or_create_pre_auth(db, kyp)
        _apply_insurance_fields(pre_auth, data)
        if data.hospitals:
            _replace_suggestions(pre_auth, data)
    db.refresh(pre_auth)
    return pre_auth


def _require_kyp(kyp: KYPSubmission | None) -> KYPSubmission:
    if kyp is None:
        raise NotFoundError("KYP submission not found")
    return kyp


def _suggest_hospitals(
    db: Session,
    session: UserSession,
    lead: Lead,
    kyp: KYPSubmission,
    data: InsuranceDetailsRequest,
) -> PreAuthorization:
    if not data.sum_insured or not data.hospitals:
        raise ValidationFailedError("Sum insured and at least one hospital are required")

    count = len(data.hospitals)
    names = [h.hospital_name.strip() for h in data.hospitals]
    with case_stage_service.transition_scope(db):
        pre_auth = _get_or_create_pre_auth(db, kyp)
        _apply_insurance_fields(pre_auth, data)
        _replace_suggestions(pre_auth, data)
        kyp.status = KypStatus.KYP_DETAILS_ADDED.value
        lead.pipeline_stage = PipelineStage.INSURANCE.value
        case_stage_service.apply_action_stage(
            db,
            lead,
            CaseAction.SUGGEST_HOSPITALS,
            session.user_id,
            note=f"Insurance suggested {count} hospital(s)",
        )

    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.SUGGEST_HOSPITALS,
            actor_id=session.user_id,
            chat_text=f"Insurance suggested {count} hospital(s): {', '.join(names)}.",
            notification_type=NotificationType.KYP_DETAILS_ADDED,
            title="Hospital suggestions added",
            body=f"{lead.patient_name} ({lead.lead_ref}): {count} hospital(s) suggested",
            recipient_user_ids=[kyp.submitted_by_id] if kyp.submitted_by_id else [],
        ),
    )
    db.refresh(pre_auth)
    return pre_auth


def _add_legacy_details(
    db: Session,
    session: UserSession,
    lead: Lead,
    kyp: KYPSubmission,
    data: InsuranceDetailsRequest,
) -> PreAuthorization:
    with case_stage_service.transition_scope(db):
        pre_auth = _get_or_create_pre_auth(db, kyp)
        _apply_insurance_fields(pre_auth, data)
        if data.hospitals:
            _replace_suggestions(pre_auth, data)
        kyp.status = KypStatus.KYP_DETAILS_ADDED.value
        case_stage_service.apply_action_stage(
            db,
            lead,
            CaseAction.ADD_KYP_DETAILS,
            session.user_id,
            note="KYP details added by Insurance",
        )

    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.ADD_KYP_DETAILS,
            actor_id=session.user_id,
            chat_text="Insurance added KYP details. Pre-auth can now be raised.",
            notification_type=NotificationType.KYP_DETAILS_ADDED,
            title="KYP Complete - Ready for Pre-Auth",
            body=f"{lead.patient_name} ({lead.lead_ref}): insurance details added",
            recipient_user_ids=[kyp.submitted_by_id] if kyp.submitted_by_id else [],
        ),
    )
    db.refresh(pre_auth)
    return pre_auth


def _get_or_create_pre_auth(db: Session, kyp: KYPSubmission) -> PreAuthorization:
    pre_auth = kyp.pre_auth
    if pre_auth is None:
        pre_auth = PreAuthorization(kyp_submission_id=kyp.id)
        db.add(pre_auth)
        kyp.pre_auth = pre_auth
    return pre_auth


def _apply_insurance_fields(pre_auth: PreAuthorization, data: InsuranceDetailsRequest) -> None:
    """Copy provided (non-null) insurance fields onto the pre-auth."""
    for name in (
        "sum_insured",
        "room_rent",
        "capping",
        "copay",
        "icu",
        "insurance",
        "tpa",
        "hospital_name_suggestion",
        "hospital_suggestions",
    ):
        value = getattr(data, name)
        if value is not None:
            setattr(pre_auth, name, value)
    if data.room_types is not None:
        pre_auth.room_types = [
            {"name": room.name.strip(), "rent": room.rent} for room in data.room_types
        ]


def _replace_suggestions(pre_auth: PreAuthorization, data: InsuranceDetailsRequest) -> None:
    """Replace suggestion rows; the JSON name list is kept in sync for older readers."""
    pre_auth.suggested_hospitals = [
        HospitalSuggestion(
            hospital_name=h.hospital_name.strip(),
            tentative_bill=h.tentative_bill,
            room_rent_general=h.room_rent_general,
            room_rent_private=h.room_rent_private,
            room_rent_icu=h.room_rent_icu,
            notes=h.notes,
        )
        for h in data.hospitals or []
    ]
    pre_auth.hospital_suggestions = [h.hospital_name.strip() for h in data.hospitals or []]


# =============================================================================
# Follow-up
# =============================================================================


def add_follow_up(db: Session, session: UserSession, data: FollowUpRequest) -> PatientFollowUp:
    """
    Record post pre-auth follow-up details. Sub-status only (KYP status ->
    FOLLOW_UP_COMPLETE); the case stage is unchanged.
    """
    lead = case_stage_service.lock_lead(db, data.lead_id)
    rule = case_stage_service.check_actor(session, lead, CaseAction.ADD_FOLLOW_UP)
    kyp = _require_kyp(lead.kyp_submission)
    if kyp.status not in (
        KypStatus.PRE_AUTH_COMPLETE.value,
        KypStatus.FOLLOW_UP_COMPLETE.value,
    ):
        raise ValidationFailedError(
            "Pre-authorization must be complete before adding follow-up details"
        )
    case_stage_service.check_stage(lead, rule)

    with case_stage_service.transition_scope(db):
        follow_up = kyp.follow_up
        if follow_up is None:
            follow_up = PatientFollowUp(kyp_submission_id=kyp.id)
            db.add(follow_up)
            kyp.follow_up = follow_up
        for name in (
            "admission_date",
            "surgery_date",
            "prescription",
            "report",
            "hospital_name",
            "doctor_name",
            "prescription_file_url",
            "report_file_url",
        ):
            value = getattr(data, name)
            if value is not None:
                setattr(follow_up, name, value)
        follow_up.updated_by_id = session.user_id
        kyp.status = KypStatus.FOLLOW_UP_COMPLETE.value

    recipients = [kyp.submitted_by_id] if kyp.submitted_by_id else []
    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.ADD_FOLLOW_UP,
            actor_id=session.user_id,
            notification_type=NotificationType.FOLLOW_UP_COMPLETE,
            title="Follow-up details added",
            body=f"{lead.patient_name} ({lead.lead_ref}): follow-up details updated",
            entity_type="kyp",
            entity_id=kyp.id,
            recipient_roles=case_events.insurance_roles(),
            recipient_user_ids=recipients,
        ),
    )
    db.refresh(follow_up)
    return follow_up

