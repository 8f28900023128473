"""Pre-authorization service - BD raises, insurance approves or rejects."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import InvalidStateError, NotFoundError, ValidationFailedError
from app.core.stage_rules import StageTransition
from app.db.enums import (
    CaseAction,
    KypStatus,
    NotificationType,
    PipelineStage,
    PreAuthStatus,
)
from app.db.models import KYPSubmission, Lead, PreAuthorization
from app.schemas.auth import UserSession
from app.schemas.pre_auth import PreAuthDecisionRequest, RaisePreAuthRequest
from app.services import case_events, case_stage_service
from app.utils.normalization import normalize_hospital_name

logger = logging.getLogger(__name__)


def suggested_hospital_names(pre_auth: PreAuthorization) -> list[str]:
    """
    Hospitals the BD may pick from.

    Suggestion rows win; older records only carry the JSON name list and the
    single hospital_name_suggestion field.
    """
    if pre_auth.suggested_hospitals:
        return [h.hospital_name for h in pre_auth.suggested_hospitals]
    names = list(pre_auth.hospital_suggestions or [])
    if pre_auth.hospital_name_suggestion:
        names.append(pre_auth.hospital_name_suggestion)
    return names


def suggested_room_type_names(pre_auth: PreAuthorization) -> list[str]:
    return [
        room["name"]
        for room in (pre_auth.room_types or [])
        if isinstance(room, dict) and room.get("name")
    ]


# =============================================================================
# Raise (BD)
# =============================================================================


def raise_pre_auth(
    db: Session,
    session: UserSession,
    lead_id: UUID,
    data: RaisePreAuthRequest,
) -> PreAuthorization:
    """
    Raise pre-auth for a hospital Insurance suggested (or a new hospital).

    Raises:
        ValidationFailedError: no KYP / no suggestions yet / hospital or room not suggested
        InvalidStateError: pre-auth already raised
        InvalidStageTransition: KYP (Detailed) not complete
    """
    lead = case_stage_service.lock_lead(db, lead_id)
    rule = case_stage_service.check_actor(session, lead, CaseAction.RAISE_PREAUTH)

    kyp = lead.kyp_submission
    if not kyp:
        raise ValidationFailedError("KYP submission not found. Please submit KYP first.")
    pre_auth = kyp.pre_auth
    if not pre_auth:
        raise ValidationFailedError(
            "Insurance must suggest hospitals before BD can raise pre-auth."
        )
    if pre_auth.pre_auth_raised_at is not None:
        raise InvalidStateError("Pre-auth already raised for this case")

    case_stage_service.check_stage(lead, rule)

    hospital_name = data.requested_hospital_name.strip()
    room_type = data.requested_room_type.strip() if data.requested_room_type else None
    if not data.is_new_hospital_request:
        # Legacy KYP_COMPLETE cases may carry no suggestions at all
        allowed = {normalize_hospital_name(n) for n in suggested_hospital_names(pre_auth)}
        if allowed and normalize_hospital_name(hospital_name) not in allowed:
            raise ValidationFailedError(
                "Selected hospital must be one of Insurance's suggested hospitals."
            )
        if not room_type:
            raise ValidationFailedError(
                "Room type is required when selecting a suggested hospital."
            )
        room_names = suggested_room_type_names(pre_auth)
        if room_names and room_type.casefold() not in {r.casefold() for r in room_names}:
            raise ValidationFailedError(
                "Selected room type must be one of Insurance's suggested room types."
            )

    note = f"Pre-auth raised by BD. Hospital: {hospital_name}"
    if data.is_new_hospital_request:
        note += " (new hospital request)"

    with case_stage_service.transition_scope(db):
        now = datetime.now(timezone.utc)
        pre_auth.requested_hospital_name = hospital_name
        pre_auth.requested_room_type = room_type
        pre_auth.disease_description = data.disease_description
        pre_auth.disease_images = data.disease_images
        pre_auth.expected_admission_date = data.expected_admission_date
        pre_auth.expected_surgery_date = data.expected_surgery_date
        pre_auth.is_new_hospital_request = data.is_new_hospital_request
        pre_auth.pre_auth_raised_at = now
        pre_auth.pre_auth_raised_by_id = session.user_id
        lead.pipeline_stage = PipelineStage.INSURANCE.value
        case_stage_service.apply_action_stage(
            db, lead, CaseAction.RAISE_PREAUTH, session.user_id, note=note
        )

    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.RAISE_PREAUTH,
            actor_id=session.user_id,
            chat_text=f"BD raised pre-auth for {hospital_name}.",
            notification_type=NotificationType.PREAUTH_RAISED,
            title="Pre-auth Raised",
            body=f"{lead.patient_name} ({lead.lead_ref}): pre-auth raised for {hospital_name}",
            recipient_roles=case_events.insurance_roles(),
        ),
    )
    db.refresh(pre_auth)
    return pre_auth


# =============================================================================
# Decide (Insurance)
# =============================================================================


def _load_for_decision(
    db: Session,
    session: UserSession,
    kyp_submission_id: UUID,
    action: CaseAction,
) -> tuple[KYPSubmission, PreAuthorization, Lead, StageTransition]:
    """Lock the lead behind a KYP submission and run the actor half of the guard."""
    kyp = db.get(KYPSubmission, kyp_submission_id)
    if not kyp:
        raise NotFoundError("KYP submission not found")
    lead = case_stage_service.lock_lead(db, kyp.lead_id)
    rule = case_stage_service.check_actor(session, lead, action)
    pre_auth = kyp.pre_auth
    if not pre_auth:
        raise ValidationFailedError("Pre-authorization data not found")
    return kyp, pre_auth, lead, rule


def _check_undecided(pre_auth: PreAuthorization) -> None:
    if pre_auth.approval_status == PreAuthStatus.APPROVED.value:
        raise InvalidStateError("Pre-authorization has already been approved")
    if pre_auth.approval_status == PreAuthStatus.REJECTED.value:
        raise InvalidStateError("Pre-authorization has already been rejected")


def decide_pre_auth(
    db: Session,
    session: UserSession,
    kyp_submission_id: UUID,
    data: PreAuthDecisionRequest,
) -> PreAuthorization:
    """Approve, or reject when approval_status is REJECTED."""
    if data.approval_status == PreAuthStatus.REJECTED.value:
        return reject_pre_auth(db, session, kyp_submission_id, data.reason)
    return approve_pre_auth(db, session, kyp_submission_id, data.approved_amount)


def approve_pre_auth(
    db: Session,
    session: UserSession,
    kyp_submission_id: UUID,
    approved_amount: float | None = None,
) -> PreAuthorization:
    """
    Approve a raised pre-auth: PREAUTH_RAISED -> PREAUTH_COMPLETE.

    Raises:
        NotFoundError: unknown KYP submission
        ForbiddenError: role or lead access
        ValidationFailedError: no pre-auth record
        InvalidStateError: already approved or rejected
        InvalidStageTransition: pre-auth not raised
    """
    kyp, pre_auth, lead, rule = _load_for_decision(
        db, session, kyp_submission_id, CaseAction.APPROVE_PREAUTH
    )
    return approve_locked(db, session, lead, kyp, pre_auth, approved_amount, rule=rule)


def approve_locked(
    db: Session,
    session: UserSession,
    lead: Lead,
    kyp: KYPSubmission,
    pre_auth: PreAuthorization,
    approved_amount: float | None = None,
    before_commit: Callable[[], None] | None = None,
    rule: StageTransition | None = None,
) -> PreAuthorization:
    """
    Approval on an already-locked lead. before_commit runs inside the same transaction.

    Callers that already ran the actor check pass its rule.
    """
    if rule is None:
        rule = case_stage_service.check_actor(session, lead, CaseAction.APPROVE_PREAUTH)
    _check_undecided(pre_auth)
    case_stage_service.check_stage(lead, rule)

    with case_stage_service.transition_scope(db):
        if before_commit:
            before_commit()
        now = datetime.now(timezone.utc)
        pre_auth.approval_status = PreAuthStatus.APPROVED.value
        if approved_amount is not None:
            pre_auth.approved_amount = Decimal(str(approved_amount))
        pre_auth.handled_by_id = session.user_id
        pre_auth.handled_at = now
        pre_auth.approved_at = now
        kyp.status = KypStatus.PRE_AUTH_COMPLETE.value
        case_stage_service.apply_action_stage(
            db,
            lead,
            CaseAction.APPROVE_PREAUTH,
            session.user_id,
            note="Pre-authorization approved by Insurance",
        )

    amount_text = f" Approved amount: {pre_auth.approved_amount}." if approved_amount is not None else ""
    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.APPROVE_PREAUTH,
            actor_id=session.user_id,
            chat_text=f"Insurance approved pre-auth.{amount_text}",
            notification_type=NotificationType.PRE_AUTH_COMPLETE,
            title="Pre-Auth Approved",
            body=f"{lead.patient_name} ({lead.lead_ref}): pre-authorization approved.{amount_text}",
            recipient_user_ids=[lead.bd_id],
        ),
    )
    db.refresh(pre_auth)
    return pre_auth


def reject_pre_auth(
    db: Session,
    session: UserSession,
    kyp_submission_id: UUID,
    reason: str | None,
) -> PreAuthorization:
    """
    Reject a raised pre-auth. Sub-status only: the case stays at PREAUTH_RAISED
    and no history row is written.
    """
    kyp, pre_auth, lead, rule = _load_for_decision(
        db, session, kyp_submission_id, CaseAction.REJECT_PREAUTH
    )
    _check_undecided(pre_auth)
    case_stage_service.check_stage(lead, rule)

    reason = (reason or "").strip()
    if not reason:
        raise ValidationFailedError("Rejection reason is required")

    with case_stage_service.transition_scope(db):
        now = datetime.now(timezone.utc)
        pre_auth.approval_status = PreAuthStatus.REJECTED.value
        pre_auth.rejection_reason = reason
        pre_auth.handled_by_id = session.user_id
        pre_auth.handled_at = now
        pre_auth.rejected_at = now

    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.REJECT_PREAUTH,
            actor_id=session.user_id,
            notification_type=NotificationType.PRE_AUTH_REJECTED,
            title="Pre-Auth Rejected",
            body=f"{lead.patient_name} ({lead.lead_ref}): {reason}",
            recipient_user_ids=[lead.bd_id],
        ),
    )
    db.refresh(pre_auth)
    return pre_auth


def mark_new_hospital_raised(
    db: Session,
    session: UserSession,
    kyp_submission_id: UUID,
) -> PreAuthorization:
    """
    Flag that Insurance raised the pre-auth with a hospital outside the
    suggestions. Repeating the call is a no-op.
    """
    kyp = db.get(KYPSubmission, kyp_submission_id)
    if not kyp:
        raise NotFoundError("KYP submission not found")
    lead = case_stage_service.lock_lead(db, kyp.lead_id)
    rule = case_stage_service.check_actor(session, lead, CaseAction.MARK_NEW_HOSPITAL_RAISED)
    pre_auth = kyp.pre_auth
    if not pre_auth:
        raise NotFoundError("Pre-authorization not found")

    if not pre_auth.is_new_hospital_request:
        raise ValidationFailedError("This pre-auth is not a new hospital request")
    if pre_auth.new_hospital_pre_auth_raised:
        return pre_auth

    case_stage_service.check_stage(lead, rule)

    with case_stage_service.transition_scope(db):
        pre_auth.new_hospital_pre_auth_raised = True

    case_events.dispatch(
        db,
        case_events.CaseEvent(
            lead=lead,
            action=CaseAction.MARK_NEW_HOSPITAL_RAISED,
            actor_id=session.user_id,
            chat_text=(
                f"Insurance raised pre-auth with new hospital "
                f"{pre_auth.requested_hospital_name}."
            ),
        ),
    )
    db.refresh(pre_auth)
    return pre_auth
