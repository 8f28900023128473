"""Case workflow enums (stages, actions, sub-statuses)."""

from enum import Enum


class CaseStage(str, Enum):
    """
    Case stage of a lead.

    Legacy values (KYP_PENDING, KYP_COMPLETE, ADMITTED, IPD_DONE) are still
    accepted on read and as transition sources until the backfill has run.
    """

    NEW_LEAD = "NEW_LEAD"
    KYP_BASIC_PENDING = "KYP_BASIC_PENDING"
    KYP_BASIC_COMPLETE = "KYP_BASIC_COMPLETE"
    HOSPITALS_SUGGESTED = "HOSPITALS_SUGGESTED"
    KYP_DETAILED_PENDING = "KYP_DETAILED_PENDING"
    KYP_DETAILED_COMPLETE = "KYP_DETAILED_COMPLETE"
    PREAUTH_RAISED = "PREAUTH_RAISED"
    PREAUTH_COMPLETE = "PREAUTH_COMPLETE"
    INITIATED = "INITIATED"
    DISCHARGED = "DISCHARGED"
    PL_PENDING = "PL_PENDING"
    OUTSTANDING = "OUTSTANDING"

    # Legacy
    KYP_PENDING = "KYP_PENDING"
    KYP_COMPLETE = "KYP_COMPLETE"
    ADMITTED = "ADMITTED"
    IPD_DONE = "IPD_DONE"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


LEGACY_STAGES = frozenset(
    {
        CaseStage.KYP_PENDING,
        CaseStage.KYP_COMPLETE,
        CaseStage.ADMITTED,
        CaseStage.IPD_DONE,
    }
)


class CaseAction(str, Enum):
    """Workflow actions that may move (or annotate) a case."""

    SUBMIT_KYP_BASIC = "submit_kyp_basic"
    SUBMIT_KYP_DETAILED = "submit_kyp_detailed"
    SUGGEST_HOSPITALS = "suggest_hospitals"
    ADD_KYP_DETAILS = "add_kyp_details"
    UPDATE_KYP_DETAILS = "update_kyp_details"
    RAISE_PREAUTH = "raise_preauth"
    APPROVE_PREAUTH = "approve_preauth"
    REJECT_PREAUTH = "reject_preauth"
    MARK_NEW_HOSPITAL_RAISED = "mark_new_hospital_raised"
    INITIATE_ADMISSION = "initiate_admission"
    MARK_IPD = "mark_ipd"
    MARK_DISCHARGED = "mark_discharged"
    ADD_FOLLOW_UP = "add_follow_up"
    MARK_LOST = "mark_lost"


class PipelineStage(str, Enum):
    """Sales pipeline bucket (independent of the case stage)."""

    NEW = "NEW"
    KYP = "KYP"
    INSURANCE = "INSURANCE"
    ADMISSION = "ADMISSION"
    LOST = "LOST"


class KypStatus(str, Enum):
    PENDING = "PENDING"
    KYP_DETAILS_ADDED = "KYP_DETAILS_ADDED"
    PRE_AUTH_COMPLETE = "PRE_AUTH_COMPLETE"
    FOLLOW_UP_COMPLETE = "FOLLOW_UP_COMPLETE"


class KypSubmissionType(str, Enum):
    BASIC = "basic"
    DETAILED = "detailed"


class PreAuthStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class IpdStatus(str, Enum):
    """Outcome recorded by the IPD mark action."""

    ADMITTED_DONE = "ADMITTED_DONE"
    POSTPONED = "POSTPONED"
    CANCELLED = "CANCELLED"
    DISCHARGED = "DISCHARGED"


class LostReason(str, Enum):
    PATIENT_DECLINED = "Patient Declined"
    GHOSTED = "Ghosted"
    FINANCIAL_ISSUE = "Financial Issue"
    OTHER = "Other"


class ChatMessageType(str, Enum):
    SYSTEM = "SYSTEM"
    USER = "USER"


class QueryStatus(str, Enum):
    """Insurance query on a pre-authorization: raised, answered by BD, closed by insurance."""

    PENDING = "PENDING"
    ANSWERED = "ANSWERED"
    RESOLVED = "RESOLVED"
