"""SQLAlchemy ORM models."""

from app.db.models.admissions import AdmissionRecord
from app.db.models.auth import Team, User
from app.db.models.chat import CaseChatMessage
from app.db.models.kyp import (
    HospitalSuggestion,
    InsuranceQuery,
    KYPSubmission,
    PatientFollowUp,
    PreAuthorization,
)
from app.db.models.leads import CaseStageHistory, Lead
from app.db.models.notifications import Notification

__all__ = [
    "AdmissionRecord",
    "CaseChatMessage",
    "CaseStageHistory",
    "HospitalSuggestion",
    "InsuranceQuery",
    "KYPSubmission",
    "Lead",
    "Notification",
    "PatientFollowUp",
    "PreAuthorization",
    "Team",
    "User",
]
