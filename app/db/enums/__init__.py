"""Enum definitions for application constants."""

from app.db.enums.auth import Role
from app.db.enums.cases import (
    CaseAction,
    CaseStage,
    ChatMessageType,
    IpdStatus,
    KypStatus,
    KypSubmissionType,
    LEGACY_STAGES,
    LostReason,
    PipelineStage,
    PreAuthStatus,
    QueryStatus,
)
from app.db.enums.notifications import NotificationType
from app.db.enums.permissions import (
    ROLES_BD_SIDE,
    ROLES_INSURANCE_SIDE,
    ROLES_SEE_ALL_LEADS,
)
