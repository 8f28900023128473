"""Service layer modules."""

from app.services.user_service import (
    disable_user,
    get_user_by_email,
    get_user_by_id,
    revoke_all_sessions,
)

# Import service modules (not individual functions) for cleaner access
from app.services import case_chat_service
from app.services import notification_service
from app.services import case_events
from app.services import case_stage_service
from app.services import pre_auth_service
from app.services import kyp_service
from app.services import admission_service
from app.services import lead_service
from app.services import stage_backfill_service

__all__ = [
    # User service
    "get_user_by_id",
    "get_user_by_email",
    "revoke_all_sessions",
    "disable_user",
    # Service modules
    "case_chat_service",
    "notification_service",
    "case_events",
    "case_stage_service",
    "pre_auth_service",
    "kyp_service",
    "admission_service",
    "lead_service",
    "stage_backfill_service",
]
