"""Case workflow events: best-effort side effects after a committed transition.

The stage change and its history row are already committed when dispatch()
runs. A failing chat post or notification is logged and dropped; it never
undoes the transition or fails the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.structured_logging import build_log_context
from app.core.stage_rules import get_transition
from app.db.enums import CaseAction, NotificationType
from app.db.models import Lead

logger = logging.getLogger(__name__)


@dataclass
class CaseEvent:
    """Side effects for one workflow action on a lead."""

    lead: Lead
    action: CaseAction
    actor_id: UUID | None = None
    chat_text: str | None = None
    notification_type: NotificationType | None = None
    title: str | None = None
    body: str | None = None
    link: str | None = None
    entity_type: str = "lead"
    entity_id: UUID | None = None
    recipient_roles: list[str] = field(default_factory=list)
    recipient_user_ids: list[UUID] = field(default_factory=list)


def insurance_roles() -> list[str]:
    """Role group notified on BD-side milestones."""
    return settings.insurance_notify_roles_list


def lead_link(lead: Lead) -> str:
    return f"/leads/{lead.id}"


def dispatch(db: Session, event: CaseEvent) -> None:
    """Post the chat message, then fan out notifications. Both steps are best-effort."""
    lead_id = event.lead.id
    log_context = build_log_context(
        user_id=event.actor_id, lead_id=lead_id, action=event.action.value
    )

    if event.chat_text and get_transition(event.action).chat_worthy:
        _post_chat(db, lead_id, event.chat_text, log_context)

    if event.notification_type and event.title:
        _notify(db, event, log_context)


def _post_chat(db: Session, lead_id: UUID, text: str, log_context: dict) -> None:
    from app.services import case_chat_service

    try:
        case_chat_service.post_system_message(db, lead_id, text)
    except Exception:
        db.rollback()
        logger.warning("case_chat_system_message_failed", extra=log_context, exc_info=True)


def _notify(db: Session, event: CaseEvent, log_context: dict) -> None:
    from app.services import notification_service

    try:
        recipients: list[UUID] = []
        if event.recipient_roles:
            recipients.extend(
                notification_service.get_role_recipient_ids(db, event.recipient_roles)
            )
        if event.recipient_user_ids:
            recipients.extend(
                notification_service.filter_active_user_ids(db, event.recipient_user_ids)
            )
        recipients = [uid for uid in dict.fromkeys(recipients) if uid != event.actor_id]
        if not recipients:
            return

        created = notification_service.create_notifications(
            db,
            recipients,
            type=event.notification_type,
            title=event.title,
            body=event.body,
            link=event.link or lead_link(event.lead),
            entity_type=event.entity_type,
            entity_id=event.entity_id or event.lead.id,
        )
        logger.info(
            f"case_notifications_created count={created} type={event.notification_type.value}",
            extra=log_context,
        )
    except Exception:
        db.rollback()
        logger.warning("case_notification_fanout_failed", extra=log_context, exc_info=True)
