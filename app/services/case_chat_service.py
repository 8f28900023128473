"""Case chat thread: user messages and workflow system messages."""

from uuid import UUID

from sqlalchemy.orm import Session

from app.db.enums import ChatMessageType
from app.db.models import CaseChatMessage


def post_system_message(db: Session, lead_id: UUID, content: str) -> CaseChatMessage:
    """Post a SYSTEM message to the lead's thread and commit it."""
    message = CaseChatMessage(
        lead_id=lead_id,
        type=ChatMessageType.SYSTEM.value,
        sender_id=None,
        content=content,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def post_user_message(
    db: Session,
    lead_id: UUID,
    sender_id: UUID,
    content: str,
) -> CaseChatMessage:
    message = CaseChatMessage(
        lead_id=lead_id,
        type=ChatMessageType.USER.value,
        sender_id=sender_id,
        content=content.strip(),
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def list_messages(
    db: Session,
    lead_id: UUID,
    limit: int = 100,
    offset: int = 0,
) -> list[CaseChatMessage]:
    """Messages for a lead, oldest first."""
    return (
        db.query(CaseChatMessage)
        .filter(CaseChatMessage.lead_id == lead_id)
        .order_by(CaseChatMessage.created_at.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )
