"""Case chat routes - per-lead message thread."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_csrf_header, require_permission
from app.core.policies import POLICIES
from app.schemas.auth import UserSession
from app.schemas.chat import ChatMessageCreate, ChatMessageRead
from app.schemas.common import ok
from app.services import case_chat_service, lead_service

router = APIRouter()


@router.get("/{lead_id}/chat")
def list_chat_messages(
    lead_id: UUID,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: UserSession = Depends(require_permission(POLICIES["leads"].actions["chat"])),
    db: Session = Depends(get_db),
):
    """Thread for a lead, oldest first."""
    lead = lead_service.get_lead(db, session, lead_id)
    messages = case_chat_service.list_messages(db, lead.id, limit=limit, offset=offset)
    return ok([ChatMessageRead.model_validate(m) for m in messages])


@router.post("/{lead_id}/chat", dependencies=[Depends(require_csrf_header)])
def post_chat_message(
    lead_id: UUID,
    data: ChatMessageCreate,
    session: UserSession = Depends(require_permission(POLICIES["leads"].actions["chat"])),
    db: Session = Depends(get_db),
):
    lead = lead_service.get_lead(db, session, lead_id)
    message = case_chat_service.post_user_message(db, lead.id, session.user_id, data.content)
    return ok(ChatMessageRead.model_validate(message), "Message posted")
