"""Pydantic schemas for case chat."""

from uuid import UUID

from pydantic import Field

from app.schemas.common import CamelModel, UtcDatetime


class ChatMessageCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)


class ChatMessageRead(CamelModel):
    id: UUID
    lead_id: UUID
    type: str
    sender_id: UUID | None
    content: str
    created_at: UtcDatetime
