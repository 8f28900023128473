"""Pydantic schemas for in-app notifications."""

from uuid import UUID

from app.schemas.common import CamelModel, UtcDatetime


class NotificationRead(CamelModel):
    """Notification response."""
    id: UUID
    type: str
    title: str
    body: str | None
    link: str | None
    entity_type: str | None
    entity_id: UUID | None
    read_at: UtcDatetime | None
    created_at: UtcDatetime


class NotificationListResponse(CamelModel):
    """Paginated notification list."""
    items: list[NotificationRead]
    unread_count: int


class UnreadCountResponse(CamelModel):
    """Unread count only (for polling)."""
    count: int


class MarkAllReadResponse(CamelModel):
    updated: int
