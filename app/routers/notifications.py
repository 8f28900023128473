"""
Notifications Router - /notifications endpoints.

Provides notification listing and read status for the current user.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_session, get_db, require_csrf_header
from app.core.errors import NotFoundError
from app.schemas.auth import UserSession
from app.schemas.common import ok
from app.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationRead,
    UnreadCountResponse,
)
from app.services import notification_service


router = APIRouter()


@router.get("")
def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get user's notifications."""
    notifications = notification_service.get_notifications(
        db=db,
        user_id=session.user_id,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    unread_count = notification_service.get_unread_count(db=db, user_id=session.user_id)
    return ok(
        NotificationListResponse(
            items=[NotificationRead.model_validate(n) for n in notifications],
            unread_count=unread_count,
        )
    )


@router.get("/unread-count")
def get_unread_count(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get unread notification count (for polling)."""
    count = notification_service.get_unread_count(db=db, user_id=session.user_id)
    return ok(UnreadCountResponse(count=count))


@router.post("/read-all", dependencies=[Depends(require_csrf_header)])
def mark_all_read(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Mark all notifications as read."""
    count = notification_service.mark_all_read(db=db, user_id=session.user_id)
    return ok(MarkAllReadResponse(updated=count))


@router.post("/{notification_id}/read", dependencies=[Depends(require_csrf_header)])
def mark_notification_read(
    notification_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Mark a notification as read."""
    notification = notification_service.mark_read(
        db=db,
        notification_id=notification_id,
        user_id=session.user_id,
    )
    if not notification:
        raise NotFoundError("Notification not found")
    return ok(NotificationRead.model_validate(notification))
