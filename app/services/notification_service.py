"""
Notification Service - handles in-app notifications.

Provides CRUD for notifications and the recipient lookups used by the case
workflow fan-out (role groups, explicit users).
"""

from datetime import datetime, timezone
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.enums import NotificationType
from app.db.models import Notification, User


# =============================================================================
# Recipients
# =============================================================================


def get_role_recipient_ids(db: Session, roles: Iterable[str]) -> list[UUID]:
    """Active users holding any of the given role values."""
    role_values = [r.value if hasattr(r, "value") else r for r in roles]
    if not role_values:
        return []
    rows = db.query(User.id).filter(
        User.role.in_(role_values),
        User.is_active.is_(True),
    ).all()
    return [row.id for row in rows]


def filter_active_user_ids(db: Session, user_ids: Iterable[UUID]) -> list[UUID]:
    """Drop unknown or disabled users, keeping input order."""
    wanted = [uid for uid in dict.fromkeys(user_ids) if uid]
    if not wanted:
        return []
    active = {
        row.id
        for row in db.query(User.id).filter(
            User.id.in_(wanted),
            User.is_active.is_(True),
        ).all()
    }
    return [uid for uid in wanted if uid in active]


# =============================================================================
# Notification CRUD
# =============================================================================


def create_notification(
    db: Session,
    user_id: UUID,
    type: NotificationType,
    title: str,
    body: Optional[str] = None,
    link: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
) -> Notification:
    """Create a single notification."""
    notification = Notification(
        user_id=user_id,
        type=type.value,
        title=title,
        body=body,
        link=link,
        entity_type=entity_type,
        entity_id=entity_id,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def create_notifications(
    db: Session,
    user_ids: Iterable[UUID],
    type: NotificationType,
    title: str,
    body: Optional[str] = None,
    link: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
) -> int:
    """Bulk-create one notification per recipient in a single commit. Returns count."""
    rows = [
        Notification(
            user_id=user_id,
            type=type.value,
            title=title,
            body=body,
            link=link,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        for user_id in dict.fromkeys(user_ids)
    ]
    if not rows:
        return 0
    db.add_all(rows)
    db.commit()
    return len(rows)


def get_notifications(
    db: Session,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> list[Notification]:
    """Get notifications for user, newest first."""
    query = db.query(Notification).filter(Notification.user_id == user_id)

    if unread_only:
        query = query.filter(Notification.read_at.is_(None))

    return query.order_by(Notification.created_at.desc()).offset(offset).limit(limit).all()


def get_unread_count(db: Session, user_id: UUID) -> int:
    """Get count of unread notifications."""
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.read_at.is_(None),
    ).count()


def mark_read(
    db: Session,
    notification_id: UUID,
    user_id: UUID,
) -> Optional[Notification]:
    """Mark a notification as read (scoped to its owner)."""
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    ).first()

    if notification and not notification.read_at:
        notification.read_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(notification)

    return notification


def mark_all_read(db: Session, user_id: UUID) -> int:
    """Mark all notifications as read. Returns count updated."""
    count = db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.read_at.is_(None),
    ).update({"read_at": datetime.now(timezone.utc)}, synchronize_session=False)
    db.commit()
    return count
