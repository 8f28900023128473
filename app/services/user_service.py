"""User service - user operations and session management."""

from uuid import UUID

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ValidationFailedError
from app.db.enums import Role
from app.db.models import Team, User
from app.utils.normalization import normalize_email


def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    """Get user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email (case-insensitive)."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_or_create_team(db: Session, name: str) -> Team:
    team = db.query(Team).filter(Team.name == name).first()
    if not team:
        team = Team(name=name)
        db.add(team)
        db.flush()
    return team


def create_user(
    db: Session,
    email: str,
    display_name: str,
    role: str,
    team_name: str | None = None,
) -> User:
    """
    Create an active user.

    Raises:
        ValidationFailedError: unknown role or blank email
        ConflictError: email already registered
    """
    if not Role.has_value(role):
        raise ValidationFailedError(f"Unknown role '{role}'")
    email = normalize_email(email)
    if not email:
        raise ValidationFailedError("Email is required")
    if get_user_by_email(db, email):
        raise ConflictError(f"User already exists: {email}")

    user = User(email=email, display_name=display_name.strip(), role=role)
    if team_name:
        user.team_id = get_or_create_team(db, team_name.strip()).id
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def revoke_all_sessions(db: Session, user_id: UUID) -> bool:
    """
    Revoke all sessions for a user by bumping token_version.

    Existing tokens with old version will fail validation.

    Returns:
        True if user found and sessions revoked, False if user not found
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return False

    user.token_version += 1
    db.commit()
    return True


def disable_user(db: Session, user_id: UUID) -> bool:
    """
    Disable user account.

    Also revokes all sessions by bumping token_version.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        return False

    user.is_active = False
    user.token_version += 1  # Also revoke sessions
    db.commit()
    return True
