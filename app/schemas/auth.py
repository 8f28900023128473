"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel

from app.db.enums import Role
from app.schemas.common import CamelModel


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: UUID  # user_id
    role: str
    team_id: UUID | None = None
    token_version: int


class UserSession(BaseModel):
    """
    Explicit principal for authenticated requests.
    
    Returned by the get_current_session dependency and passed to every
    service call that needs authorization.
    """
    user_id: UUID
    role: Role  # Validated enum
    team_id: UUID | None = None
    email: str
    display_name: str


class MeResponse(CamelModel):
    """Current user, role and granted capabilities."""
    user_id: UUID
    email: str
    display_name: str
    role: str
    team_id: UUID | None = None
    permissions: list[str] = []
