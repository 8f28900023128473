"""Authentication router - current session and logout."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.core.deps import COOKIE_NAME, get_current_session, get_db, require_csrf_header
from app.core.permissions import get_role_permissions
from app.schemas.auth import MeResponse, UserSession
from app.schemas.common import ok
from app.services import user_service

router = APIRouter()


@router.get("/me")
def get_me(session: UserSession = Depends(get_current_session)):
    """
    Get current authenticated user info.

    Used by frontend to bootstrap auth state on page load.
    """
    return ok(
        MeResponse(
            user_id=session.user_id,
            email=session.email,
            display_name=session.display_name,
            role=session.role.value,
            team_id=session.team_id,
            permissions=sorted(p.value for p in get_role_permissions(session.role)),
        )
    )


@router.post("/logout", dependencies=[Depends(require_csrf_header)])
def logout(
    response: Response,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Clear session cookie and revoke outstanding tokens.

    Requires X-Requested-With header for CSRF protection.
    """
    user_service.revoke_all_sessions(db, session.user_id)
    response.delete_cookie(COOKIE_NAME, path="/")
    return ok({"status": "logged_out"})
