"""API routers."""

from app.routers.auth import router as auth_router
from app.routers.case_chat import router as case_chat_router
from app.routers.kyp import router as kyp_router
from app.routers.leads import router as leads_router
from app.routers.leads_workflow import router as leads_workflow_router
from app.routers.notifications import router as notifications_router
from app.routers.pre_auth import router as pre_auth_router

__all__ = [
    "auth_router",
    "case_chat_router",
    "kyp_router",
    "leads_router",
    "leads_workflow_router",
    "notifications_router",
    "pre_auth_router",
]
