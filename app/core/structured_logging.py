"""Structured logging helpers (PHI-safe)."""

from typing import Any
from uuid import UUID


def build_log_context(
    *,
    user_id: str | UUID | None = None,
    lead_id: str | UUID | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
    action: str | None = None,
) -> dict[str, Any]:
    """Return a PHI-safe log context dict (ids only, never patient fields)."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if lead_id:
        context["lead_id"] = str(lead_id)
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    if action:
        context["action"] = action
    return context
