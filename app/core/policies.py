"""Centralized RBAC policies for API resources."""

from dataclasses import dataclass

from app.core.permissions import PermissionKey as P


@dataclass(frozen=True)
class ResourcePolicy:
    """Default permission + per-action overrides for a resource."""

    default: P | None
    actions: dict[str, P]


POLICIES: dict[str, ResourcePolicy] = {
    "leads": ResourcePolicy(
        default=P.LEADS_READ,
        actions={
            "create": P.LEADS_WRITE,
            "mark_lost": P.LEADS_WRITE,
            "chat": P.LEADS_READ,
        },
    ),
    "kyp": ResourcePolicy(
        default=P.LEADS_READ,
        actions={
            "submit": P.LEADS_WRITE,
            "follow_up": P.LEADS_WRITE,
            "insurance_details": P.INSURANCE_WRITE,
            "raise_query": P.INSURANCE_WRITE,
            "answer_query": P.LEADS_WRITE,
            "resolve_query": P.INSURANCE_WRITE,
        },
    ),
    "pre_auth": ResourcePolicy(
        default=P.INSURANCE_READ,
        actions={
            "raise": P.LEADS_WRITE,
            "decide": P.INSURANCE_WRITE,
        },
    ),
    "admission": ResourcePolicy(default=P.LEADS_WRITE, actions={}),
}


def policy_permission(resource: str, action: str | None = None) -> P | None:
    """Resolve the capability guarding a resource action."""
    policy = POLICIES[resource]
    if action is None:
        return policy.default
    return policy.actions.get(action, policy.default)
