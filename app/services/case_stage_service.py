"""Case stage transition guard (lock + role/stage checks + compare-and-swap + history)."""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from app.core.case_access import check_lead_access
from app.core.errors import ConflictError, ForbiddenError, InvalidStageTransition, NotFoundError
from app.core.permissions import has_permission
from app.core.stage_rules import StageTransition, get_transition, next_stage
from app.db.enums import CaseAction, CaseStage
from app.db.models import CaseStageHistory, Lead
from app.schemas.auth import UserSession

logger = logging.getLogger(__name__)


def lock_lead(db: Session, lead_id: UUID) -> Lead:
    """
    Load a lead with a row lock for the rest of the transaction.

    Raises:
        NotFoundError: no such lead
    """
    lead = db.execute(
        select(Lead).where(Lead.id == lead_id).with_for_update()
    ).scalar_one_or_none()
    if not lead:
        raise NotFoundError("Lead not found")
    return lead


def check_transition(
    session: UserSession,
    lead: Lead,
    action: CaseAction,
) -> StageTransition:
    """
    Guard an action against role, capability, ownership and current stage.

    Checks run in that order; nothing is written.

    Raises:
        ForbiddenError: role/capability missing or lead not accessible
        InvalidStageTransition: lead is not in a source stage for the action
    """
    rule = check_actor(session, lead, action)
    check_stage(lead, rule)
    return rule


def check_actor(session: UserSession, lead: Lead, action: CaseAction) -> StageTransition:
    """Role, capability and ownership half of the guard."""
    rule = get_transition(action)

    if session.role not in rule.roles or not has_permission(session.role, rule.permission):
        raise ForbiddenError(
            f"Role '{session.role.value}' is not allowed to {rule.verb}"
        )

    check_lead_access(session, lead)
    return rule


def check_stage(lead: Lead, rule: StageTransition) -> None:
    """Stage half of the guard."""
    if lead.case_stage not in rule.from_stages:
        raise InvalidStageTransition(
            f"Cannot {rule.verb}. Current stage: {lead.case_stage}. {rule.requirement}",
            current_stage=lead.case_stage,
        )


def record_transition(
    db: Session,
    lead: Lead,
    to_stage: CaseStage | str,
    user_id: UUID | None,
    note: str | None = None,
) -> CaseStageHistory | None:
    """
    Move the lead to to_stage and append one history row, inside the caller's transaction.

    The write is a compare-and-swap on the stage the guard saw, so a concurrent
    transition that got there first makes this one fail instead of clobbering it.
    Returns None (and writes nothing) when the stage would not change.

    Raises:
        ConflictError: the lead's stage changed since it was read
    """
    to_value = to_stage.value if isinstance(to_stage, CaseStage) else to_stage
    from_value = lead.case_stage
    if to_value == from_value:
        return None

    db.flush()
    now = datetime.now(timezone.utc)
    result = db.execute(
        update(Lead)
        .where(Lead.id == lead.id, Lead.case_stage == from_value)
        .values(case_stage=to_value, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(
            f"case_stage_cas_lost lead_id={lead.id} expected={from_value} target={to_value}"
        )
        raise ConflictError(
            "Case was updated by someone else. Refresh and try again."
        )
    set_committed_value(lead, "case_stage", to_value)
    set_committed_value(lead, "updated_at", now)

    history = CaseStageHistory(
        lead_id=lead.id,
        from_stage=from_value,
        to_stage=to_value,
        changed_by_id=user_id,
        note=note,
        changed_at=now,
    )
    db.add(history)
    return history


def apply_action_stage(
    db: Session,
    lead: Lead,
    action: CaseAction,
    user_id: UUID | None,
    note: str | None = None,
    outcome: str | None = None,
) -> CaseStageHistory | None:
    """Resolve the action's target stage from the registry and record it (None = unchanged)."""
    target = next_stage(action, outcome)
    if target is None:
        return None
    return record_transition(db, lead, target, user_id, note)


@contextmanager
def transition_scope(db: Session) -> Iterator[None]:
    """
    Wrap the domain writes and stage change of one action in a single commit.

    Any error rolls the whole action back and re-raises.
    """
    try:
        yield
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"case_transition_integrity_error: {e.orig}")
        raise ConflictError("Record already exists for this case") from e
    except Exception:
        db.rollback()
        raise


def get_stage_history(db: Session, lead_id: UUID) -> list[CaseStageHistory]:
    """History rows for a lead, newest first."""
    return (
        db.query(CaseStageHistory)
        .filter(CaseStageHistory.lead_id == lead_id)
        .order_by(CaseStageHistory.changed_at.desc())
        .all()
    )
