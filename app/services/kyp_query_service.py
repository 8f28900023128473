"""Insurance queries - insurance asks, BD answers, insurance resolves.

A query hangs off a pre-authorization and runs its own small status loop
(PENDING -> ANSWERED -> RESOLVED). It never changes the case stage.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.case_access import check_lead_access, scope_lead_query
from app.core.errors import ForbiddenError, InvalidStateError, NotFoundError
from app.core.permissions import has_permission
from app.core.policies import policy_permission
from app.core.structured_logging import build_log_context
from app.db.enums import NotificationType, QueryStatus, ROLES_INSURANCE_SIDE, Role
from app.db.models import InsuranceQuery, KYPSubmission, Lead, PreAuthorization
from app.schemas.auth import UserSession
from app.schemas.kyp import InsuranceQueryAnswer, InsuranceQueryCreate
from app.services import case_events, notification_service

logger = logging.getLogger(__name__)

_ANSWER_ROLES = frozenset({Role.BD, Role.TEAM_LEAD, Role.ADMIN})


def lead_of(query: InsuranceQuery) -> Lead:
    return query.pre_auth.kyp_submission.lead


def _check_role(session: UserSession, roles: frozenset[Role], action: str, message: str) -> None:
    if session.role not in roles or not has_permission(
        session.role, policy_permission("kyp", action)
    ):
        raise ForbiddenError(message)


def _lock_query(db: Session, query_id: UUID) -> InsuranceQuery:
    query = db.execute(
        select(InsuranceQuery).where(InsuranceQuery.id == query_id).with_for_update()
    ).scalar_one_or_none()
    if not query:
        raise NotFoundError("Query not found")
    return query


def _notify(
    db: Session,
    query: InsuranceQuery,
    actor_id: UUID,
    user_ids: list[UUID | None],
    type: NotificationType,
    title: str,
    body: str,
) -> None:
    """Best-effort, after the query change is committed."""
    lead = lead_of(query)
    log_context = build_log_context(user_id=actor_id, lead_id=lead.id, action=type.value)
    try:
        recipients = [
            uid
            for uid in notification_service.filter_active_user_ids(db, user_ids)
            if uid != actor_id
        ]
        if not recipients:
            return
        notification_service.create_notifications(
            db,
            recipients,
            type=type,
            title=title,
            body=body,
            link=case_events.lead_link(lead),
            entity_type="insurance_query",
            entity_id=query.id,
        )
    except Exception:
        db.rollback()
        logger.warning("insurance_query_notification_failed", extra=log_context, exc_info=True)


# =============================================================================
# Reads
# =============================================================================


def list_queries(
    db: Session,
    session: UserSession,
    pre_auth_id: UUID | None = None,
    status: QueryStatus | None = None,
) -> list[InsuranceQuery]:
    """Queries on leads the caller can see, newest first."""
    q = (
        db.query(InsuranceQuery)
        .join(PreAuthorization, InsuranceQuery.pre_auth_id == PreAuthorization.id)
        .join(KYPSubmission, PreAuthorization.kyp_submission_id == KYPSubmission.id)
        .join(Lead, KYPSubmission.lead_id == Lead.id)
    )
    q = scope_lead_query(q, session)
    if pre_auth_id:
        q = q.filter(InsuranceQuery.pre_auth_id == pre_auth_id)
    if status:
        q = q.filter(InsuranceQuery.status == status.value)
    return q.order_by(InsuranceQuery.raised_at.desc()).all()


def get_query(db: Session, session: UserSession, query_id: UUID) -> InsuranceQuery:
    """
    Raises:
        NotFoundError: no such query
        ForbiddenError: query is on a lead the caller cannot access
    """
    query = db.get(InsuranceQuery, query_id)
    if not query:
        raise NotFoundError("Query not found")
    check_lead_access(session, lead_of(query))
    return query


# =============================================================================
# Status loop
# =============================================================================


def raise_query(db: Session, session: UserSession, data: InsuranceQueryCreate) -> InsuranceQuery:
    """
    Insurance raises a query on a pre-authorization. The lead's BD is notified.

    Raises:
        ForbiddenError: caller is not on the insurance desk
        NotFoundError: no such pre-authorization
    """
    _check_role(
        session, ROLES_INSURANCE_SIDE, "raise_query", "Only Insurance team can raise queries"
    )
    pre_auth = db.get(PreAuthorization, data.pre_authorization_id)
    if not pre_auth:
        raise NotFoundError("Pre-authorization not found")
    lead = pre_auth.kyp_submission.lead

    query = InsuranceQuery(
        pre_auth_id=pre_auth.id,
        question=data.question,
        status=QueryStatus.PENDING.value,
        raised_by_id=session.user_id,
    )
    db.add(query)
    db.commit()
    db.refresh(query)
    logger.info(
        "insurance_query_raised",
        extra=build_log_context(user_id=session.user_id, lead_id=lead.id),
    )

    _notify(
        db,
        query,
        session.user_id,
        [lead.bd_id],
        NotificationType.QUERY_RAISED,
        "New Query Raised",
        f"Insurance team has raised a query for {lead.patient_name} ({lead.lead_ref})",
    )
    db.refresh(query)
    return query


def answer_query(
    db: Session,
    session: UserSession,
    query_id: UUID,
    data: InsuranceQueryAnswer,
) -> InsuranceQuery:
    """
    BD answers a query on their lead. Re-answering an open query replaces
    the answer; the insurance user who raised it is notified.

    Raises:
        ForbiddenError: caller is not BD-side, or not on this lead
        NotFoundError: no such query
        InvalidStateError: query already resolved
    """
    _check_role(session, _ANSWER_ROLES, "answer_query", "Only BD can answer queries")
    query = _lock_query(db, query_id)
    lead = lead_of(query)
    check_lead_access(session, lead)
    if query.status == QueryStatus.RESOLVED.value:
        db.rollback()
        raise InvalidStateError("Query is already resolved")

    query.answer = data.answer
    query.answered_by_id = session.user_id
    query.answered_at = datetime.now(timezone.utc)
    query.status = QueryStatus.ANSWERED.value
    db.commit()
    db.refresh(query)

    _notify(
        db,
        query,
        session.user_id,
        [query.raised_by_id],
        NotificationType.QUERY_ANSWERED,
        "Query Answered",
        f"BD has answered your query for {lead.patient_name} ({lead.lead_ref})",
    )
    db.refresh(query)
    return query


def resolve_query(db: Session, session: UserSession, query_id: UUID) -> InsuranceQuery:
    """
    Insurance closes an answered query.

    Raises:
        ForbiddenError: caller is not on the insurance desk
        NotFoundError: no such query
        InvalidStateError: query has not been answered (or is already resolved)
    """
    _check_role(
        session, ROLES_INSURANCE_SIDE, "resolve_query", "Only Insurance team can resolve queries"
    )
    query = _lock_query(db, query_id)
    if query.status != QueryStatus.ANSWERED.value:
        db.rollback()
        raise InvalidStateError("Query must be answered before it can be resolved")

    query.status = QueryStatus.RESOLVED.value
    query.resolved_by_id = session.user_id
    query.resolved_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(query)
    logger.info(
        "insurance_query_resolved",
        extra=build_log_context(user_id=session.user_id, lead_id=lead_of(query).id),
    )
    return query
