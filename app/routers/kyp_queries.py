"""Insurance query routes - raise, answer, resolve, read."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_session, get_db, require_csrf_header, require_permission
from app.core.policies import POLICIES
from app.db.enums import QueryStatus
from app.db.models import InsuranceQuery
from app.schemas.auth import UserSession
from app.schemas.common import ok
from app.schemas.kyp import InsuranceQueryAnswer, InsuranceQueryCreate, InsuranceQueryRead
from app.services import kyp_query_service

router = APIRouter()


def _query_read(query: InsuranceQuery) -> InsuranceQueryRead:
    lead = kyp_query_service.lead_of(query)
    return InsuranceQueryRead(
        id=query.id,
        pre_auth_id=query.pre_auth_id,
        lead_id=lead.id,
        lead_ref=lead.lead_ref,
        patient_name=lead.patient_name,
        question=query.question,
        status=query.status,
        raised_by_id=query.raised_by_id,
        raised_by_name=query.raised_by.display_name if query.raised_by else None,
        raised_at=query.raised_at,
        answer=query.answer,
        answered_by_id=query.answered_by_id,
        answered_by_name=query.answered_by.display_name if query.answered_by else None,
        answered_at=query.answered_at,
        resolved_by_id=query.resolved_by_id,
        resolved_at=query.resolved_at,
    )


@router.get("")
def list_queries(
    pre_authorization_id: UUID | None = Query(None, alias="preAuthorizationId"),
    status: QueryStatus | None = Query(None),
    session: UserSession = Depends(require_permission(POLICIES["kyp"].default)),
    db: Session = Depends(get_db),
):
    """Queries on visible leads, newest first."""
    queries = kyp_query_service.list_queries(db, session, pre_authorization_id, status)
    return ok([_query_read(q) for q in queries])


@router.post("", dependencies=[Depends(require_csrf_header)])
def raise_query(
    data: InsuranceQueryCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    query = kyp_query_service.raise_query(db, session, data)
    return ok(_query_read(query), "Query raised successfully")


@router.get("/{query_id}")
def get_query(
    query_id: UUID,
    session: UserSession = Depends(require_permission(POLICIES["kyp"].default)),
    db: Session = Depends(get_db),
):
    return ok(_query_read(kyp_query_service.get_query(db, session, query_id)))


@router.post("/{query_id}/answer", dependencies=[Depends(require_csrf_header)])
def answer_query(
    query_id: UUID,
    data: InsuranceQueryAnswer,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """BD answers a query on their lead."""
    query = kyp_query_service.answer_query(db, session, query_id, data)
    return ok(_query_read(query), "Query answered successfully")


@router.post("/{query_id}/resolve", dependencies=[Depends(require_csrf_header)])
def resolve_query(
    query_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    query = kyp_query_service.resolve_query(db, session, query_id)
    return ok(_query_read(query), "Query resolved successfully")
