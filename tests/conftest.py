"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, tables created and dropped per test
- Users for each role and JWT-cookie clients with the CSRF header
- CaseFactory for driving leads through the workflow via the services
"""
import os
import uuid
from contextlib import AsyncExitStack
from datetime import date
from typing import AsyncGenerator, Generator

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TESTING"] = "1"

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

from app.main import app
from app.core.deps import COOKIE_NAME, get_db
from app.core.security import create_session_token
from app.db.base import Base
from app.db.enums import CaseStage, Role
from app.db.models import Lead, Team, User
from app.db.session import SessionLocal, engine
from app.schemas.admission import InitiateAdmissionRequest
from app.schemas.auth import UserSession
from app.schemas.kyp import (
    HospitalSuggestionInput,
    InsuranceDetailsRequest,
    KypSubmitRequest,
    RoomTypeInput,
)
from app.schemas.lead import LeadCreate
from app.schemas.pre_auth import RaisePreAuthRequest
from app.services import (
    admission_service,
    kyp_service,
    lead_service,
    pre_auth_service,
)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; app code commits normally."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _session_for(user: User) -> UserSession:
    return UserSession(
        user_id=user.id,
        role=Role(user.role),
        team_id=user.team_id,
        email=user.email,
        display_name=user.display_name,
    )


@pytest.fixture
def session_for():
    """Principal for calling services directly."""
    return _session_for


@pytest.fixture
def make_user(db: Session):
    def _make(role: Role, team: Team | None = None, name: str | None = None) -> User:
        user = User(
            email=f"{role.value}-{uuid.uuid4().hex[:8]}@test.com",
            display_name=name or f"Test {role.value}",
            role=role.value,
            team_id=team.id if team else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def team(db: Session) -> Team:
    team = Team(name="North")
    db.add(team)
    db.commit()
    return team


@pytest.fixture
def other_team(db: Session) -> Team:
    team = Team(name="South")
    db.add(team)
    db.commit()
    return team


@pytest.fixture
def bd(make_user, team) -> User:
    return make_user(Role.BD, team=team, name="Asha BD")


@pytest.fixture
def other_bd(make_user, other_team) -> User:
    return make_user(Role.BD, team=other_team, name="Vikram BD")


@pytest.fixture
def team_lead(make_user, team) -> User:
    return make_user(Role.TEAM_LEAD, team=team)


@pytest.fixture
def insurance(make_user) -> User:
    return make_user(Role.INSURANCE, name="Insurance Desk")


@pytest.fixture
def insurance_head(make_user) -> User:
    return make_user(Role.INSURANCE_HEAD)


@pytest.fixture
def admin(make_user) -> User:
    return make_user(Role.ADMIN)


@pytest.fixture
def md(make_user) -> User:
    return make_user(Role.MD)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def make_client(db: Session) -> AsyncGenerator:
    """
    Factory for AsyncClients sharing the test session.

    make_client(user) sets the session cookie and CSRF header;
    make_client() is unauthenticated.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncExitStack() as stack:
        async def _make(user: User | None = None, csrf: bool = True) -> AsyncClient:
            cookies = {}
            if user is not None:
                cookies[COOKIE_NAME] = create_session_token(
                    user_id=user.id,
                    role=user.role,
                    token_version=user.token_version,
                    team_id=user.team_id,
                )
            headers = {"X-Requested-With": "XMLHttpRequest"} if csrf else {}
            client = AsyncClient(
                transport=ASGITransport(app=app),
                base_url="http://test",
                cookies=cookies,
                headers=headers,
            )
            return await stack.enter_async_context(client)

        yield _make

    app.dependency_overrides.clear()


# =============================================================================
# Workflow Fixtures
# =============================================================================

SUGGESTED_HOSPITALS = ("Apollo Hospital", "Fortis Memorial")
SUGGESTED_ROOMS = ("General", "Private")


class CaseFactory:
    """Drives leads through the workflow using the services."""

    def __init__(self, db: Session, bd: User, insurance: User):
        self.db = db
        self.bd = bd
        self.insurance = insurance

    @property
    def bd_session(self) -> UserSession:
        return _session_for(self.bd)

    @property
    def insurance_session(self) -> UserSession:
        return _session_for(self.insurance)

    def lead(self, patient_name: str = "Ravi Kumar") -> Lead:
        return lead_service.create_lead(
            self.db,
            self.bd_session,
            LeadCreate(patient_name=patient_name, phone_number="9876543210", city="Pune"),
        )

    def submit_basic(self, lead: Lead) -> None:
        kyp_service.submit_kyp(
            self.db,
            self.bd_session,
            KypSubmitRequest(
                lead_id=lead.id,
                insurance_card="CARD-001",
                location="Pune",
                area="Kothrud",
            ),
        )

    def suggest_hospitals(self, lead: Lead) -> None:
        kyp_service.update_insurance_details(
            self.db,
            self.insurance_session,
            InsuranceDetailsRequest(
                lead_id=lead.id,
                sum_insured="500000",
                hospitals=[HospitalSuggestionInput(hospital_name=h) for h in SUGGESTED_HOSPITALS],
                room_types=[RoomTypeInput(name=r) for r in SUGGESTED_ROOMS],
            ),
        )

    def submit_detailed(self, lead: Lead) -> None:
        kyp_service.submit_kyp(
            self.db,
            self.bd_session,
            KypSubmitRequest(lead_id=lead.id, type="detailed", disease="Appendicitis"),
        )

    def raise_pre_auth(self, lead: Lead) -> None:
        pre_auth_service.raise_pre_auth(
            self.db,
            self.bd_session,
            lead.id,
            RaisePreAuthRequest(
                requested_hospital_name=SUGGESTED_HOSPITALS[0],
                requested_room_type=SUGGESTED_ROOMS[1],
                disease_description="Acute appendicitis",
            ),
        )

    def approve(self, lead: Lead) -> None:
        pre_auth_service.approve_pre_auth(
            self.db, self.insurance_session, lead.kyp_submission.id, approved_amount=150000
        )

    def initiate(self, lead: Lead) -> None:
        admission_service.initiate_admission(
            self.db,
            self.bd_session,
            lead.id,
            InitiateAdmissionRequest(
                admission_date=date(2026, 3, 1),
                admission_time="10:00",
                admitting_hospital=SUGGESTED_HOSPITALS[0],
                hospital_address="Bund Garden Road, Pune",
                surgery_date=date(2026, 3, 2),
                surgery_time="08:00",
                tpa="MediAssist",
            ),
        )

    _STEPS = (
        (CaseStage.KYP_BASIC_PENDING, "submit_basic"),
        (CaseStage.KYP_BASIC_COMPLETE, "suggest_hospitals"),
        (CaseStage.KYP_DETAILED_COMPLETE, "submit_detailed"),
        (CaseStage.PREAUTH_RAISED, "raise_pre_auth"),
        (CaseStage.PREAUTH_COMPLETE, "approve"),
        (CaseStage.INITIATED, "initiate"),
    )

    def at_stage(self, stage: CaseStage) -> Lead:
        """New lead advanced through the happy path until it reaches stage."""
        lead = self.lead()
        if stage == CaseStage.NEW_LEAD:
            return lead
        for reached, step in self._STEPS:
            getattr(self, step)(lead)
            self.db.refresh(lead)
            if reached == stage:
                return lead
        raise ValueError(f"No happy-path step reaches {stage}")


@pytest.fixture
def cases(db: Session, bd: User, insurance: User) -> CaseFactory:
    return CaseFactory(db, bd, insurance)
