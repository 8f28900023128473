"""KYP submission, pre-authorization and follow-up models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    ForeignKey,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, utcnow
from app.db.enums import KypStatus, PreAuthStatus, QueryStatus

if TYPE_CHECKING:
    from app.db.models import Lead, User


class KYPSubmission(Base):
    """Know-Your-Patient submission. At most one per lead."""

    __tablename__ = "kyp_submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    lead_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("leads.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    submitted_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(50), default=KypStatus.PENDING.value, nullable=False
    )

    # Basic
    aadhar: Mapped[str | None] = mapped_column(String(50), nullable=True)
    pan: Mapped[str | None] = mapped_column(String(50), nullable=True)
    insurance_card: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    area: Mapped[str | None] = mapped_column(String(255), nullable=True)
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    aadhar_file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    pan_file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    insurance_card_file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    insurance_card_files: Mapped[list | None] = mapped_column(JSON, nullable=True)
    other_files: Mapped[list | None] = mapped_column(JSON, nullable=True)

    # Detailed
    disease: Mapped[str | None] = mapped_column(Text, nullable=True)
    disease_photos: Mapped[list | None] = mapped_column(JSON, nullable=True)
    patient_consent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    detailed_submitted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    lead: Mapped["Lead"] = relationship(back_populates="kyp_submission")
    submitted_by: Mapped["User | None"] = relationship()
    pre_auth: Mapped["PreAuthorization | None"] = relationship(
        back_populates="kyp_submission", uselist=False
    )
    follow_up: Mapped["PatientFollowUp | None"] = relationship(
        back_populates="kyp_submission", uselist=False
    )


class PreAuthorization(Base):
    """
    Insurance pre-authorization for a KYP submission.

    Filled in passes: insurance suggests hospitals, BD raises the request,
    insurance approves or rejects.
    """

    __tablename__ = "pre_authorizations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    kyp_submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("kyp_submissions.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Insurance suggestion
    sum_insured: Mapped[str | None] = mapped_column(String(50), nullable=True)
    room_rent: Mapped[str | None] = mapped_column(String(50), nullable=True)
    capping: Mapped[str | None] = mapped_column(String(50), nullable=True)
    copay: Mapped[str | None] = mapped_column(String(50), nullable=True)
    icu: Mapped[str | None] = mapped_column(String(50), nullable=True)
    insurance: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tpa: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hospital_name_suggestion: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hospital_suggestions: Mapped[list | None] = mapped_column(JSON, nullable=True)  # legacy names
    room_types: Mapped[list | None] = mapped_column(JSON, nullable=True)  # [{name, rent}]

    # BD request
    requested_hospital_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    requested_room_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    disease_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    disease_images: Mapped[list | None] = mapped_column(JSON, nullable=True)
    expected_admission_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expected_surgery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_new_hospital_request: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    new_hospital_pre_auth_raised: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    pre_auth_raised_at: Mapped[datetime | None] = mapped_column(nullable=True)
    pre_auth_raised_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Insurance decision
    approval_status: Mapped[str] = mapped_column(
        String(20), default=PreAuthStatus.PENDING.value, nullable=False
    )
    approved_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    handled_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    handled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    kyp_submission: Mapped["KYPSubmission"] = relationship(back_populates="pre_auth")
    suggested_hospitals: Mapped[list["HospitalSuggestion"]] = relationship(
        back_populates="pre_auth",
        cascade="all, delete-orphan",
        order_by="HospitalSuggestion.created_at",
    )
    queries: Mapped[list["InsuranceQuery"]] = relationship(
        back_populates="pre_auth",
        cascade="all, delete-orphan",
        order_by="InsuranceQuery.raised_at.desc()",
    )


class HospitalSuggestion(Base):
    """Hospital suggested by insurance for a pre-authorization."""

    __tablename__ = "hospital_suggestions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    pre_auth_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pre_authorizations.id", ondelete="CASCADE"), nullable=False
    )
    hospital_name: Mapped[str] = mapped_column(String(255), nullable=False)
    tentative_bill: Mapped[str | None] = mapped_column(String(50), nullable=True)
    room_rent_general: Mapped[str | None] = mapped_column(String(50), nullable=True)
    room_rent_private: Mapped[str | None] = mapped_column(String(50), nullable=True)
    room_rent_icu: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    pre_auth: Mapped["PreAuthorization"] = relationship(back_populates="suggested_hospitals")


class PatientFollowUp(Base):
    """Post pre-auth follow-up details. At most one per KYP submission."""

    __tablename__ = "patient_follow_ups"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    kyp_submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("kyp_submissions.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    admission_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    surgery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    prescription: Mapped[str | None] = mapped_column(Text, nullable=True)
    report: Mapped[str | None] = mapped_column(Text, nullable=True)
    hospital_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    doctor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    prescription_file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    report_file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    kyp_submission: Mapped["KYPSubmission"] = relationship(back_populates="follow_up")


class InsuranceQuery(Base):
    """
    Question insurance raises on a pre-authorization.

    PENDING until the BD answers, then ANSWERED until insurance resolves it.
    Never moves the case stage.
    """

    __tablename__ = "insurance_queries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    pre_auth_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("pre_authorizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=QueryStatus.PENDING.value, nullable=False, index=True
    )
    raised_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    raised_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    answered_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    answered_at: Mapped[datetime | None] = mapped_column(nullable=True)
    resolved_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    resolved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    pre_auth: Mapped["PreAuthorization"] = relationship(back_populates="queries")
    raised_by: Mapped["User | None"] = relationship(foreign_keys=[raised_by_id])
    answered_by: Mapped["User | None"] = relationship(foreign_keys=[answered_by_id])
