"""Lead (patient case) and stage history models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, utcnow
from app.db.enums import CaseStage, PipelineStage

if TYPE_CHECKING:
    from app.db.models import AdmissionRecord, KYPSubmission, User


class Lead(Base):
    """
    A patient case tracked through the case-stage workflow.

    case_stage is only written through the transition guard
    (case_stage_service.record_transition) so every change gets a history row.
    """

    __tablename__ = "leads"
    __table_args__ = (
        Index("idx_leads_bd_stage", "bd_id", "case_stage"),
        Index("idx_leads_team", "team_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    lead_ref: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)

    # Patient
    patient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    insurance_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hospital_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ipd_admission_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    ipd_discharge_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Ownership
    bd_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    team_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True
    )
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Workflow
    case_stage: Mapped[str] = mapped_column(
        String(50), default=CaseStage.NEW_LEAD.value, nullable=False
    )
    pipeline_stage: Mapped[str] = mapped_column(
        String(50), default=PipelineStage.NEW.value, nullable=False
    )
    lost_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    lost_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    # Relationships
    bd: Mapped["User"] = relationship(foreign_keys=[bd_id])
    kyp_submission: Mapped["KYPSubmission | None"] = relationship(
        back_populates="lead", uselist=False
    )
    admission_record: Mapped["AdmissionRecord | None"] = relationship(
        back_populates="lead", uselist=False
    )
    stage_history: Mapped[list["CaseStageHistory"]] = relationship(back_populates="lead")


class CaseStageHistory(Base):
    """
    Append-only audit row, one per case stage change.

    from_stage is null only for rows written before the lead had a stage.
    """

    __tablename__ = "case_stage_history"
    __table_args__ = (
        Index("idx_stage_history_lead", "lead_id", "changed_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    lead_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False
    )
    from_stage: Mapped[str | None] = mapped_column(String(50), nullable=True)
    to_stage: Mapped[str] = mapped_column(String(50), nullable=False)
    changed_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )

    lead: Mapped["Lead"] = relationship(back_populates="stage_history")
    changed_by: Mapped["User | None"] = relationship()
