"""Admission record model."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, utcnow

if TYPE_CHECKING:
    from app.db.models import Lead


class AdmissionRecord(Base):
    """
    Admission initiated by BD after pre-auth completes.

    The ipd_* fields are overwritten by each IPD mark; only DISCHARGED moves
    the case stage.
    """

    __tablename__ = "admission_records"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    lead_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("leads.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    admission_date: Mapped[date] = mapped_column(Date, nullable=False)
    admission_time: Mapped[str] = mapped_column(String(20), nullable=False)
    admitting_hospital: Mapped[str] = mapped_column(String(255), nullable=False)
    hospital_address: Mapped[str] = mapped_column(Text, nullable=False)
    google_map_location: Mapped[str | None] = mapped_column(Text, nullable=True)
    surgery_date: Mapped[date] = mapped_column(Date, nullable=False)
    surgery_time: Mapped[str] = mapped_column(String(20), nullable=False)
    tpa: Mapped[str] = mapped_column(String(255), nullable=False)
    instrument: Mapped[str | None] = mapped_column(Text, nullable=True)
    implant_consumables: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    initiated_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # IPD tracking
    ipd_status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    ipd_status_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    ipd_status_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    ipd_status_updated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    ipd_status_updated_by_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    new_surgery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    ipd_discharge_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    lead: Mapped["Lead"] = relationship(back_populates="admission_record")
