"""Pydantic schemas for admission and IPD status."""

from datetime import date
from uuid import UUID

from pydantic import Field

from app.db.enums import IpdStatus
from app.schemas.common import CamelModel, UtcDatetime


class InitiateAdmissionRequest(CamelModel):
    admission_date: date
    admission_time: str = Field(..., min_length=1, max_length=20)
    admitting_hospital: str = Field(..., min_length=1, max_length=255)
    hospital_address: str = Field(..., min_length=1)
    google_map_location: str | None = None
    surgery_date: date
    surgery_time: str = Field(..., min_length=1, max_length=20)
    tpa: str = Field(..., min_length=1, max_length=255)
    instrument: str | None = None
    implant_consumables: str | None = None
    notes: str | None = None


class IpdMarkRequest(CamelModel):
    """IPD outcome. Conditional fields are checked by the service."""
    status: IpdStatus
    reason: str | None = None
    notes: str | None = None
    new_surgery_date: date | None = None
    discharge_date: date | None = None


class DischargeRequest(CamelModel):
    discharge_date: date | None = None
    notes: str | None = None


class AdmissionRead(CamelModel):
    id: UUID
    lead_id: UUID
    admission_date: date
    admission_time: str
    admitting_hospital: str
    hospital_address: str
    google_map_location: str | None
    surgery_date: date
    surgery_time: str
    tpa: str
    instrument: str | None
    implant_consumables: str | None
    notes: str | None
    ipd_status: str | None
    ipd_status_reason: str | None
    ipd_status_notes: str | None
    ipd_status_updated_at: UtcDatetime | None
    new_surgery_date: date | None
    ipd_discharge_date: date | None
    created_at: UtcDatetime
