"""Pydantic schemas for leads and stage history."""

from datetime import date
from uuid import UUID

from pydantic import Field, field_validator

from app.db.enums import LostReason
from app.schemas.common import CamelModel, UtcDatetime
from app.utils.normalization import normalize_phone


class LeadCreate(CamelModel):
    """Request to create a lead."""
    patient_name: str = Field(..., min_length=1, max_length=255)
    phone_number: str | None = Field(None, max_length=20)
    city: str | None = Field(None, max_length=120)
    insurance_name: str | None = Field(None, max_length=255)
    bd_id: UUID | None = Field(None, description="Defaults to the caller")

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        return normalize_phone(v)


class LeadRead(CamelModel):
    """Lead summary."""
    id: UUID
    lead_ref: str
    patient_name: str
    phone_number: str | None
    city: str | None
    insurance_name: str | None
    hospital_name: str | None
    ipd_admission_date: date | None
    ipd_discharge_date: date | None
    bd_id: UUID
    team_id: UUID | None
    case_stage: str
    pipeline_stage: str
    lost_reason: str | None
    lost_at: UtcDatetime | None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class LeadDetail(LeadRead):
    """Lead with its workflow records and the caller's next actions."""
    case_stage_label: str
    kyp_submission: dict | None = None
    pre_auth: dict | None = None
    admission_record: dict | None = None
    allowed_actions: list[str] = []


class LeadListResponse(CamelModel):
    items: list[LeadRead]
    total: int
    limit: int
    offset: int


class MarkLostRequest(CamelModel):
    lost_reason: LostReason
    lost_reason_detail: str | None = Field(None, max_length=2000)


class StageHistoryRead(CamelModel):
    """One stage change, newest first in listings."""
    id: UUID
    from_stage: str | None
    to_stage: str
    note: str | None
    changed_at: UtcDatetime
    changed_by_id: UUID | None
    changed_by_name: str | None = None
