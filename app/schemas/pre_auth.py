"""Pydantic schemas for raising and deciding pre-authorizations."""

from datetime import date
from typing import Literal

from pydantic import Field

from app.schemas.common import CamelModel


class RaisePreAuthRequest(CamelModel):
    """BD raises pre-auth for a hospital (suggested, or a new hospital request)."""
    requested_hospital_name: str = Field(..., min_length=1, max_length=255)
    requested_room_type: str | None = Field(None, max_length=100)
    disease_description: str = Field(..., min_length=1)
    disease_images: list[dict] | None = None
    expected_admission_date: date | None = None
    expected_surgery_date: date | None = None
    is_new_hospital_request: bool = False


class PreAuthDecisionRequest(CamelModel):
    approval_status: Literal["APPROVED", "REJECTED"] = "APPROVED"
    approved_amount: float | None = Field(None, ge=0)
    reason: str | None = None


class PreAuthRejectRequest(CamelModel):
    reason: str = Field(..., min_length=1, max_length=2000)
