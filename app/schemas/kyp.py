"""Pydantic schemas for KYP submission, insurance details and follow-up."""

from datetime import date
from uuid import UUID

from pydantic import Field, field_validator

from app.db.enums import KypSubmissionType
from app.schemas.common import CamelModel, UtcDatetime


class KypSubmitRequest(CamelModel):
    """
    BD-side KYP submission.

    basic: identity + insurance card + location/area.
    detailed: disease details on top of an existing basic submission.
    """
    lead_id: UUID
    type: KypSubmissionType = KypSubmissionType.BASIC

    aadhar: str | None = None
    pan: str | None = None
    insurance_card: str | None = None
    location: str | None = None
    area: str | None = None
    remark: str | None = None
    aadhar_file_url: str | None = None
    pan_file_url: str | None = None
    insurance_card_file_url: str | None = None
    insurance_card_files: list[str] | None = None
    other_files: list[dict] | None = None

    # Optional patient fields copied onto the lead
    patient_name: str | None = None
    phone_number: str | None = None
    city: str | None = None
    insurance_name: str | None = None

    # Detailed
    disease: str | None = None
    disease_photos: list[dict] | None = None
    patient_consent: bool = False


class HospitalSuggestionInput(CamelModel):
    hospital_name: str = Field(..., min_length=1, max_length=255)
    tentative_bill: str | None = None
    room_rent_general: str | None = None
    room_rent_private: str | None = None
    room_rent_icu: str | None = None
    notes: str | None = None


class RoomTypeInput(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    rent: str | None = None


class InsuranceDetailsRequest(CamelModel):
    """
    Insurance-side details for a lead. Which fields matter depends on the
    case stage (hospital suggestions, legacy KYP details, or completion).
    """
    lead_id: UUID
    sum_insured: str | None = None
    room_rent: str | None = None
    capping: str | None = None
    copay: str | None = None
    icu: str | None = None
    insurance: str | None = None
    tpa: str | None = None
    hospital_name_suggestion: str | None = None
    hospital_suggestions: list[str] | None = None
    room_types: list[RoomTypeInput] | None = None
    hospitals: list[HospitalSuggestionInput] | None = None
    approved_amount: float | None = Field(None, ge=0)

    @field_validator("hospital_suggestions")
    @classmethod
    def strip_blank_names(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return [name.strip() for name in v if name and name.strip()]


class FollowUpRequest(CamelModel):
    lead_id: UUID
    admission_date: date | None = None
    surgery_date: date | None = None
    prescription: str | None = None
    report: str | None = None
    hospital_name: str | None = None
    doctor_name: str | None = None
    prescription_file_url: str | None = None
    report_file_url: str | None = None


class HospitalSuggestionRead(CamelModel):
    id: UUID
    hospital_name: str
    tentative_bill: str | None
    room_rent_general: str | None
    room_rent_private: str | None
    room_rent_icu: str | None
    notes: str | None


class PreAuthRead(CamelModel):
    id: UUID
    kyp_submission_id: UUID
    sum_insured: str | None
    room_rent: str | None
    capping: str | None
    copay: str | None
    icu: str | None
    insurance: str | None
    tpa: str | None
    hospital_name_suggestion: str | None
    hospital_suggestions: list | None
    room_types: list | None
    suggested_hospitals: list[HospitalSuggestionRead] = []
    requested_hospital_name: str | None
    requested_room_type: str | None
    disease_description: str | None
    expected_admission_date: date | None
    expected_surgery_date: date | None
    is_new_hospital_request: bool
    new_hospital_pre_auth_raised: bool
    pre_auth_raised_at: UtcDatetime | None
    approval_status: str
    approved_amount: float | None
    rejection_reason: str | None
    handled_at: UtcDatetime | None
    approved_at: UtcDatetime | None
    rejected_at: UtcDatetime | None


class KypRead(CamelModel):
    id: UUID
    lead_id: UUID
    submitted_by_id: UUID | None
    status: str
    aadhar: str | None
    pan: str | None
    insurance_card: str | None
    location: str | None
    area: str | None
    remark: str | None
    disease: str | None
    patient_consent: bool
    created_at: UtcDatetime


class FollowUpRead(CamelModel):
    id: UUID
    kyp_submission_id: UUID
    admission_date: date | None
    surgery_date: date | None
    prescription: str | None
    report: str | None
    hospital_name: str | None
    doctor_name: str | None
    updated_at: UtcDatetime


class InsuranceQueryCreate(CamelModel):
    pre_authorization_id: UUID
    question: str = Field(..., min_length=1, max_length=5000)

    @field_validator("question")
    @classmethod
    def strip_question(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Question cannot be blank")
        return v.strip()


class InsuranceQueryAnswer(CamelModel):
    answer: str = Field(..., min_length=1, max_length=5000)

    @field_validator("answer")
    @classmethod
    def strip_answer(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Answer cannot be blank")
        return v.strip()


class InsuranceQueryRead(CamelModel):
    """A query with the case it belongs to and who raised / answered it."""
    id: UUID
    pre_auth_id: UUID
    lead_id: UUID
    lead_ref: str
    patient_name: str
    question: str
    status: str
    raised_by_id: UUID | None
    raised_by_name: str | None = None
    raised_at: UtcDatetime
    answer: str | None
    answered_by_id: UUID | None
    answered_by_name: str | None = None
    answered_at: UtcDatetime | None
    resolved_by_id: UUID | None
    resolved_at: UtcDatetime | None
