"""Pydantic schemas for submissions."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.db.enums import ServiceType, SubmissionSource, SubmissionStatus, WorkflowStage
from app.utils.normalization import normalize_email, normalize_name, normalize_phone


class SubmissionCreate(BaseModel):
    """Public contact form payload."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str = Field(..., min_length=6, max_length=30)
    service: ServiceType
    message: str = Field(..., min_length=1, max_length=5000)
    source: SubmissionSource = SubmissionSource.WEBSITE_FORM

    @field_validator("name")
    @classmethod
    def clean_name(cls, v: str) -> str:
        cleaned = normalize_name(v)
        if not cleaned:
            raise ValueError("Name is required")
        return cleaned

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("phone")
    @classmethod
    def clean_phone(cls, v: str) -> str:
        cleaned = normalize_phone(v)
        if not cleaned or not any(ch.isdigit() for ch in cleaned):
            raise ValueError("Phone number is required")
        return cleaned


class SubmissionUpdate(BaseModel):
    """Staff edit of applicant fields. The workflow stage is never set directly."""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, min_length=6, max_length=30)
    service: ServiceType | None = None
    message: str | None = Field(None, max_length=5000)
    status: SubmissionStatus | None = None

    @field_validator("phone")
    @classmethod
    def clean_phone(cls, v: str | None) -> str | None:
        return normalize_phone(v) if v else v


class TrackRequest(BaseModel):
    phone: str | None = None
    email: str | None = None

    @field_validator("phone")
    @classmethod
    def clean_phone(cls, v: str | None) -> str | None:
        return normalize_phone(v)

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: str | None) -> str | None:
        return normalize_email(v)


class ConfirmCallRequest(BaseModel):
    notes: str | None = Field(None, max_length=5000)


class SubmissionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str | None
    phone: str
    service: ServiceType
    message: str
    source: SubmissionSource
    status: SubmissionStatus
    workflow_status: WorkflowStage
    converted_to_client: bool
    client_id: UUID | None
    reviewed_by: UUID | None
    reviewed_at: datetime | None
    validated_by: UUID | None
    validated_at: datetime | None
    call_confirmed_by: UUID | None
    call_confirmed_at: datetime | None
    call_notes: str | None
    created_at: datetime
    updated_at: datetime


class DocumentStats(BaseModel):
    total: int
    verified: int


class TrackedSubmission(BaseModel):
    """What an applicant may see about their own submission."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    phone: str
    email: str | None
    service: ServiceType
    status: SubmissionStatus
    workflow_status: WorkflowStage
    created_at: datetime
    document_stats: DocumentStats


class SubmissionStats(BaseModel):
    total: int
    by_status: dict[str, int]
    by_workflow_status: dict[str, int]
    by_service: dict[str, int]
    by_source: dict[str, int]
