"""Pydantic schemas for clients."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.db.enums import ClientStatus, ServiceType
from app.utils.normalization import normalize_phone


class ClientUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, min_length=6, max_length=30)
    service: ServiceType | None = None
    message: str | None = Field(None, max_length=5000)
    status: ClientStatus | None = None
    assigned_to: UUID | None = Field(None, alias="assignedTo")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("phone")
    @classmethod
    def clean_phone(cls, v: str | None) -> str | None:
        return normalize_phone(v) if v else v


class ClientNoteCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class ClientNoteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    content: str
    added_by: UUID | None
    added_at: datetime


class ClientRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    submission_id: UUID | None
    name: str
    email: str | None
    phone: str
    service: ServiceType
    message: str | None
    source: str | None
    status: ClientStatus
    assigned_to: UUID | None
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime
    notes: list[ClientNoteRead] = []


class ClientStats(BaseModel):
    total: int
    by_status: dict[str, int]
    by_service: dict[str, int]
