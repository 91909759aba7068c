"""Pydantic schemas for documents and document links."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.db.enums import DocumentStatus, DocumentType, ServiceType, StorageType


class GenerateDocumentLinkRequest(BaseModel):
    submission_id: UUID = Field(..., alias="submissionId")
    expires_in_days: int | None = Field(None, alias="expiresInDays")
    max_uploads: int | None = Field(None, alias="maxUploads")
    notes: str | None = Field(None, max_length=2000)

    model_config = ConfigDict(populate_by_name=True)


class VerifyDocumentRequest(BaseModel):
    status: str
    rejection_reason: str | None = Field(None, alias="rejectionReason", max_length=2000)
    notes: str | None = Field(None, max_length=2000)

    model_config = ConfigDict(populate_by_name=True)


class DocumentLinkRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    submission_id: UUID
    token: str
    expires_at: datetime
    is_active: bool
    max_uploads: int
    upload_count: int
    notes: str | None
    generated_by: UUID | None
    last_used_at: datetime | None
    created_at: datetime


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    submission_id: UUID
    document_link_id: UUID | None
    file_name: str
    original_name: str
    file_type: str
    file_size: int
    storage_type: StorageType
    document_type: DocumentType
    status: DocumentStatus
    verified_by: UUID | None
    verified_at: datetime | None
    rejection_reason: str | None
    notes: str | None
    uploaded_at: datetime


class LinkApplicant(BaseModel):
    """Applicant context exposed on public link pages."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    phone: str
    email: str | None
    service: ServiceType


class DocumentLinkValidation(BaseModel):
    submission: LinkApplicant
    expires_at: datetime
    max_uploads: int
    upload_count: int
    remaining_uploads: int


class UploadResult(BaseModel):
    documents: list[DocumentRead]
    remaining_uploads: int
