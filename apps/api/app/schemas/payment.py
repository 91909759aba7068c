"""Pydantic schemas for payment links."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.db.enums import PaymentStatus, StorageType
from app.schemas.document import LinkApplicant


class BankDetails(BaseModel):
    bank_name: str | None = Field(None, alias="bankName")
    account_name: str | None = Field(None, alias="accountName")
    account_number: str | None = Field(None, alias="accountNumber")
    rib: str | None = None
    swift: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class GeneratePaymentLinkRequest(BaseModel):
    submission_id: UUID = Field(..., alias="submissionId")
    amount: Decimal | None = None
    currency: str | None = Field(None, min_length=3, max_length=3)
    expires_in_days: int | None = Field(None, alias="expiresInDays")
    notes: str | None = Field(None, max_length=2000)
    bank_details: BankDetails | None = Field(None, alias="bankDetails")

    model_config = ConfigDict(populate_by_name=True)


class VerifyPaymentRequest(BaseModel):
    status: str
    rejection_reason: str | None = Field(None, alias="rejectionReason", max_length=2000)

    model_config = ConfigDict(populate_by_name=True)


class ReceiptRead(BaseModel):
    file_name: str
    original_name: str
    file_type: str
    file_size: int
    storage_type: StorageType
    uploaded_at: datetime


class PaymentLinkRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    submission_id: UUID
    token: str
    amount: Decimal
    currency: str
    bank_details: dict
    notes: str | None
    expires_at: datetime
    is_active: bool
    status: PaymentStatus
    has_receipt: bool
    receipt: ReceiptRead | None = None
    generated_by: UUID | None
    confirmed_by: UUID | None
    confirmed_at: datetime | None
    rejected_by: UUID | None
    rejected_at: datetime | None
    rejection_reason: str | None
    created_at: datetime


class PaymentLinkValidation(BaseModel):
    submission: LinkApplicant
    amount: Decimal
    currency: str
    bank_details: dict
    status: PaymentStatus
    expires_at: datetime
    notes: str | None
    has_receipt: bool


class ReceiptUploadResult(BaseModel):
    """Public response after a receipt upload; no staff attribution."""

    status: PaymentStatus
    amount: Decimal
    currency: str
    has_receipt: bool
    receipt: ReceiptRead | None = None
