"""Payments router - payment links, receipt uploads and verification."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db, require_roles
from app.core.errors import ValidationError
from app.core.rate_limit import PUBLIC_LIMIT, limiter
from app.db.enums import ROLES_CAN_VIEW, ROLES_STAFF
from app.routers.documents import attachment_response
from app.schemas.auth import UserSession
from app.schemas.common import Envelope
from app.schemas.document import LinkApplicant
from app.schemas.payment import (
    GeneratePaymentLinkRequest,
    PaymentLinkRead,
    PaymentLinkValidation,
    ReceiptUploadResult,
    VerifyPaymentRequest,
)
from app.services import payment_service
from app.services.message_templates import payment_url
from app.utils.file_upload import IncomingFile, content_length_exceeds_limit

router = APIRouter()


@router.post("/generate-link", response_model=Envelope[dict], status_code=201)
def generate_link(
    body: GeneratePaymentLinkRequest,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    """Create a payment link for a submission and message the applicant."""
    link = payment_service.generate_link(
        db,
        body.submission_id,
        session,
        amount=body.amount,
        currency=body.currency,
        expires_in_days=body.expires_in_days,
        notes=body.notes,
        bank_details=body.bank_details,
        request=request,
    )
    return Envelope(
        data={
            "link": payment_service.to_payment_link_read(link).model_dump(mode="json"),
            "url": payment_url(link.token),
        },
        message="Payment link generated",
    )


@router.get("/validate-link/{token}", response_model=Envelope[PaymentLinkValidation])
@limiter.limit(PUBLIC_LIMIT)
def validate_link(request: Request, token: str, db: Session = Depends(get_db)):
    """Public: amount, bank details and applicant context for a payment link."""
    link, submission = payment_service.validate_link(db, token)
    return Envelope(
        data=PaymentLinkValidation(
            submission=LinkApplicant.model_validate(submission),
            amount=link.amount,
            currency=link.currency,
            bank_details=link.bank_details or {},
            status=link.status,
            expires_at=link.expires_at,
            notes=link.notes,
            has_receipt=link.has_receipt,
        )
    )


@router.post("/upload-receipt/{token}", response_model=Envelope[ReceiptUploadResult], status_code=201)
@limiter.limit(PUBLIC_LIMIT)
def upload_receipt(
    request: Request,
    token: str,
    receipt: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
):
    """Public: upload the bank transfer receipt."""
    if content_length_exceeds_limit(
        request.headers.get("content-length"), max_size_bytes=settings.MAX_UPLOAD_SIZE_BYTES
    ):
        raise ValidationError("Upload too large")

    incoming = IncomingFile.from_upload(receipt) if receipt is not None else None
    link = payment_service.upload_receipt(db, token, incoming, request=request)
    data = payment_service.to_payment_link_read(link)
    return Envelope(
        data=ReceiptUploadResult(
            status=data.status,
            amount=data.amount,
            currency=data.currency,
            has_receipt=data.has_receipt,
            receipt=data.receipt,
        ),
        message="Receipt uploaded successfully",
    )


@router.get("/submission/{submission_id}", response_model=Envelope[list[PaymentLinkRead]])
def list_payment_links(
    submission_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    links = payment_service.list_for_submission(db, submission_id)
    return Envelope(data=[payment_service.to_payment_link_read(link) for link in links])


@router.get("/{link_id}/receipt")
def download_receipt(
    link_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    link, content = payment_service.read_receipt(db, link_id)
    return attachment_response(
        content,
        link.receipt_file_type or "application/octet-stream",
        link.receipt_original_name or link.receipt_file_name,
    )


@router.patch("/links/{link_id}/deactivate", response_model=Envelope[PaymentLinkRead])
def deactivate_link(
    link_id: UUID,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    link = payment_service.deactivate_link(db, link_id, session, request=request)
    return Envelope(data=payment_service.to_payment_link_read(link), message="Link deactivated")


@router.patch("/{link_id}/verify", response_model=Envelope[PaymentLinkRead])
def verify_payment(
    link_id: UUID,
    body: VerifyPaymentRequest,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    """Confirm or reject an uploaded receipt."""
    link = payment_service.verify_payment(
        db,
        link_id,
        session,
        status=body.status,
        rejection_reason=body.rejection_reason,
        request=request,
    )
    return Envelope(data=payment_service.to_payment_link_read(link), message=f"Payment {body.status}")
