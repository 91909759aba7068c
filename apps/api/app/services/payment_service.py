"""Payment service - payment links, receipt uploads and staff verification."""

import logging
from decimal import Decimal, InvalidOperation
from uuid import UUID

from fastapi import Request
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core import workflow
from app.core.config import settings
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.db.enums import (
    ActivityAction,
    EntityType,
    NotificationType,
    PaymentStatus,
    WorkflowAction,
)
from app.db.models import PaymentLink, Submission
from app.schemas.auth import UserSession
from app.schemas.payment import BankDetails, PaymentLinkRead, ReceiptRead
from app.services import (
    access_link_service,
    activity_service,
    message_templates,
    notification_service,
    storage_service,
    submission_service,
)
from app.utils.datetimes import days_from_now, utc_now
from app.utils.file_upload import IncomingFile, file_extension, validate_upload
from app.utils.normalization import sanitize_filename_part

logger = logging.getLogger(__name__)

VERIFY_STATUSES = {PaymentStatus.CONFIRMED.value, PaymentStatus.REJECTED.value}


def _format_amount(amount: Decimal) -> str:
    return f"{amount.normalize():f}" if amount == amount.to_integral() else f"{amount:.2f}"


def _resolve_bank_details(override: BankDetails | None) -> dict:
    details = dict(settings.default_bank_details)
    if override:
        details.update(override.model_dump(exclude_none=True))
    return details


def _validate_amount(amount) -> Decimal:
    if amount is None:
        raise ValidationError("Amount is required")
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError("Amount must be a number") from exc
    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount must be greater than 0")
    return value.quantize(Decimal("0.01"))


# =============================================================================
# Links
# =============================================================================


def generate_link(
    db: Session,
    submission_id: UUID,
    actor: UserSession,
    amount,
    currency: str | None = None,
    expires_in_days: int | None = None,
    notes: str | None = None,
    bank_details: BankDetails | None = None,
    request: Request | None = None,
) -> PaymentLink:
    """Create a payment link and move the submission to payment_requested."""
    value = _validate_amount(amount)
    days = access_link_service.resolve_expiry_days(expires_in_days)
    currency = (currency or settings.DEFAULT_CURRENCY).upper()

    submission = submission_service.require_submission(db, submission_id)
    submission_service.apply_transition(db, submission, WorkflowAction.REQUEST_PAYMENT)

    notes = (notes or "").strip() or None
    link = PaymentLink(
        submission_id=submission.id,
        token=access_link_service.generate_unique_token(db, PaymentLink),
        amount=value,
        currency=currency,
        bank_details=_resolve_bank_details(bank_details),
        notes=notes,
        expires_at=days_from_now(days),
        is_active=True,
        status=PaymentStatus.PENDING.value,
        generated_by=actor.user_id,
    )
    db.add(link)
    db.flush()

    activity_service.log_activity(
        db,
        ActivityAction.PAYMENT_LINK_GENERATED,
        EntityType.PAYMENT_LINK,
        entity_id=link.id,
        user_id=actor.user_id,
        details={
            "submission_id": str(submission.id),
            "amount": str(value),
            "currency": currency,
            "expires_in_days": days,
        },
        request=request,
    )
    notification_service.queue_applicant_message(
        db,
        submission.phone,
        message_templates.payment_requested(
            submission.name, _format_amount(value), currency, link.token, days, notes
        ),
        context={"submission_id": str(submission.id), "event": "payment_requested"},
    )
    db.commit()
    db.refresh(link)
    return link


def _require_link_by_token(db: Session, token: str) -> PaymentLink:
    link = access_link_service.get_by_token(db, PaymentLink, token)
    if not link:
        raise NotFoundError("Invalid payment link")
    if link.status == PaymentStatus.CONFIRMED.value:
        raise ConflictError("Payment has already been confirmed")
    reason = link.invalid_reason()
    if reason:
        raise ValidationError(reason)
    return link


def validate_link(db: Session, token: str) -> tuple[PaymentLink, Submission]:
    link = _require_link_by_token(db, token)
    submission = submission_service.require_submission(db, link.submission_id)
    return link, submission


def get_link(db: Session, link_id: UUID) -> PaymentLink:
    link = db.get(PaymentLink, link_id)
    if not link:
        raise NotFoundError("Payment link not found")
    return link


def list_for_submission(db: Session, submission_id: UUID) -> list[PaymentLink]:
    submission_service.require_submission(db, submission_id)
    return (
        db.query(PaymentLink)
        .filter(PaymentLink.submission_id == submission_id)
        .order_by(PaymentLink.created_at.desc())
        .all()
    )


def deactivate_link(
    db: Session, link_id: UUID, actor: UserSession, request: Request | None = None
) -> PaymentLink:
    link = get_link(db, link_id)
    if link.is_active:
        link.is_active = False
        activity_service.log_activity(
            db,
            ActivityAction.PAYMENT_LINK_DEACTIVATED,
            EntityType.PAYMENT_LINK,
            entity_id=link.id,
            user_id=actor.user_id,
            details={"submission_id": str(link.submission_id)},
            request=request,
        )
        db.commit()
        db.refresh(link)
    return link


def to_payment_link_read(link: PaymentLink) -> PaymentLinkRead:
    data = PaymentLinkRead.model_validate(link)
    if link.has_receipt:
        data.receipt = ReceiptRead(
            file_name=link.receipt_file_name,
            original_name=link.receipt_original_name,
            file_type=link.receipt_file_type,
            file_size=link.receipt_file_size,
            storage_type=link.receipt_storage_type,
            uploaded_at=link.receipt_uploaded_at,
        )
    return data


# =============================================================================
# Public receipt upload
# =============================================================================


def upload_receipt(
    db: Session, token: str, receipt: IncomingFile | None, request: Request | None = None
) -> PaymentLink:
    """
    Attach a payment receipt to a pending link.

    The file is validated before it is stored and removed again if anything
    after storing fails.
    """
    link = _require_link_by_token(db, token)
    if receipt is None:
        raise ValidationError("No receipt uploaded")
    validate_upload(receipt.filename, receipt.content_type, receipt.size)

    submission = submission_service.require_submission(db, link.submission_id)
    workflow.get_transition(WorkflowAction.UPLOAD_RECEIPT, submission.workflow_status)

    stamp = int(utc_now().timestamp() * 1000)
    file_name = (
        f"{sanitize_filename_part(submission.name)}_payment_receipt_{stamp}"
        f"{file_extension(receipt.filename)}"
    )

    try:
        with storage_service.staged_files() as staged:
            stored = staged.store(
                f"payments/{submission.id}/{file_name}", receipt.file, receipt.content_type
            )
            now = utc_now()
            result = db.execute(
                update(PaymentLink)
                .where(
                    PaymentLink.id == link.id,
                    PaymentLink.status == PaymentStatus.PENDING.value,
                    PaymentLink.is_active.is_(True),
                    PaymentLink.expires_at > now,
                )
                .values(
                    status=PaymentStatus.RECEIPT_UPLOADED.value,
                    receipt_file_name=file_name,
                    receipt_original_name=receipt.filename,
                    receipt_file_type=receipt.content_type,
                    receipt_file_size=stored.size,
                    receipt_storage_key=stored.key,
                    receipt_storage_type=stored.storage_type.value,
                    receipt_uploaded_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConflictError("A receipt has already been uploaded for this link")

            submission_service.apply_transition(db, submission, WorkflowAction.UPLOAD_RECEIPT)
            activity_service.log_activity(
                db,
                ActivityAction.PAYMENT_RECEIPT_UPLOADED,
                EntityType.PAYMENT_LINK,
                entity_id=link.id,
                details={"submission_id": str(submission.id), "file_name": file_name},
                request=request,
            )
            notification_service.notify_admins(
                db,
                NotificationType.PAYMENT_RECEIPT_UPLOADED,
                title="إيصال دفع جديد",
                message=f"قام {submission.name} بتحميل إيصال الدفع",
                link=f"/admin/submissions/{submission.id}",
                data={"submission_id": str(submission.id), "payment_link_id": str(link.id)},
            )
            db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(link)
    logger.info("Receipt uploaded for payment link %s", link.id)
    return link


def read_receipt(db: Session, link_id: UUID) -> tuple[PaymentLink, bytes]:
    link = get_link(db, link_id)
    if not link.has_receipt:
        raise NotFoundError("No receipt uploaded for this payment link")
    return link, storage_service.read_file(link.receipt_storage_key, link.receipt_storage_type)


# =============================================================================
# Staff verification
# =============================================================================


def verify_payment(
    db: Session,
    link_id: UUID,
    actor: UserSession,
    status: str,
    rejection_reason: str | None = None,
    request: Request | None = None,
) -> PaymentLink:
    """
    Confirm or reject an uploaded receipt.

    Confirmed is terminal. A rejected link is deactivated and the submission
    returns to payment_requested so a new link can be issued.
    """
    if status not in VERIFY_STATUSES:
        raise ValidationError("Invalid status. Must be confirmed or rejected")

    link = get_link(db, link_id)
    if link.status == PaymentStatus.CONFIRMED.value:
        raise ConflictError("Payment has already been confirmed")
    if link.status != PaymentStatus.RECEIPT_UPLOADED.value:
        raise ValidationError("No receipt has been uploaded for this payment link")

    submission = submission_service.require_submission(db, link.submission_id)
    confirmed = status == PaymentStatus.CONFIRMED.value
    action = WorkflowAction.CONFIRM_PAYMENT if confirmed else WorkflowAction.REJECT_PAYMENT
    workflow.get_transition(action, submission.workflow_status)

    now = utc_now()
    reason = (rejection_reason or "").strip() or None
    if confirmed:
        values = {"status": status, "confirmed_by": actor.user_id, "confirmed_at": now}
    else:
        values = {
            "status": status,
            "rejected_by": actor.user_id,
            "rejected_at": now,
            "rejection_reason": reason,
            "is_active": False,
        }

    result = db.execute(
        update(PaymentLink)
        .where(
            PaymentLink.id == link.id,
            PaymentLink.status == PaymentStatus.RECEIPT_UPLOADED.value,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise ConflictError("Payment link was modified by another request, reload and retry")

    submission_service.apply_transition(db, submission, action)
    amount = _format_amount(link.amount)
    if confirmed:
        message = message_templates.payment_confirmed(submission.name, amount, link.currency)
    else:
        message = message_templates.payment_rejected(submission.name, reason)

    activity_service.log_activity(
        db,
        ActivityAction.PAYMENT_CONFIRMED if confirmed else ActivityAction.PAYMENT_REJECTED,
        EntityType.PAYMENT_LINK,
        entity_id=link.id,
        user_id=actor.user_id,
        details={
            "submission_id": str(submission.id),
            "amount": str(link.amount),
            "currency": link.currency,
            "rejection_reason": reason,
        },
        request=request,
    )
    notification_service.queue_applicant_message(
        db,
        submission.phone,
        message,
        context={"submission_id": str(submission.id), "event": f"payment_{status}"},
    )
    db.commit()
    db.expire(link)
    db.refresh(link)
    return link
