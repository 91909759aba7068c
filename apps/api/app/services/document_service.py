"""Document service - upload links, public uploads and staff verification."""

import json
import logging
from uuid import UUID

from fastapi import Request
from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.core import workflow
from app.core.config import settings
from app.core.errors import NotFoundError, ValidationError
from app.db.enums import (
    ActivityAction,
    DocumentStatus,
    DocumentType,
    EntityType,
    NotificationType,
    WorkflowAction,
    WorkflowStage,
)
from app.db.models import Document, DocumentLink, Submission
from app.schemas.auth import UserSession
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

VERIFY_STATUSES = {
    DocumentStatus.VERIFIED.value,
    DocumentStatus.REJECTED.value,
    DocumentStatus.NEEDS_REPLACEMENT.value,
}

DOCUMENT_LABELS = {
    DocumentType.PASSPORT.value: "جواز السفر",
    DocumentType.NATIONAL_ID.value: "البطاقة الوطنية",
    DocumentType.BIRTH_CERTIFICATE.value: "شهادة الميلاد",
    DocumentType.DIPLOMA.value: "الشهادة الدراسية",
    DocumentType.WORK_CONTRACT.value: "عقد العمل",
    DocumentType.BANK_STATEMENT.value: "كشف الحساب البنكي",
    DocumentType.PROOF_OF_ADDRESS.value: "إثبات السكن",
    DocumentType.MARRIAGE_CERTIFICATE.value: "عقد الزواج",
    DocumentType.POLICE_CLEARANCE.value: "السجل العدلي",
    DocumentType.MEDICAL_REPORT.value: "التقرير الطبي",
    DocumentType.OTHER.value: "مستند آخر",
}


# =============================================================================
# Links
# =============================================================================


def generate_link(
    db: Session,
    submission_id: UUID,
    actor: UserSession,
    expires_in_days: int | None = None,
    max_uploads: int | None = None,
    notes: str | None = None,
    request: Request | None = None,
) -> DocumentLink:
    """Create an upload link and move the submission to documents_requested."""
    days = access_link_service.resolve_expiry_days(expires_in_days)
    max_uploads = settings.DEFAULT_MAX_UPLOADS if max_uploads is None else max_uploads
    if max_uploads < 1:
        raise ValidationError("maxUploads must be at least 1")

    submission = submission_service.require_submission(db, submission_id)
    submission_service.apply_transition(db, submission, WorkflowAction.REQUEST_DOCUMENTS)

    notes = (notes or "").strip() or None
    link = DocumentLink(
        submission_id=submission.id,
        token=access_link_service.generate_unique_token(db, DocumentLink),
        expires_at=days_from_now(days),
        is_active=True,
        max_uploads=max_uploads,
        upload_count=0,
        notes=notes,
        generated_by=actor.user_id,
    )
    db.add(link)
    db.flush()

    activity_service.log_activity(
        db,
        ActivityAction.DOCUMENT_LINK_GENERATED,
        EntityType.DOCUMENT_LINK,
        entity_id=link.id,
        user_id=actor.user_id,
        details={
            "submission_id": str(submission.id),
            "expires_in_days": days,
            "max_uploads": max_uploads,
        },
        request=request,
    )
    notification_service.queue_applicant_message(
        db,
        submission.phone,
        message_templates.documents_requested(submission.name, link.token, days, max_uploads, notes),
        context={"submission_id": str(submission.id), "event": "documents_requested"},
    )
    db.commit()
    db.refresh(link)
    return link


def require_valid_link(db: Session, token: str) -> DocumentLink:
    """Return the link for ``token`` or raise NotFound / Validation errors."""
    link = access_link_service.get_by_token(db, DocumentLink, token)
    if not link:
        raise NotFoundError("Invalid upload link")
    reason = link.invalid_reason()
    if reason:
        raise ValidationError(reason)
    return link


def validate_link(db: Session, token: str) -> tuple[DocumentLink, Submission]:
    link = require_valid_link(db, token)
    submission = submission_service.require_submission(db, link.submission_id)
    return link, submission


def deactivate_link(
    db: Session, link_id: UUID, actor: UserSession, request: Request | None = None
) -> DocumentLink:
    link = db.get(DocumentLink, link_id)
    if not link:
        raise NotFoundError("Document link not found")
    if link.is_active:
        link.is_active = False
        activity_service.log_activity(
            db,
            ActivityAction.DOCUMENT_LINK_DEACTIVATED,
            EntityType.DOCUMENT_LINK,
            entity_id=link.id,
            user_id=actor.user_id,
            details={"submission_id": str(link.submission_id)},
            request=request,
        )
        db.commit()
        db.refresh(link)
    return link


# =============================================================================
# Public upload
# =============================================================================


def parse_document_types(raw: list[str] | str | None, count: int) -> list[str]:
    """
    Resolve one document type per file.

    Accepts a JSON array string, repeated form values or a single value.
    Missing or unknown entries fall back to ``other``.
    """
    values: list = []
    if isinstance(raw, str):
        raw = [raw]
    for item in raw or []:
        item = (item or "").strip()
        if item.startswith("["):
            try:
                parsed = json.loads(item)
            except ValueError:
                parsed = []
            values.extend(parsed if isinstance(parsed, list) else [])
        elif item:
            values.append(item)

    known = {t.value for t in DocumentType}
    resolved = []
    for index in range(count):
        value = values[index] if index < len(values) else None
        resolved.append(value if isinstance(value, str) and value in known else DocumentType.OTHER.value)
    return resolved


def _document_file_name(applicant: str, document_type: str, stamp: int, index: int, original: str) -> str:
    return f"{sanitize_filename_part(applicant)}_{document_type}_{stamp}_{index}{file_extension(original)}"


def upload_documents(
    db: Session,
    token: str,
    files: list[IncomingFile],
    document_types: list[str] | str | None = None,
    request: Request | None = None,
) -> tuple[list[Document], DocumentLink]:
    """
    Store files uploaded through a public link.

    All validation runs before anything is stored. Capacity is consumed with
    one conditional update; if it or anything after it fails, every file
    stored in this call is removed again.
    """
    link = require_valid_link(db, token)

    if not files:
        raise ValidationError("No files uploaded")
    if len(files) > settings.MAX_FILES_PER_UPLOAD:
        raise ValidationError(f"You can upload at most {settings.MAX_FILES_PER_UPLOAD} files at once")
    if link.upload_count + len(files) > link.max_uploads:
        raise ValidationError(
            f"Upload limit exceeded. You can upload {link.remaining_uploads} more file(s)"
        )
    for incoming in files:
        validate_upload(incoming.filename, incoming.content_type, incoming.size)

    submission = submission_service.require_submission(db, link.submission_id)
    # Checked up front so a wrong stage stores nothing
    workflow.get_transition(WorkflowAction.UPLOAD_DOCUMENTS, submission.workflow_status)

    types = parse_document_types(document_types, len(files))
    stamp = int(utc_now().timestamp() * 1000)
    count = len(files)

    try:
        with storage_service.staged_files() as staged:
            documents = []
            for index, (incoming, document_type) in enumerate(zip(files, types)):
                file_name = _document_file_name(
                    submission.name, document_type, stamp, index, incoming.filename
                )
                stored = staged.store(
                    f"documents/{submission.id}/{file_name}", incoming.file, incoming.content_type
                )
                documents.append(
                    Document(
                        submission_id=submission.id,
                        document_link_id=link.id,
                        file_name=file_name,
                        original_name=incoming.filename,
                        file_type=incoming.content_type,
                        file_size=stored.size,
                        storage_key=stored.key,
                        storage_type=stored.storage_type.value,
                        document_type=document_type,
                        status=DocumentStatus.PENDING.value,
                    )
                )

            now = utc_now()
            result = db.execute(
                update(DocumentLink)
                .where(
                    DocumentLink.id == link.id,
                    DocumentLink.is_active.is_(True),
                    DocumentLink.expires_at > now,
                    DocumentLink.upload_count + count <= DocumentLink.max_uploads,
                )
                .values(upload_count=DocumentLink.upload_count + count, last_used_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ValidationError("Upload limit exceeded or link no longer valid")

            db.add_all(documents)
            db.flush()
            submission_service.apply_transition(db, submission, WorkflowAction.UPLOAD_DOCUMENTS)

            activity_service.log_activity(
                db,
                ActivityAction.DOCUMENT_UPLOADED,
                EntityType.SUBMISSION,
                entity_id=submission.id,
                details={
                    "document_link_id": str(link.id),
                    "count": count,
                    "document_types": types,
                },
                request=request,
            )
            notification_service.notify_admins(
                db,
                NotificationType.DOCUMENTS_UPLOADED,
                title="مستندات جديدة",
                message=f"قام {submission.name} بتحميل {count} مستند(ات)",
                link=f"/admin/submissions/{submission.id}",
                data={"submission_id": str(submission.id), "count": count},
            )
            db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(link)
    for document in documents:
        db.refresh(document)
    logger.info("Accepted %s document(s) for submission %s", count, submission.id)
    return documents, link


# =============================================================================
# Staff operations
# =============================================================================


def get_document(db: Session, document_id: UUID) -> Document:
    document = db.get(Document, document_id)
    if not document:
        raise NotFoundError("Document not found")
    return document


def list_for_submission(db: Session, submission_id: UUID) -> list[Document]:
    submission_service.require_submission(db, submission_id)
    return (
        db.query(Document)
        .filter(Document.submission_id == submission_id)
        .order_by(Document.uploaded_at.desc())
        .all()
    )


def _all_verified(db: Session, submission_id: UUID) -> bool:
    total, verified = (
        db.query(
            func.count(Document.id),
            func.count(Document.id).filter(Document.status == DocumentStatus.VERIFIED.value),
        )
        .filter(Document.submission_id == submission_id)
        .one()
    )
    return total > 0 and total == verified


def verify_document(
    db: Session,
    document_id: UUID,
    actor: UserSession,
    status: str,
    rejection_reason: str | None = None,
    notes: str | None = None,
    request: Request | None = None,
) -> tuple[Document, Submission]:
    """
    Record a review decision on one document.

    When the last outstanding document becomes verified, the submission moves
    to documents_verified. A rejection or replacement request on a submission
    already at documents_verified moves it back to documents_uploaded, so it
    cannot be converted until the document is verified again.
    """
    if status not in VERIFY_STATUSES:
        raise ValidationError("Invalid status. Must be verified, rejected or needs_replacement")

    document = get_document(db, document_id)
    submission = submission_service.require_submission(db, document.submission_id)

    document.status = status
    document.verified_by = actor.user_id
    document.verified_at = utc_now()
    if status == DocumentStatus.VERIFIED.value:
        document.rejection_reason = None
    else:
        document.rejection_reason = (rejection_reason or "").strip() or None
    if notes is not None:
        document.notes = notes.strip() or None
    db.flush()

    verified = status == DocumentStatus.VERIFIED.value
    activity_service.log_activity(
        db,
        ActivityAction.DOCUMENT_VERIFIED if verified else ActivityAction.DOCUMENT_REJECTED,
        EntityType.DOCUMENT,
        entity_id=document.id,
        user_id=actor.user_id,
        details={
            "submission_id": str(submission.id),
            "document_type": document.document_type,
            "status": status,
            "rejection_reason": document.rejection_reason,
        },
        request=request,
    )
    if verified:
        notification_service.queue_applicant_message(
            db,
            submission.phone,
            message_templates.document_verified(
                submission.name, DOCUMENT_LABELS.get(document.document_type, document.original_name)
            ),
            context={"submission_id": str(submission.id), "event": "document_verified"},
        )

    if (
        verified
        and submission.workflow_status == WorkflowStage.DOCUMENTS_UPLOADED.value
        and _all_verified(db, submission.id)
    ):
        submission_service.apply_transition(db, submission, WorkflowAction.VERIFY_DOCUMENTS)
        notification_service.notify_admins(
            db,
            NotificationType.DOCUMENTS_VERIFIED,
            title="تم التحقق من جميع المستندات",
            message=f"تم التحقق من جميع مستندات {submission.name}، جاهز للتحويل إلى عميل",
            link=f"/admin/submissions/{submission.id}",
            data={"submission_id": str(submission.id)},
        )
        notification_service.queue_applicant_message(
            db,
            submission.phone,
            message_templates.status_update(submission.name, WorkflowStage.DOCUMENTS_VERIFIED.value),
            context={"submission_id": str(submission.id), "event": "documents_verified"},
        )
    elif not verified and submission.workflow_status == WorkflowStage.DOCUMENTS_VERIFIED.value:
        submission_service.apply_transition(db, submission, WorkflowAction.REOPEN_DOCUMENTS)

    db.commit()
    db.refresh(document)
    db.refresh(submission)
    return document, submission


def read_document(db: Session, document_id: UUID) -> tuple[Document, bytes]:
    document = get_document(db, document_id)
    return document, storage_service.read_file(document.storage_key, document.storage_type)


def delete_document(
    db: Session, document_id: UUID, actor: UserSession, request: Request | None = None
) -> None:
    """Delete a document row, then its stored file."""
    document = get_document(db, document_id)
    key, storage_type = document.storage_key, document.storage_type
    activity_service.log_activity(
        db,
        ActivityAction.DOCUMENT_DELETED,
        EntityType.DOCUMENT,
        entity_id=document.id,
        user_id=actor.user_id,
        details={
            "submission_id": str(document.submission_id),
            "original_name": document.original_name,
            "document_type": document.document_type,
        },
        request=request,
    )
    db.delete(document)
    db.commit()
    storage_service.delete_quietly(key, storage_type)
