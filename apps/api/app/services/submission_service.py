"""Submission service - intake, workflow transitions and conversion.

Every stage change goes through ``apply_transition``: the action is checked
against the transition table, then written as one conditional UPDATE keyed
on the expected current stage. Side effects (activity log, admin
notifications, queued applicant messages) are written in the same
transaction and committed together.
"""

import logging
import uuid
from uuid import UUID

from fastapi import Request
from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session

from app.core import workflow
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.workflow import Transition
from app.db.enums import (
    ActivityAction,
    ClientStatus,
    DocumentStatus,
    EntityType,
    NotificationType,
    SubmissionStatus,
    WorkflowAction,
    WorkflowStage,
)
from app.db.models import Client, Document, DocumentLink, PaymentLink, Submission
from app.schemas.auth import UserSession
from app.schemas.submission import SubmissionCreate, SubmissionUpdate
from app.services import activity_service, message_templates, notification_service, storage_service
from app.utils.datetimes import utc_now
from app.utils.normalization import normalize_email
from app.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)


# =============================================================================
# Lookups
# =============================================================================


def get_submission(db: Session, submission_id: UUID) -> Submission | None:
    return db.get(Submission, submission_id)


def require_submission(db: Session, submission_id: UUID) -> Submission:
    submission = get_submission(db, submission_id)
    if not submission:
        raise NotFoundError("Submission not found")
    return submission


def list_submissions(
    db: Session,
    pagination: PaginationParams,
    search: str | None = None,
    status: str | None = None,
    workflow_status: str | None = None,
    service: str | None = None,
    source: str | None = None,
) -> tuple[list[Submission], int]:
    """List submissions, newest first, with optional filters."""
    query = db.query(Submission)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Submission.name.ilike(pattern),
                Submission.email.ilike(pattern),
                Submission.phone.ilike(pattern),
                Submission.message.ilike(pattern),
            )
        )
    if status and status != "all":
        query = query.filter(Submission.status == status)
    if workflow_status and workflow_status != "all":
        query = query.filter(Submission.workflow_status == workflow_status)
    if service and service != "all":
        query = query.filter(Submission.service == service)
    if source and source != "all":
        query = query.filter(Submission.source == source)
    query = query.order_by(Submission.created_at.desc())
    return paginate_query(query, pagination)


def document_stats(db: Session, submission_id: UUID) -> dict[str, int]:
    """Total and verified document counts for a submission."""
    total, verified = (
        db.query(
            func.count(Document.id),
            func.count(Document.id).filter(Document.status == DocumentStatus.VERIFIED.value),
        )
        .filter(Document.submission_id == submission_id)
        .one()
    )
    return {"total": total or 0, "verified": verified or 0}


def track_submission(
    db: Session, phone: str | None = None, email: str | None = None
) -> tuple[Submission, dict[str, int]]:
    """Latest submission matching phone and/or email, with document stats."""
    if not phone and not email:
        raise ValidationError("Please provide a phone number or email address")

    query = db.query(Submission)
    if phone:
        query = query.filter(Submission.phone == phone)
    if email:
        query = query.filter(func.lower(Submission.email) == normalize_email(email))
    submission = query.order_by(Submission.created_at.desc()).first()
    if not submission:
        raise NotFoundError("No submission found with this information")
    return submission, document_stats(db, submission.id)


def get_stats(db: Session) -> dict:
    def _grouped(column) -> dict[str, int]:
        return {key: count for key, count in db.query(column, func.count()).group_by(column).all()}

    return {
        "total": db.query(func.count(Submission.id)).scalar() or 0,
        "by_status": _grouped(Submission.status),
        "by_workflow_status": _grouped(Submission.workflow_status),
        "by_service": _grouped(Submission.service),
        "by_source": _grouped(Submission.source),
    }


# =============================================================================
# Transitions
# =============================================================================


def apply_transition(
    db: Session,
    submission: Submission,
    action: WorkflowAction,
    values: dict | None = None,
) -> Transition:
    """
    Move ``submission`` along ``action`` with a compare-and-swap update.

    Raises:
        InvalidTransitionError: action not allowed from the current stage
        ConflictError: the stage changed underneath us (concurrent request)
    """
    current = submission.workflow_status
    transition = workflow.get_transition(action, current)

    result = db.execute(
        update(Submission)
        .where(Submission.id == submission.id, Submission.workflow_status == current)
        .values(
            workflow_status=transition.to_stage.value,
            updated_at=utc_now(),
            **(values or {}),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise ConflictError("Submission was modified by another request, reload and retry")

    db.expire(submission)
    logger.info(
        "Submission %s: %s -> %s (%s)",
        submission.id,
        current,
        transition.to_stage.value,
        action.value,
    )
    return transition


# =============================================================================
# Public intake
# =============================================================================


def create_submission(
    db: Session, data: SubmissionCreate, request: Request | None = None
) -> Submission:
    """Create a submission from the public form and notify admins + applicant."""
    submission = Submission(
        name=data.name,
        email=normalize_email(data.email),
        phone=data.phone,
        service=data.service.value,
        message=data.message.strip(),
        source=data.source.value,
        status=SubmissionStatus.NEW.value,
        workflow_status=WorkflowStage.PENDING_VALIDATION.value,
        converted_to_client=False,
    )
    db.add(submission)
    db.flush()

    activity_service.log_activity(
        db,
        ActivityAction.SUBMISSION_CREATED,
        EntityType.SUBMISSION,
        entity_id=submission.id,
        details={"name": submission.name, "service": submission.service, "source": submission.source},
        request=request,
    )
    notification_service.notify_admins(
        db,
        NotificationType.NEW_SUBMISSION,
        title="طلب جديد",
        message=f"طلب جديد من {submission.name} للخدمة: {submission.service}",
        link="/admin/submissions",
        data={"submission_id": str(submission.id), "name": submission.name, "service": submission.service},
    )
    notification_service.queue_applicant_message(
        db,
        submission.phone,
        message_templates.new_submission(submission.name, submission.service),
        context={"submission_id": str(submission.id), "event": "new_submission"},
    )
    db.commit()
    db.refresh(submission)
    return submission


# =============================================================================
# Staff actions
# =============================================================================


def view_submission(
    db: Session, submission_id: UUID, actor: UserSession, request: Request | None = None
) -> Submission:
    """Fetch a submission for staff; first view marks it as viewed."""
    submission = require_submission(db, submission_id)
    if submission.status == SubmissionStatus.NEW.value:
        db.execute(
            update(Submission)
            .where(Submission.id == submission.id, Submission.status == SubmissionStatus.NEW.value)
            .values(
                status=SubmissionStatus.VIEWED.value,
                reviewed_by=actor.user_id,
                reviewed_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        db.expire(submission)
    activity_service.log_activity(
        db,
        ActivityAction.SUBMISSION_VIEWED,
        EntityType.SUBMISSION,
        entity_id=submission.id,
        user_id=actor.user_id,
        request=request,
    )
    db.commit()
    db.refresh(submission)
    return submission


def update_submission(
    db: Session,
    submission_id: UUID,
    data: SubmissionUpdate,
    actor: UserSession,
    request: Request | None = None,
) -> Submission:
    submission = require_submission(db, submission_id)
    if submission.workflow_status in {s.value for s in workflow.TERMINAL_STAGES}:
        raise ConflictError("Converted submissions can no longer be edited")

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if hasattr(value, "value"):
            value = value.value
        if field == "email":
            value = normalize_email(value)
        setattr(submission, field, value)
    submission.reviewed_by = actor.user_id
    submission.reviewed_at = utc_now()

    activity_service.log_activity(
        db,
        ActivityAction.SUBMISSION_UPDATED,
        EntityType.SUBMISSION,
        entity_id=submission.id,
        user_id=actor.user_id,
        details={"fields": sorted(changes)},
        request=request,
    )
    db.commit()
    db.refresh(submission)
    return submission


def validate_submission(
    db: Session, submission_id: UUID, actor: UserSession, request: Request | None = None
) -> Submission:
    submission = require_submission(db, submission_id)
    now = utc_now()
    apply_transition(
        db,
        submission,
        WorkflowAction.VALIDATE,
        {
            "status": SubmissionStatus.VIEWED.value,
            "validated_by": actor.user_id,
            "validated_at": now,
            "reviewed_by": actor.user_id,
            "reviewed_at": now,
        },
    )
    activity_service.log_activity(
        db,
        ActivityAction.SUBMISSION_VALIDATED,
        EntityType.SUBMISSION,
        entity_id=submission.id,
        user_id=actor.user_id,
        details={"name": submission.name},
        request=request,
    )
    notification_service.notify_admins(
        db,
        NotificationType.SUBMISSION_VALIDATED,
        title="تم التحقق من الطلب",
        message=f"تم التحقق من طلب {submission.name} بواسطة {actor.name}",
        link=f"/admin/submissions/{submission.id}",
        data={"submission_id": str(submission.id)},
    )
    notification_service.queue_applicant_message(
        db,
        submission.phone,
        message_templates.status_update(submission.name, WorkflowStage.VALIDATED.value),
        context={"submission_id": str(submission.id), "event": "validated"},
    )
    db.commit()
    db.refresh(submission)
    return submission


def confirm_call(
    db: Session,
    submission_id: UUID,
    actor: UserSession,
    notes: str | None = None,
    request: Request | None = None,
) -> Submission:
    submission = require_submission(db, submission_id)
    notes = (notes or "").strip() or None
    apply_transition(
        db,
        submission,
        WorkflowAction.CONFIRM_CALL,
        {
            "status": SubmissionStatus.CONTACTED.value,
            "call_confirmed_by": actor.user_id,
            "call_confirmed_at": utc_now(),
            "call_notes": notes,
        },
    )
    activity_service.log_activity(
        db,
        ActivityAction.SUBMISSION_CALL_CONFIRMED,
        EntityType.SUBMISSION,
        entity_id=submission.id,
        user_id=actor.user_id,
        details={"name": submission.name, "has_notes": notes is not None},
        request=request,
    )
    notification_service.notify_admins(
        db,
        NotificationType.CALL_CONFIRMED,
        title="تم تأكيد المكالمة",
        message=f"تم تأكيد المكالمة مع {submission.name}",
        link=f"/admin/submissions/{submission.id}",
        data={"submission_id": str(submission.id)},
    )
    notification_service.queue_applicant_message(
        db,
        submission.phone,
        message_templates.status_update(submission.name, WorkflowStage.CALL_CONFIRMED.value, notes),
        context={"submission_id": str(submission.id), "event": "call_confirmed"},
    )
    db.commit()
    db.refresh(submission)
    return submission


def convert_to_client(
    db: Session, submission_id: UUID, actor: UserSession, request: Request | None = None
) -> tuple[Submission, Client]:
    """
    Convert a fully verified submission into a Client.

    The submission update and the client insert share one transaction: either
    both are committed or neither is.
    """
    submission = require_submission(db, submission_id)
    if submission.converted_to_client:
        raise ConflictError("Submission already converted to client")
    workflow.get_transition(WorkflowAction.CONVERT, submission.workflow_status)

    client_id = uuid.uuid4()
    try:
        # The extra converted_to_client guard closes the double-conversion race
        result = db.execute(
            update(Submission)
            .where(
                Submission.id == submission.id,
                Submission.converted_to_client.is_(False),
                Submission.workflow_status == WorkflowStage.DOCUMENTS_VERIFIED.value,
            )
            .values(
                converted_to_client=True,
                client_id=client_id,
                status=SubmissionStatus.COMPLETED.value,
                workflow_status=WorkflowStage.CONVERTED_TO_CLIENT.value,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError("Submission already converted to client")

        client = Client(
            id=client_id,
            submission_id=submission.id,
            name=submission.name,
            email=submission.email,
            phone=submission.phone,
            service=submission.service,
            message=submission.message,
            source=submission.source,
            status=ClientStatus.NEW.value,
            created_by=actor.user_id,
        )
        db.add(client)
        db.flush()

        activity_service.log_activity(
            db,
            ActivityAction.SUBMISSION_CONVERTED,
            EntityType.SUBMISSION,
            entity_id=submission.id,
            user_id=actor.user_id,
            details={"client_id": str(client_id), "name": submission.name},
            request=request,
        )
        notification_service.notify_admins(
            db,
            NotificationType.CONVERTED_TO_CLIENT,
            title="تم التحويل إلى عميل",
            message=f"تم تحويل طلب {submission.name} إلى عميل بنجاح",
            link=f"/admin/clients/{client_id}",
            data={"submission_id": str(submission.id), "client_id": str(client_id)},
        )
        notification_service.queue_applicant_message(
            db,
            submission.phone,
            message_templates.welcome_client(submission.name),
            context={"submission_id": str(submission.id), "event": "converted_to_client"},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(submission)
    db.refresh(client)
    logger.info("Submission %s converted to client %s", submission.id, client.id)
    return submission, client


def delete_submission(
    db: Session, submission_id: UUID, actor: UserSession, request: Request | None = None
) -> None:
    """
    Delete a submission together with its documents, links and stored files.

    A client created from the submission is kept; its back-reference is cleared.
    Files are removed only after the rows are committed.
    """
    submission = require_submission(db, submission_id)

    stored_files: list[tuple[str, str]] = [
        (doc.storage_key, doc.storage_type)
        for doc in db.query(Document).filter(Document.submission_id == submission.id).all()
    ]
    stored_files.extend(
        (link.receipt_storage_key, link.receipt_storage_type)
        for link in db.query(PaymentLink).filter(PaymentLink.submission_id == submission.id).all()
        if link.receipt_storage_key
    )

    counts = {
        "documents": db.query(Document)
        .filter(Document.submission_id == submission.id)
        .delete(synchronize_session=False),
        "document_links": db.query(DocumentLink)
        .filter(DocumentLink.submission_id == submission.id)
        .delete(synchronize_session=False),
        "payment_links": db.query(PaymentLink)
        .filter(PaymentLink.submission_id == submission.id)
        .delete(synchronize_session=False),
    }
    db.query(Client).filter(Client.submission_id == submission.id).update(
        {Client.submission_id: None}, synchronize_session=False
    )
    activity_service.log_activity(
        db,
        ActivityAction.SUBMISSION_DELETED,
        EntityType.SUBMISSION,
        entity_id=submission.id,
        user_id=actor.user_id,
        details={"name": submission.name, **counts},
        request=request,
    )
    db.query(Submission).filter(Submission.id == submission.id).delete(synchronize_session=False)
    db.expunge(submission)
    db.commit()

    for key, storage_type in stored_files:
        storage_service.delete_quietly(key, storage_type)
    logger.info("Deleted submission %s (%s)", submission_id, counts)


def get_links(db: Session, submission_id: UUID) -> dict:
    """Document links, payment links and documents of a submission."""
    submission = require_submission(db, submission_id)
    return {
        "document_links": db.query(DocumentLink)
        .filter(DocumentLink.submission_id == submission.id)
        .order_by(DocumentLink.created_at.desc())
        .all(),
        "payment_links": db.query(PaymentLink)
        .filter(PaymentLink.submission_id == submission.id)
        .order_by(PaymentLink.created_at.desc())
        .all(),
        "documents": db.query(Document)
        .filter(Document.submission_id == submission.id)
        .order_by(Document.uploaded_at.desc())
        .all(),
    }
