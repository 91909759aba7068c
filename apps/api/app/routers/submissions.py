"""Submissions router - public intake/tracking and the staff workflow actions."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_roles
from app.core.rate_limit import PUBLIC_LIMIT, limiter
from app.db.enums import ROLES_ADMIN, ROLES_CAN_VIEW, ROLES_STAFF
from app.schemas.auth import UserSession
from app.schemas.client import ClientRead
from app.schemas.common import Envelope, Page
from app.schemas.document import DocumentLinkRead, DocumentRead
from app.schemas.submission import (
    ConfirmCallRequest,
    DocumentStats,
    SubmissionCreate,
    SubmissionRead,
    SubmissionStats,
    SubmissionUpdate,
    TrackedSubmission,
    TrackRequest,
)
from app.services import payment_service, submission_service
from app.utils.pagination import PaginationParams, get_pagination, pagination_meta

router = APIRouter()


# =============================================================================
# Public
# =============================================================================


@router.post("", response_model=Envelope[SubmissionRead], status_code=201)
@limiter.limit(PUBLIC_LIMIT)
def create_submission(
    request: Request,
    body: SubmissionCreate,
    db: Session = Depends(get_db),
):
    """Public contact form."""
    submission = submission_service.create_submission(db, body, request=request)
    return Envelope(
        data=SubmissionRead.model_validate(submission),
        message="Submission received successfully",
    )


@router.post("/track", response_model=Envelope[TrackedSubmission])
@limiter.limit(PUBLIC_LIMIT)
def track_submission(
    request: Request,
    body: TrackRequest,
    db: Session = Depends(get_db),
):
    """Latest submission for a phone number and/or email."""
    submission, stats = submission_service.track_submission(db, phone=body.phone, email=body.email)
    return Envelope(
        data=TrackedSubmission(
            id=submission.id,
            name=submission.name,
            phone=submission.phone,
            email=submission.email,
            service=submission.service,
            status=submission.status,
            workflow_status=submission.workflow_status,
            created_at=submission.created_at,
            document_stats=DocumentStats(**stats),
        )
    )


# =============================================================================
# Staff
# =============================================================================


@router.get("", response_model=Envelope[Page[SubmissionRead]])
def list_submissions(
    search: str | None = Query(None),
    status: str | None = Query(None),
    workflow_status: str | None = Query(None, alias="workflowStatus"),
    service: str | None = Query(None),
    source: str | None = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    items, total = submission_service.list_submissions(
        db,
        pagination,
        search=search,
        status=status,
        workflow_status=workflow_status,
        service=service,
        source=source,
    )
    return Envelope(
        data=Page(
            items=[SubmissionRead.model_validate(s) for s in items],
            **pagination_meta(total, pagination),
        )
    )


@router.get("/stats/overview", response_model=Envelope[SubmissionStats])
def submission_stats(
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    return Envelope(data=SubmissionStats(**submission_service.get_stats(db)))


@router.get("/{submission_id}", response_model=Envelope[SubmissionRead])
def get_submission(
    submission_id: UUID,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    submission = submission_service.view_submission(db, submission_id, session, request=request)
    return Envelope(data=SubmissionRead.model_validate(submission))


@router.put("/{submission_id}", response_model=Envelope[SubmissionRead])
def update_submission(
    submission_id: UUID,
    body: SubmissionUpdate,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    submission = submission_service.update_submission(db, submission_id, body, session, request=request)
    return Envelope(data=SubmissionRead.model_validate(submission), message="Submission updated")


@router.delete("/{submission_id}", response_model=Envelope[None])
def delete_submission(
    submission_id: UUID,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db),
):
    """Delete a submission with its documents, links and stored files."""
    submission_service.delete_submission(db, submission_id, session, request=request)
    return Envelope(message="Submission deleted")


@router.get("/{submission_id}/links", response_model=Envelope[dict])
def get_submission_links(
    submission_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    links = submission_service.get_links(db, submission_id)
    return Envelope(
        data={
            "document_links": [
                DocumentLinkRead.model_validate(link).model_dump(mode="json")
                for link in links["document_links"]
            ],
            "payment_links": [
                payment_service.to_payment_link_read(link).model_dump(mode="json")
                for link in links["payment_links"]
            ],
            "documents": [
                DocumentRead.model_validate(doc).model_dump(mode="json") for doc in links["documents"]
            ],
        }
    )


# =============================================================================
# Workflow actions
# =============================================================================


@router.post("/{submission_id}/validate", response_model=Envelope[SubmissionRead])
def validate_submission(
    submission_id: UUID,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    submission = submission_service.validate_submission(db, submission_id, session, request=request)
    return Envelope(data=SubmissionRead.model_validate(submission), message="Submission validated")


@router.post("/{submission_id}/confirm-call", response_model=Envelope[SubmissionRead])
def confirm_call(
    submission_id: UUID,
    request: Request,
    body: ConfirmCallRequest | None = None,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    submission = submission_service.confirm_call(
        db, submission_id, session, notes=body.notes if body else None, request=request
    )
    return Envelope(data=SubmissionRead.model_validate(submission), message="Call confirmed")


@router.post("/{submission_id}/convert", response_model=Envelope[dict])
def convert_to_client(
    submission_id: UUID,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    """Convert a fully verified submission into a client."""
    submission, client = submission_service.convert_to_client(db, submission_id, session, request=request)
    return Envelope(
        data={
            "submission": SubmissionRead.model_validate(submission).model_dump(mode="json"),
            "client": ClientRead.model_validate(client).model_dump(mode="json"),
        },
        message="Submission converted to client",
    )
