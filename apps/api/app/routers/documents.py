"""Documents router - upload links, public uploads, review and downloads."""

from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db, require_roles
from app.core.errors import ValidationError
from app.core.rate_limit import PUBLIC_LIMIT, limiter
from app.db.enums import ROLES_ADMIN, ROLES_CAN_VIEW, ROLES_STAFF
from app.schemas.auth import UserSession
from app.schemas.common import Envelope
from app.schemas.document import (
    DocumentLinkRead,
    DocumentLinkValidation,
    DocumentRead,
    GenerateDocumentLinkRequest,
    LinkApplicant,
    UploadResult,
    VerifyDocumentRequest,
)
from app.schemas.submission import SubmissionRead
from app.services import document_service
from app.services.message_templates import upload_url
from app.utils.file_upload import IncomingFile, content_length_exceeds_limit

router = APIRouter()


def attachment_response(
    content: bytes, media_type: str, filename: str, disposition: str = "attachment"
):
    """Bytes with the original filename (RFC 5987 encoded); ``inline`` lets the browser render them."""
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"{disposition}; filename*=UTF-8''{quote(filename)}"},
    )


# =============================================================================
# Links
# =============================================================================


@router.post("/generate-link", response_model=Envelope[dict], status_code=201)
def generate_link(
    body: GenerateDocumentLinkRequest,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    """Create an upload link for a submission and message the applicant."""
    link = document_service.generate_link(
        db,
        body.submission_id,
        session,
        expires_in_days=body.expires_in_days,
        max_uploads=body.max_uploads,
        notes=body.notes,
        request=request,
    )
    return Envelope(
        data={
            "link": DocumentLinkRead.model_validate(link).model_dump(mode="json"),
            "url": upload_url(link.token),
        },
        message="Upload link generated",
    )


@router.get("/validate-link/{token}", response_model=Envelope[DocumentLinkValidation])
@limiter.limit(PUBLIC_LIMIT)
def validate_link(request: Request, token: str, db: Session = Depends(get_db)):
    """Public: check an upload link before showing the upload form."""
    link, submission = document_service.validate_link(db, token)
    return Envelope(
        data=DocumentLinkValidation(
            submission=LinkApplicant.model_validate(submission),
            expires_at=link.expires_at,
            max_uploads=link.max_uploads,
            upload_count=link.upload_count,
            remaining_uploads=link.remaining_uploads,
        )
    )


@router.post("/upload/{token}", response_model=Envelope[UploadResult], status_code=201)
@limiter.limit(PUBLIC_LIMIT)
def upload_documents(
    request: Request,
    token: str,
    documents: list[UploadFile] = File(default=[]),
    document_types: list[str] = Form(default=[], alias="documentTypes"),
    db: Session = Depends(get_db),
):
    """Public: upload one or more files through a link."""
    limit = settings.MAX_UPLOAD_SIZE_BYTES * settings.MAX_FILES_PER_UPLOAD
    if content_length_exceeds_limit(request.headers.get("content-length"), max_size_bytes=limit):
        raise ValidationError("Upload too large")

    files = [IncomingFile.from_upload(upload) for upload in documents]
    created, link = document_service.upload_documents(
        db, token, files, document_types, request=request
    )
    return Envelope(
        data=UploadResult(
            documents=[DocumentRead.model_validate(doc) for doc in created],
            remaining_uploads=link.remaining_uploads,
        ),
        message=f"{len(created)} document(s) uploaded successfully",
    )


@router.patch("/links/{link_id}/deactivate", response_model=Envelope[DocumentLinkRead])
def deactivate_link(
    link_id: UUID,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    link = document_service.deactivate_link(db, link_id, session, request=request)
    return Envelope(data=DocumentLinkRead.model_validate(link), message="Link deactivated")


# =============================================================================
# Documents
# =============================================================================


@router.get("/submission/{submission_id}", response_model=Envelope[list[DocumentRead]])
def list_documents(
    submission_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    documents = document_service.list_for_submission(db, submission_id)
    return Envelope(data=[DocumentRead.model_validate(doc) for doc in documents])


@router.get("/{document_id}", response_model=Envelope[DocumentRead])
def get_document(
    document_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    return Envelope(data=DocumentRead.model_validate(document_service.get_document(db, document_id)))


@router.get("/{document_id}/download")
def download_document(
    document_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    document, content = document_service.read_document(db, document_id)
    return attachment_response(content, document.file_type, document.original_name)


@router.get("/{document_id}/preview")
def preview_document(
    document_id: UUID,
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    document, content = document_service.read_document(db, document_id)
    return attachment_response(content, document.file_type, document.original_name, disposition="inline")


@router.patch("/{document_id}/verify", response_model=Envelope[dict])
def verify_document(
    document_id: UUID,
    body: VerifyDocumentRequest,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    """Verify, reject or ask for a replacement of one document."""
    document, submission = document_service.verify_document(
        db,
        document_id,
        session,
        status=body.status,
        rejection_reason=body.rejection_reason,
        notes=body.notes,
        request=request,
    )
    return Envelope(
        data={
            "document": DocumentRead.model_validate(document).model_dump(mode="json"),
            "submission": SubmissionRead.model_validate(submission).model_dump(mode="json"),
        },
        message="Document status updated",
    )


@router.delete("/{document_id}", response_model=Envelope[None])
def delete_document(
    document_id: UUID,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db),
):
    document_service.delete_document(db, document_id, session, request=request)
    return Envelope(message="Document deleted")
