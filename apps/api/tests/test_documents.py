"""Tests for upload links, public uploads and document review."""

import io
import os
import uuid
from datetime import timedelta

import pytest

from app.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from app.db.enums import DocumentType, WorkflowStage
from app.db.models import ActivityLog, Document, DocumentLink, Submission
from app.services import document_service, submission_service
from app.utils.datetimes import utc_now
from app.utils.file_upload import IncomingFile


PDF = b"%PDF-1.4\n%test\n"


def _incoming(name: str = "passport.pdf", content: bytes = PDF, content_type: str = "application/pdf"):
    return IncomingFile(filename=name, content_type=content_type, size=len(content), file=io.BytesIO(content))


def _stored_files(upload_dir: str, submission_id) -> list[str]:
    folder = os.path.join(upload_dir, "documents", str(submission_id))
    if not os.path.isdir(folder):
        return []
    return os.listdir(folder)


@pytest.fixture
def requested(db, make_submission, admin_session):
    """A submission waiting for documents and its upload link."""
    submission = make_submission(WorkflowStage.PAYMENT_CONFIRMED)
    link = document_service.generate_link(db, submission.id, admin_session, max_uploads=5)
    return submission, link


# =============================================================================
# Document types
# =============================================================================


def test_parse_document_types_accepts_json_array():
    assert document_service.parse_document_types('["passport", "diploma"]', 2) == ["passport", "diploma"]


def test_parse_document_types_accepts_repeated_values():
    assert document_service.parse_document_types(["national_id", "passport"], 2) == ["national_id", "passport"]


def test_parse_document_types_falls_back_to_other():
    assert document_service.parse_document_types(["selfie"], 3) == ["other", "other", "other"]
    assert document_service.parse_document_types(None, 1) == [DocumentType.OTHER.value]
    assert document_service.parse_document_types("[not json", 1) == ["other"]


# =============================================================================
# Links
# =============================================================================


class TestDocumentLinks:
    def test_generate_link_moves_submission_to_documents_requested(self, db, requested):
        submission, link = requested

        db.refresh(submission)
        assert submission.workflow_status == WorkflowStage.DOCUMENTS_REQUESTED.value
        assert len(link.token) == 64
        assert link.max_uploads == 5
        assert link.upload_count == 0
        assert link.is_valid()

    def test_generate_link_rejects_bad_limits(self, db, make_submission, admin_session):
        submission = make_submission(WorkflowStage.PAYMENT_CONFIRMED)

        with pytest.raises(ValidationError):
            document_service.generate_link(db, submission.id, admin_session, max_uploads=0)
        with pytest.raises(ValidationError):
            document_service.generate_link(db, submission.id, admin_session, expires_in_days=0)
        with pytest.raises(ValidationError):
            document_service.generate_link(db, submission.id, admin_session, expires_in_days=400)

        db.refresh(submission)
        assert submission.workflow_status == WorkflowStage.PAYMENT_CONFIRMED.value

    def test_generate_link_before_payment_is_rejected(self, db, make_submission, admin_session):
        submission = make_submission(WorkflowStage.CALL_CONFIRMED)

        with pytest.raises(ValidationError):
            document_service.generate_link(db, submission.id, admin_session)

        assert db.query(DocumentLink).count() == 0

    @pytest.mark.asyncio
    async def test_validate_unknown_token_is_404(self, client):
        response = await client.get(f"/api/documents/validate-link/{'0' * 64}")

        assert response.status_code == 404
        assert response.json()["message"] == "Invalid upload link"

    @pytest.mark.asyncio
    async def test_validate_expired_link(self, client, db, requested):
        _, link = requested
        link.expires_at = utc_now() - timedelta(minutes=1)
        db.commit()

        response = await client.get(f"/api/documents/validate-link/{link.token}")

        assert response.status_code == 400
        assert response.json()["message"] == "Link has expired"

    @pytest.mark.asyncio
    async def test_deactivated_link_refuses_uploads(self, client, requested, admin_headers, pdf_file):
        _, link = requested

        response = await client.patch(f"/api/documents/links/{link.id}/deactivate", headers=admin_headers)
        assert response.json()["data"]["is_active"] is False

        response = await client.post(
            f"/api/documents/upload/{link.token}", files={"documents": pdf_file()}
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Link has been deactivated"


# =============================================================================
# Uploads
# =============================================================================


class TestUploads:
    @pytest.mark.asyncio
    async def test_upload_over_capacity_stores_nothing(self, client, db, requested, upload_dir, pdf_file):
        submission, link = requested
        link.upload_count = 3
        db.commit()

        response = await client.post(
            f"/api/documents/upload/{link.token}",
            files=[("documents", pdf_file(f"doc{i}.pdf")) for i in range(3)],
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Upload limit exceeded. You can upload 2 more file(s)"
        assert db.query(Document).count() == 0
        assert _stored_files(upload_dir, submission.id) == []
        db.refresh(link)
        assert link.upload_count == 3

    @pytest.mark.asyncio
    async def test_upload_fills_link_exactly(self, client, db, requested, pdf_file):
        _, link = requested
        link.upload_count = 3
        db.commit()

        response = await client.post(
            f"/api/documents/upload/{link.token}",
            files=[("documents", pdf_file("a.pdf")), ("documents", pdf_file("b.pdf"))],
        )
        assert response.status_code == 201, response.text
        assert response.json()["data"]["remaining_uploads"] == 0

        response = await client.get(f"/api/documents/validate-link/{link.token}")
        assert response.status_code == 400
        assert response.json()["message"] == "Maximum uploads reached"

    @pytest.mark.asyncio
    async def test_upload_rejects_disallowed_type(self, client, db, requested, upload_dir, pdf_file):
        submission, link = requested

        response = await client.post(
            f"/api/documents/upload/{link.token}",
            files=[
                ("documents", pdf_file("ok.pdf")),
                ("documents", ("notes.txt", b"hello", "text/plain")),
            ],
        )

        assert response.status_code == 400
        assert "notes.txt" in response.json()["message"]
        assert _stored_files(upload_dir, submission.id) == []

    @pytest.mark.asyncio
    async def test_upload_without_files(self, client, requested):
        _, link = requested

        response = await client.post(f"/api/documents/upload/{link.token}", data={"documentTypes": "passport"})

        assert response.status_code == 400
        assert response.json()["message"] == "No files uploaded"

    def test_upload_stores_files_and_advances_stage(self, db, requested, upload_dir):
        submission, link = requested

        documents, link = document_service.upload_documents(
            db, link.token, [_incoming("passport.pdf"), _incoming("id.pdf")], ["passport", "national_id"]
        )

        assert [d.document_type for d in documents] == ["passport", "national_id"]
        assert all(d.status == "pending" for d in documents)
        assert documents[0].storage_key.startswith(f"documents/{submission.id}/Ali_Ben_Salah_passport_")
        assert documents[0].file_name.endswith("_0.pdf")
        assert link.upload_count == 2
        assert link.last_used_at is not None
        assert sorted(_stored_files(upload_dir, submission.id)) == sorted(d.file_name for d in documents)
        db.refresh(submission)
        assert submission.workflow_status == WorkflowStage.DOCUMENTS_UPLOADED.value

    def test_failed_upload_removes_stored_files(self, db, requested, upload_dir, monkeypatch):
        submission, link = requested

        def boom(*args, **kwargs):
            raise RuntimeError("database went away")

        monkeypatch.setattr(submission_service, "apply_transition", boom)

        with pytest.raises(RuntimeError):
            document_service.upload_documents(db, link.token, [_incoming("a.pdf"), _incoming("b.pdf")])

        assert _stored_files(upload_dir, submission.id) == []
        assert db.query(Document).count() == 0
        db.refresh(link)
        assert link.upload_count == 0

    def test_upload_to_unknown_token(self, db):
        with pytest.raises(NotFoundError):
            document_service.upload_documents(db, "missing", [_incoming()])


# =============================================================================
# Review
# =============================================================================


class TestReview:
    @pytest.fixture
    def uploaded(self, db, requested):
        submission, link = requested
        documents, _ = document_service.upload_documents(
            db, link.token, [_incoming("passport.pdf"), _incoming("diploma.pdf")], ["passport", "diploma"]
        )
        return submission, documents

    def test_rejection_keeps_stage(self, db, uploaded, admin_session):
        submission, documents = uploaded

        document, submission = document_service.verify_document(
            db, documents[0].id, admin_session, "rejected", rejection_reason="Blurry scan"
        )

        assert document.status == "rejected"
        assert document.rejection_reason == "Blurry scan"
        assert submission.workflow_status == WorkflowStage.DOCUMENTS_UPLOADED.value

    def test_verifying_clears_previous_rejection(self, db, uploaded, admin_session):
        _, documents = uploaded
        document_service.verify_document(db, documents[0].id, admin_session, "needs_replacement", "Expired")

        document, _ = document_service.verify_document(db, documents[0].id, admin_session, "verified")

        assert document.status == "verified"
        assert document.rejection_reason is None
        assert document.verified_at is not None

    def test_stage_advances_only_when_all_verified(self, db, uploaded, admin_session):
        _, documents = uploaded

        _, submission = document_service.verify_document(db, documents[0].id, admin_session, "verified")
        assert submission.workflow_status == WorkflowStage.DOCUMENTS_UPLOADED.value

        _, submission = document_service.verify_document(db, documents[1].id, admin_session, "verified")
        assert submission.workflow_status == WorkflowStage.DOCUMENTS_VERIFIED.value

    @pytest.mark.parametrize("decision", ["rejected", "needs_replacement"])
    def test_late_rejection_blocks_conversion(self, db, uploaded, admin_session, decision):
        _, documents = uploaded
        document_service.verify_document(db, documents[0].id, admin_session, "verified")
        _, submission = document_service.verify_document(db, documents[1].id, admin_session, "verified")
        assert submission.workflow_status == WorkflowStage.DOCUMENTS_VERIFIED.value
        submission_id = submission.id

        _, submission = document_service.verify_document(
            db, documents[1].id, admin_session, decision, rejection_reason="Wrong page"
        )

        assert submission.workflow_status == WorkflowStage.DOCUMENTS_UPLOADED.value
        with pytest.raises(InvalidTransitionError):
            submission_service.convert_to_client(db, submission_id, admin_session)

        _, submission = document_service.verify_document(db, documents[1].id, admin_session, "verified")
        assert submission.workflow_status == WorkflowStage.DOCUMENTS_VERIFIED.value

    def test_unknown_status_is_rejected(self, db, uploaded, admin_session):
        _, documents = uploaded

        with pytest.raises(ValidationError):
            document_service.verify_document(db, documents[0].id, admin_session, "approved")

    @pytest.mark.asyncio
    async def test_agent_cannot_delete_document(self, client, uploaded, agent_headers):
        _, documents = uploaded

        response = await client.delete(f"/api/documents/{documents[0].id}", headers=agent_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_deletes_document_and_file(self, client, db, uploaded, admin_headers, upload_dir):
        submission, documents = uploaded
        target = documents[0]
        file_name = target.file_name

        response = await client.delete(f"/api/documents/{target.id}", headers=admin_headers)

        assert response.status_code == 200
        assert file_name not in _stored_files(upload_dir, submission.id)
        assert len(_stored_files(upload_dir, submission.id)) == 1
        assert db.query(Document).count() == 1
        assert db.query(ActivityLog).filter(ActivityLog.action == "document_deleted").count() == 1

    @pytest.mark.asyncio
    async def test_list_documents_for_submission(self, client, uploaded, viewer_headers):
        submission, _ = uploaded

        response = await client.get(f"/api/documents/submission/{submission.id}", headers=viewer_headers)

        assert response.status_code == 200
        assert {d["document_type"] for d in response.json()["data"]} == {"passport", "diploma"}

    def test_missing_submission_lookup(self, db):
        with pytest.raises(NotFoundError):
            document_service.list_for_submission(db, uuid.uuid4())
        assert db.query(Submission).count() == 0
