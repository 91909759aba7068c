"""Deleting a submission removes its documents, links and stored files."""

import io
import os

import pytest

from app.db.enums import WorkflowStage
from app.db.models import ActivityLog, Client, Document, DocumentLink, PaymentLink, Submission
from app.services import document_service, payment_service, submission_service
from app.utils.file_upload import IncomingFile


PDF = b"%PDF-1.4\n%cascade\n"


def _incoming(name: str) -> IncomingFile:
    return IncomingFile(filename=name, content_type="application/pdf", size=len(PDF), file=io.BytesIO(PDF))


@pytest.fixture
def full_submission(db, make_submission, admin_session):
    """Submission with a confirmed payment, a receipt and two uploaded documents."""
    submission = make_submission(WorkflowStage.CALL_CONFIRMED)
    payment = payment_service.generate_link(db, submission.id, admin_session, amount=900)
    payment = payment_service.upload_receipt(db, payment.token, _incoming("receipt.pdf"))
    payment_service.verify_payment(db, payment.id, admin_session, "confirmed")

    link = document_service.generate_link(db, submission.id, admin_session)
    documents, _ = document_service.upload_documents(
        db, link.token, [_incoming("passport.pdf"), _incoming("id.pdf")], ["passport", "national_id"]
    )
    stored = [doc.storage_key for doc in documents] + [payment.receipt_storage_key]
    return submission, stored


def test_delete_removes_children_and_files(db, full_submission, admin_session, upload_dir):
    submission, stored = full_submission
    submission_id = submission.id
    assert all(os.path.exists(os.path.join(upload_dir, key)) for key in stored)

    submission_service.delete_submission(db, submission_id, admin_session)

    assert db.get(Submission, submission_id) is None
    assert db.query(Document).count() == 0
    assert db.query(DocumentLink).count() == 0
    assert db.query(PaymentLink).count() == 0
    assert not any(os.path.exists(os.path.join(upload_dir, key)) for key in stored)

    entry = db.query(ActivityLog).filter(ActivityLog.action == "submission_deleted").one()
    assert entry.entity_id == submission_id
    assert entry.details["documents"] == 2
    assert entry.details["payment_links"] == 1


def test_delete_keeps_converted_client(db, make_submission, admin_session):
    submission = make_submission(WorkflowStage.DOCUMENTS_VERIFIED)
    _, client = submission_service.convert_to_client(db, submission.id, admin_session)

    submission_service.delete_submission(db, submission.id, admin_session)

    db.expire_all()
    kept = db.get(Client, client.id)
    assert kept is not None
    assert kept.submission_id is None


@pytest.mark.asyncio
async def test_only_admin_can_delete(client, db, make_submission, agent_headers, admin_headers):
    submission = make_submission()

    response = await client.delete(f"/api/submissions/{submission.id}", headers=agent_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/submissions/{submission.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "data": None, "message": "Submission deleted"}

    response = await client.delete(f"/api/submissions/{submission.id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_links_overview(client, full_submission, admin_headers):
    submission, _ = full_submission

    response = await client.get(f"/api/submissions/{submission.id}/links", headers=admin_headers)

    data = response.json()["data"]
    assert len(data["document_links"]) == 1
    assert len(data["payment_links"]) == 1
    assert data["payment_links"][0]["status"] == "confirmed"
    assert len(data["documents"]) == 2
