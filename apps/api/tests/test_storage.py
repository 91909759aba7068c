import io
import os

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from app.core.config import settings
from app.core.errors import NotFoundError, UpstreamError
from app.db.enums import StorageType
from app.services import storage_service


def test_local_store_read_delete(upload_dir):
    stored = storage_service.store_file("documents/abc/file.pdf", io.BytesIO(b"%PDF-1.4"), "application/pdf")

    assert stored.storage_type == StorageType.LOCAL
    assert stored.size == 8
    assert storage_service.read_file(stored.key, "local") == b"%PDF-1.4"

    storage_service.delete_file(stored.key, "local")
    assert not os.path.exists(os.path.join(upload_dir, stored.key))
    # Deleting twice is fine
    storage_service.delete_file(stored.key, "local")


def test_keys_cannot_escape_upload_root():
    with pytest.raises(NotFoundError):
        storage_service.read_file("../../etc/passwd", "local")


def test_missing_local_file():
    with pytest.raises(NotFoundError):
        storage_service.read_file("documents/missing.pdf", "local")


def test_staged_files_are_removed_when_block_fails(upload_dir):
    with pytest.raises(RuntimeError):
        with storage_service.staged_files() as staged:
            staged.store("staged/one.pdf", io.BytesIO(b"1"))
            staged.store("staged/two.pdf", io.BytesIO(b"2"))
            raise RuntimeError("commit failed")

    assert os.listdir(os.path.join(upload_dir, "staged")) == []


def test_staged_files_are_kept_on_success(upload_dir):
    with storage_service.staged_files() as staged:
        staged.store("kept/one.pdf", io.BytesIO(b"1"))

    assert os.listdir(os.path.join(upload_dir, "kept")) == ["one.pdf"]


BUCKET = "test-bucket"


@pytest.fixture
def s3_stub(monkeypatch):
    client = boto3.client(
        "s3", region_name="us-east-1", aws_access_key_id="test", aws_secret_access_key="test"
    )
    monkeypatch.setattr(settings, "AWS_S3_BUCKET", BUCKET)
    monkeypatch.setattr(storage_service, "get_s3_client", lambda: client)
    with Stubber(client) as stubber:
        yield stubber
        stubber.assert_no_pending_responses()


def test_s3_read_returns_object_body(s3_stub):
    body = b"%PDF-1.4"
    s3_stub.add_response(
        "get_object",
        {"Body": StreamingBody(io.BytesIO(body), len(body)), "ContentLength": len(body)},
        expected_params={"Bucket": BUCKET, "Key": "documents/here.pdf"},
    )

    assert storage_service.read_file("documents/here.pdf", "s3") == body


def test_s3_missing_key_is_not_found(s3_stub):
    s3_stub.add_client_error(
        "get_object",
        service_error_code="NoSuchKey",
        http_status_code=404,
        expected_params={"Bucket": BUCKET, "Key": "documents/gone.pdf"},
    )

    with pytest.raises(NotFoundError):
        storage_service.read_file("documents/gone.pdf", "s3")


def test_s3_delete(s3_stub):
    s3_stub.add_response(
        "delete_object", {}, expected_params={"Bucket": BUCKET, "Key": "documents/old.pdf"}
    )

    storage_service.delete_file("documents/old.pdf", "s3")


def test_s3_delete_failure_is_upstream_error(s3_stub):
    expected = {"Bucket": BUCKET, "Key": "documents/locked.pdf"}
    s3_stub.add_client_error(
        "delete_object", service_error_code="AccessDenied", http_status_code=403, expected_params=expected
    )

    with pytest.raises(UpstreamError) as exc:
        storage_service.delete_file("documents/locked.pdf", "s3")
    assert "AccessDenied" in str(exc.value.message)

    s3_stub.add_client_error(
        "delete_object", service_error_code="AccessDenied", http_status_code=403, expected_params=expected
    )
    assert storage_service.delete_quietly("documents/locked.pdf", "s3") is False
