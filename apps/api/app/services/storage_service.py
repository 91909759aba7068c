"""File storage for uploaded documents and payment receipts.

Backend is chosen automatically: S3 (or an S3-compatible endpoint) when
AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY and AWS_S3_BUCKET are all set,
local disk otherwise. Callers only see the backend through storage_type.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.errors import NotFoundError, UpstreamError
from app.db.enums import StorageType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredFile:
    key: str
    storage_type: StorageType
    size: int


# =============================================================================
# Storage Backend
# =============================================================================

def get_backend() -> StorageType:
    return StorageType.S3 if settings.s3_enabled else StorageType.LOCAL


def get_s3_client() -> BaseClient:
    """Return a configured S3 client with bounded timeouts and retries."""
    return boto3.client(
        "s3",
        region_name=settings.AWS_REGION or None,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        endpoint_url=(settings.S3_ENDPOINT_URL or "").rstrip("/") or None,
        config=Config(
            connect_timeout=settings.STORAGE_TIMEOUT_SECONDS,
            read_timeout=settings.STORAGE_TIMEOUT_SECONDS,
            retries={"max_attempts": 3, "mode": "standard"},
        ),
    )


def _local_path(key: str) -> str:
    root = os.path.abspath(settings.upload_root)
    path = os.path.abspath(os.path.join(root, key))
    if os.path.commonpath([root, path]) != root:
        raise NotFoundError("File not found")
    return path


# =============================================================================
# File Operations
# =============================================================================

def store_file(key: str, file: BinaryIO, content_type: str | None = None) -> StoredFile:
    """Store file to the configured backend."""
    backend = get_backend()
    file.seek(0, os.SEEK_END)
    size = file.tell()
    file.seek(0)

    if backend == StorageType.S3:
        extra = {"ContentType": content_type} if content_type else None
        try:
            get_s3_client().upload_fileobj(
                file, settings.AWS_S3_BUCKET, key, ExtraArgs=extra
            )
        except (BotoCoreError, ClientError) as exc:
            raise UpstreamError(f"S3 upload failed for {key}: {exc}") from exc
    else:
        path = _local_path(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                for chunk in iter(lambda: file.read(1024 * 1024), b""):
                    f.write(chunk)
        except OSError as exc:
            raise UpstreamError(f"Local write failed for {key}: {exc}") from exc

    logger.info("Stored %s (%s bytes) on %s", key, size, backend.value)
    return StoredFile(key=key, storage_type=backend, size=size)


def read_file(key: str, storage_type: str) -> bytes:
    """Return the stored bytes for ``key``."""
    if storage_type == StorageType.S3.value:
        try:
            obj = get_s3_client().get_object(Bucket=settings.AWS_S3_BUCKET, Key=key)
            return obj["Body"].read()
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                raise NotFoundError("File not found") from exc
            raise UpstreamError(f"S3 read failed for {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise UpstreamError(f"S3 read failed for {key}: {exc}") from exc

    path = _local_path(key)
    if not os.path.exists(path):
        raise NotFoundError("File not found")
    with open(path, "rb") as f:
        return f.read()


def delete_file(key: str, storage_type: str) -> None:
    """Delete file from storage. Missing files are ignored."""
    if storage_type == StorageType.S3.value:
        try:
            get_s3_client().delete_object(Bucket=settings.AWS_S3_BUCKET, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise UpstreamError(f"S3 delete failed for {key}: {exc}") from exc
        return

    path = _local_path(key)
    if os.path.exists(path):
        os.remove(path)


def delete_quietly(key: str, storage_type: str) -> bool:
    """Best-effort delete used during cleanup; returns False on failure."""
    try:
        delete_file(key, storage_type)
        return True
    except Exception:
        logger.exception("Failed to delete stored file %s (%s)", key, storage_type)
        return False


# =============================================================================
# Scoped uploads
# =============================================================================

@dataclass
class StagedFiles:
    """Files stored during one request; removed again if the request fails."""

    stored: list[StoredFile] = field(default_factory=list)

    def store(self, key: str, file: BinaryIO, content_type: str | None = None) -> StoredFile:
        stored = store_file(key, file, content_type)
        self.stored.append(stored)
        return stored

    def discard(self) -> None:
        for item in self.stored:
            delete_quietly(item.key, item.storage_type.value)
        self.stored.clear()


@contextmanager
def staged_files() -> Iterator[StagedFiles]:
    """
    Track files stored inside the block and delete them all if it raises.

    Usage:
        with storage_service.staged_files() as staged:
            staged.store(key, upload.file, upload.content_type)
            ...  # db writes; any exception removes the stored files
    """
    staged = StagedFiles()
    try:
        yield staged
    except BaseException:
        if staged.stored:
            logger.warning("Removing %s staged file(s) after failed request", len(staged.stored))
        staged.discard()
        raise
