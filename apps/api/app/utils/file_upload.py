"""Helpers for safe upload checks (size and content type)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from os import SEEK_END
from typing import BinaryIO

from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import ValidationError


MULTIPART_OVERHEAD_BYTES = 64 * 1024

ALLOWED_MIME_TYPES = {
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def content_length_exceeds_limit(
    content_length_header: str | None,
    *,
    max_size_bytes: int,
    overhead_bytes: int = MULTIPART_OVERHEAD_BYTES,
) -> bool:
    """Return True when Content-Length clearly exceeds the allowed request size."""
    if not content_length_header:
        return False
    try:
        content_length = int(content_length_header)
    except (TypeError, ValueError):
        return False
    return content_length > (max_size_bytes + overhead_bytes)


def file_extension(filename: str | None) -> str:
    """Lower-cased extension including the dot, or an empty string."""
    if not filename:
        return ""
    return os.path.splitext(filename)[1].lower()


def validate_upload(filename: str | None, content_type: str | None, size: int) -> None:
    """Reject files outside the MIME allow-list or above the size limit."""
    if (content_type or "").lower() not in ALLOWED_MIME_TYPES:
        raise ValidationError(
            f"File type not allowed for '{filename or 'file'}'. "
            "Only PDF, images (JPEG, PNG, GIF), Word and Excel files are accepted"
        )
    if size > settings.MAX_UPLOAD_SIZE_BYTES:
        max_mb = settings.MAX_UPLOAD_SIZE_BYTES / (1024 * 1024)
        raise ValidationError(f"File '{filename or 'file'}' exceeds {max_mb:.0f} MB limit")
    if size == 0:
        raise ValidationError(f"File '{filename or 'file'}' is empty")


@dataclass(frozen=True)
class IncomingFile:
    """An uploaded file as seen by the services layer."""

    filename: str
    content_type: str
    size: int
    file: BinaryIO

    @classmethod
    def from_upload(cls, upload: UploadFile) -> "IncomingFile":
        stream = upload.file
        stream.seek(0, SEEK_END)
        size = stream.tell()
        stream.seek(0)
        return cls(
            filename=upload.filename or "file",
            content_type=(upload.content_type or "application/octet-stream").lower(),
            size=size,
            file=stream,
        )
