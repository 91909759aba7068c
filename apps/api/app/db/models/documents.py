"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import DEFAULT_DOCUMENT_STATUS
from app.utils.datetimes import ensure_utc, utc_now

if TYPE_CHECKING:
    from app.db.models import Submission


class DocumentLink(Base):
    """
    Public, token-addressed upload link for a submission.

    Valid while active, unexpired and below max_uploads. upload_count only
    grows, by the number of files accepted in one upload call.
    """

    __tablename__ = "document_links"
    __table_args__ = (
        Index("uq_document_links_token", "token", unique=True),
        Index("idx_document_links_submission", "submission_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False
    )
    token: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    max_uploads: Mapped[int] = mapped_column(
        Integer, default=10, server_default=text("10"), nullable=False
    )
    upload_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    generated_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    last_used_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )

    submission: Mapped["Submission"] = relationship(back_populates="document_links")

    @property
    def remaining_uploads(self) -> int:
        return max(self.max_uploads - self.upload_count, 0)

    def invalid_reason(self, now: datetime | None = None) -> str | None:
        """Why the link cannot accept uploads, or None when it is valid."""
        now = now or utc_now()
        if not self.is_active:
            return "Link has been deactivated"
        if ensure_utc(self.expires_at) <= now:
            return "Link has expired"
        if self.upload_count >= self.max_uploads:
            return "Maximum uploads reached"
        return None

    def is_valid(self, now: datetime | None = None) -> bool:
        return self.invalid_reason(now) is None


class Document(Base):
    """One uploaded file. Only the verify action mutates it."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("idx_documents_submission", "submission_id", "uploaded_at"),
        Index("idx_documents_link", "document_link_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False
    )
    document_link_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("document_links.id", ondelete="SET NULL"), nullable=True
    )

    # File
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[str] = mapped_column(String(100), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    storage_key: Mapped[str] = mapped_column(String(512), nullable=False)
    storage_type: Mapped[str] = mapped_column(String(10), nullable=False)
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # Review
    status: Mapped[str] = mapped_column(
        String(30),
        default=DEFAULT_DOCUMENT_STATUS.value,
        server_default=text(f"'{DEFAULT_DOCUMENT_STATUS.value}'"),
        nullable=False,
    )
    verified_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    verified_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    uploaded_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )

    submission: Mapped["Submission"] = relationship(back_populates="documents")
