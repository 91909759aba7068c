"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import (
    DEFAULT_SUBMISSION_SOURCE,
    DEFAULT_SUBMISSION_STATUS,
    DEFAULT_WORKFLOW_STAGE,
)
from app.utils.datetimes import utc_now

if TYPE_CHECKING:
    from app.db.models import Document, DocumentLink, PaymentLink


class Submission(Base):
    """
    Applicant inquiry from the public contact form.

    workflow_status is the single source of truth for the internal stage and
    only changes through app.core.workflow transitions. status is the
    applicant-facing label.
    """

    __tablename__ = "submissions"
    __table_args__ = (
        Index("idx_submissions_workflow", "workflow_status", "created_at"),
        Index("idx_submissions_phone", "phone"),
        Index("idx_submissions_email", "email"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Applicant fields
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    service: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[str] = mapped_column(
        String(30),
        default=DEFAULT_SUBMISSION_SOURCE.value,
        server_default=text(f"'{DEFAULT_SUBMISSION_SOURCE.value}'"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=DEFAULT_SUBMISSION_STATUS.value,
        server_default=text(f"'{DEFAULT_SUBMISSION_STATUS.value}'"),
        nullable=False,
    )

    # Workflow
    workflow_status: Mapped[str] = mapped_column(
        String(30),
        default=DEFAULT_WORKFLOW_STAGE.value,
        server_default=text(f"'{DEFAULT_WORKFLOW_STAGE.value}'"),
        nullable=False,
    )
    converted_to_client: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    # Set once, by conversion (the Client row points back via submission_id)
    client_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    validated_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    validated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    call_confirmed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    call_confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    call_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False
    )

    documents: Mapped[list["Document"]] = relationship(
        back_populates="submission", order_by="Document.uploaded_at"
    )
    document_links: Mapped[list["DocumentLink"]] = relationship(
        back_populates="submission", order_by="DocumentLink.created_at"
    )
    payment_links: Mapped[list["PaymentLink"]] = relationship(
        back_populates="submission", order_by="PaymentLink.created_at"
    )