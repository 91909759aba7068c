"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, Text, Uuid, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import DEFAULT_CLIENT_STATUS
from app.utils.datetimes import utc_now

if TYPE_CHECKING:
    from app.db.models import User


class Client(Base):
    """
    Applicant accepted as an ongoing case.

    Created exactly once, by converting a fully verified submission.
    """

    __tablename__ = "clients"
    __table_args__ = (
        Index("idx_clients_assigned", "assigned_to", "created_at"),
        Index("uq_clients_submission", "submission_id", unique=True),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    submission_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("submissions.id", ondelete="SET NULL"), nullable=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    service: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str | None] = mapped_column(String(30), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=DEFAULT_CLIENT_STATUS.value,
        server_default=text(f"'{DEFAULT_CLIENT_STATUS.value}'"),
        nullable=False,
    )

    assigned_to: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False
    )

    notes: Mapped[list["ClientNote"]] = relationship(
        back_populates="client",
        order_by="ClientNote.added_at",
        cascade="all, delete-orphan",
    )
    assignee: Mapped["User | None"] = relationship(foreign_keys=[assigned_to])


class ClientNote(Base):
    """Append-only note on a client."""

    __tablename__ = "client_notes"
    __table_args__ = (Index("idx_client_notes_client", "client_id", "added_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    added_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    added_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )

    client: Mapped["Client"] = relationship(back_populates="notes")
    author: Mapped["User | None"] = relationship()
