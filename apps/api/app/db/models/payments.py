"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType
from app.db.enums import DEFAULT_PAYMENT_STATUS, PaymentStatus
from app.utils.datetimes import ensure_utc, utc_now

if TYPE_CHECKING:
    from app.db.models import Submission


class PaymentLink(Base):
    """
    Public, token-addressed payment request for a submission.

    status: pending -> receipt_uploaded -> confirmed | rejected. Confirmed is
    terminal. bank_details is a snapshot taken when the link is generated.
    """

    __tablename__ = "payment_links"
    __table_args__ = (
        Index("uq_payment_links_token", "token", unique=True),
        Index("idx_payment_links_submission", "submission_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False
    )
    token: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    bank_details: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=DEFAULT_PAYMENT_STATUS.value,
        server_default=text(f"'{DEFAULT_PAYMENT_STATUS.value}'"),
        nullable=False,
    )

    # Receipt (set once, on upload)
    receipt_file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    receipt_original_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    receipt_file_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    receipt_file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    receipt_storage_key: Mapped[str | None] = mapped_column(String(512), nullable=True)
    receipt_storage_type: Mapped[str | None] = mapped_column(String(10), nullable=True)
    receipt_uploaded_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Review
    generated_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    confirmed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejected_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    rejected_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=utc_now, server_default=func.now(), nullable=False
    )

    submission: Mapped["Submission"] = relationship(back_populates="payment_links")

    @property
    def has_receipt(self) -> bool:
        return self.receipt_storage_key is not None

    def invalid_reason(self, now: datetime | None = None) -> str | None:
        now = now or utc_now()
        if not self.is_active:
            return "Payment link has been deactivated"
        if ensure_utc(self.expires_at) <= now:
            return "Payment link has expired"
        if self.status == PaymentStatus.CONFIRMED.value:
            return "Payment has already been confirmed"
        if self.status != PaymentStatus.PENDING.value:
            return "A receipt has already been uploaded for this link"
        return None

    def is_valid(self, now: datetime | None = None) -> bool:
        return self.invalid_reason(now) is None
