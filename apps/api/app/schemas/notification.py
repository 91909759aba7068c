"""Pydantic schemas for notifications."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    title: str
    message: str
    link: str | None
    data: dict
    read: bool
    read_at: datetime | None
    created_at: datetime


class UnreadCount(BaseModel):
    count: int
