"""Pydantic schemas for the activity log."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ActivityLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID | None
    action: str
    entity_type: str
    entity_id: UUID | None
    details: dict
    ip_address: str | None
    user_agent: str | None
    created_at: datetime


class ActionCount(BaseModel):
    action: str
    count: int


class UserActivityCount(BaseModel):
    user_id: UUID
    name: str
    email: str
    count: int


class ActivityStats(BaseModel):
    total: int
    by_action: list[ActionCount]
    top_users: list[UserActivityCount]
    last_24_hours: int
    last_7_days: int
