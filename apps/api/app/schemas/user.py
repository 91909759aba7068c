"""Pydantic schemas for staff user management."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.db.enums import Role
from app.schemas.auth import UserRead


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: Role = Role.AGENT


class UserUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    role: Role | None = None
    is_active: bool | None = Field(None, alias="isActive")

    model_config = ConfigDict(populate_by_name=True)


class ProfileUpdate(BaseModel):
    """Fields a staff member may change on their own account."""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None


class UserStats(BaseModel):
    total: int
    active: int
    inactive: int
    by_role: dict[str, int]
    recent: int


__all__ = ["ProfileUpdate", "UserCreate", "UserRead", "UserStats", "UserUpdate"]
