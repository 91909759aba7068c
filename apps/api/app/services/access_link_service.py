"""Shared helpers for token-addressed public links (documents, payments)."""

import secrets
from typing import TypeVar

from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.core.config import settings

TOKEN_BYTES = 32
MAX_TOKEN_ATTEMPTS = 5
MAX_EXPIRY_DAYS = 365

LinkModel = TypeVar("LinkModel")


def generate_unique_token(db: Session, model: type[LinkModel]) -> str:
    """Return a 64-char hex token that no row of ``model`` uses yet."""
    for _ in range(MAX_TOKEN_ATTEMPTS):
        token = secrets.token_hex(TOKEN_BYTES)
        if not db.query(model.id).filter(model.token == token).first():
            return token
    raise RuntimeError("Could not generate a unique link token")


def resolve_expiry_days(expires_in_days: int | None) -> int:
    days = settings.DEFAULT_LINK_EXPIRY_DAYS if expires_in_days is None else expires_in_days
    if days < 1:
        raise ValidationError("expiresInDays must be at least 1")
    if days > MAX_EXPIRY_DAYS:
        raise ValidationError(f"expiresInDays cannot exceed {MAX_EXPIRY_DAYS}")
    return days


def get_by_token(db: Session, model: type[LinkModel], token: str) -> LinkModel | None:
    if not token:
        return None
    return db.query(model).filter(model.token == token).first()
