"""Authentication service - password login, registration and password changes."""

import logging

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, UnauthorizedError, ValidationError
from app.core.security import create_session_token, hash_password, verify_password
from app.db.enums import ActivityAction, EntityType, Role
from app.db.models import User
from app.schemas.auth import RegisterRequest, UserSession
from app.services import activity_service, user_service
from app.utils.datetimes import utc_now

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def create_session_for_user(user: User) -> str:
    """Create a session token for an authenticated user."""
    return create_session_token(user.id, user.role, user.token_version)


def authenticate(
    db: Session, email: str, password: str, request: Request | None = None
) -> tuple[User, str]:
    """
    Verify credentials and return ``(user, token)``.

    Unknown email and wrong password give the same error.
    """
    user = user_service.get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt")
        raise UnauthorizedError(INVALID_CREDENTIALS)
    if not user.is_active:
        raise UnauthorizedError("Account disabled")

    user.last_login = utc_now()
    activity_service.log_activity(
        db,
        ActivityAction.USER_LOGIN,
        EntityType.USER,
        entity_id=user.id,
        user_id=user.id,
        request=request,
    )
    db.commit()
    db.refresh(user)
    return user, create_session_for_user(user)


def register(
    db: Session,
    data: RegisterRequest,
    actor: UserSession | None,
    request: Request | None = None,
) -> User:
    """
    Register a staff user.

    Only admins may register users. The very first account is created with
    the operator CLI (``create-admin``).
    """
    if user_service.count_users(db) == 0:
        raise ForbiddenError("Create the first admin with the create-admin command")
    if actor is None or actor.role != Role.ADMIN:
        raise ForbiddenError("Only admins can register users")

    user = user_service.create_user(db, data.name, data.email, data.password, data.role)
    activity_service.log_activity(
        db,
        ActivityAction.USER_CREATED,
        EntityType.USER,
        entity_id=user.id,
        user_id=actor.user_id,
        details={"email": user.email, "role": user.role},
        request=request,
    )
    db.commit()
    db.refresh(user)
    return user


def logout(db: Session, session: UserSession, request: Request | None = None) -> None:
    activity_service.log_activity(
        db,
        ActivityAction.USER_LOGOUT,
        EntityType.USER,
        entity_id=session.user_id,
        user_id=session.user_id,
        request=request,
    )
    db.commit()


def change_password(
    db: Session,
    session: UserSession,
    current_password: str,
    new_password: str,
    request: Request | None = None,
) -> str:
    """Change the password, revoke other sessions and return a fresh token."""
    user = user_service.require_user(db, session.user_id)
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    if current_password == new_password:
        raise ValidationError("New password must differ from the current password")

    user.password_hash = hash_password(new_password)
    user_service.revoke_all_sessions(db, user)
    activity_service.log_activity(
        db,
        ActivityAction.PASSWORD_CHANGED,
        EntityType.USER,
        entity_id=user.id,
        user_id=user.id,
        request=request,
    )
    db.commit()
    db.refresh(user)
    return create_session_for_user(user)
