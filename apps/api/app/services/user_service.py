"""User service - staff accounts and session revocation."""

from datetime import timedelta
from uuid import UUID

from fastapi import Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.security import hash_password
from app.db.enums import ActivityAction, EntityType, Role
from app.db.models import User
from app.schemas.auth import UserSession
from app.schemas.user import ProfileUpdate, UserCreate, UserUpdate
from app.services import activity_service
from app.utils.datetimes import utc_now
from app.utils.normalization import normalize_email, normalize_name
from app.utils.pagination import PaginationParams, paginate_query


def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    """Get user by ID."""
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email (case-insensitive)."""
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def require_user(db: Session, user_id: UUID) -> User:
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def count_users(db: Session) -> int:
    return db.query(func.count(User.id)).scalar() or 0


def list_users(
    db: Session,
    pagination: PaginationParams,
    role: str | None = None,
    search: str | None = None,
) -> tuple[list[User], int]:
    query = db.query(User)
    if role and role != "all":
        query = query.filter(User.role == role)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(User.name.ilike(pattern) | User.email.ilike(pattern))
    return paginate_query(query.order_by(User.created_at.desc()), pagination)


def create_user(
    db: Session,
    name: str,
    email: str,
    password: str,
    role: Role = Role.AGENT,
) -> User:
    """
    Create a staff user. Caller commits.

    Raises:
        ConflictError: email already registered
    """
    email = normalize_email(email)
    if get_user_by_email(db, email):
        raise ConflictError("A user with this email already exists")

    user = User(
        name=normalize_name(name) or name,
        email=email,
        password_hash=hash_password(password),
        role=role.value,
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


def create_user_by_admin(
    db: Session, data: UserCreate, actor: UserSession, request: Request | None = None
) -> User:
    user = create_user(db, data.name, data.email, data.password, data.role)
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


def update_user(
    db: Session,
    user_id: UUID,
    data: UserUpdate,
    actor: UserSession,
    request: Request | None = None,
) -> User:
    """
    Update name, role or active flag.

    Deactivating a user or changing their role revokes their sessions.
    Admins cannot demote or deactivate themselves.
    """
    user = require_user(db, user_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    if user.id == actor.user_id and (
        changes.get("is_active") is False
        or ("role" in changes and changes["role"] != Role.ADMIN)
    ):
        raise ValidationError("You cannot deactivate or demote your own account")

    action = ActivityAction.USER_UPDATED
    if "name" in changes:
        user.name = normalize_name(changes["name"]) or user.name
    if "role" in changes and changes["role"].value != user.role:
        user.role = changes["role"].value
        user.token_version += 1
    if "is_active" in changes and changes["is_active"] != user.is_active:
        user.is_active = changes["is_active"]
        if user.is_active:
            action = ActivityAction.USER_ACTIVATED
        else:
            action = ActivityAction.USER_DEACTIVATED
            # Also revoke sessions
            user.token_version += 1

    activity_service.log_activity(
        db,
        action,
        EntityType.USER,
        entity_id=user.id,
        user_id=actor.user_id,
        details={"fields": sorted(changes)},
        request=request,
    )
    db.commit()
    db.refresh(user)
    return user


def delete_user(
    db: Session, user_id: UUID, actor: UserSession, request: Request | None = None
) -> None:
    user = require_user(db, user_id)
    if user.id == actor.user_id:
        raise ValidationError("You cannot delete your own account")
    activity_service.log_activity(
        db,
        ActivityAction.USER_DELETED,
        EntityType.USER,
        entity_id=user.id,
        user_id=actor.user_id,
        details={"email": user.email, "role": user.role},
        request=request,
    )
    db.delete(user)
    db.commit()


def revoke_all_sessions(db: Session, user: User) -> None:
    """
    Revoke all sessions for a user by bumping token_version.

    Existing tokens with the old version fail validation. Caller commits.
    """
    user.token_version += 1


def update_profile(
    db: Session, actor: UserSession, data: ProfileUpdate, request: Request | None = None
) -> User:
    """
    Let a staff member change their own name or email.

    Role and active flag stay admin-only. Sessions are kept: tokens carry the
    user id, not the email.

    Raises:
        ConflictError: the new email belongs to another user
    """
    user = require_user(db, actor.user_id)
    changed: list[str] = []

    if data.name is not None:
        name = normalize_name(data.name)
        if name and name != user.name:
            user.name = name
            changed.append("name")
    if data.email is not None:
        email = normalize_email(data.email)
        if email != user.email:
            existing = get_user_by_email(db, email)
            if existing and existing.id != user.id:
                raise ConflictError("A user with this email already exists")
            user.email = email
            changed.append("email")

    if changed:
        activity_service.log_activity(
            db,
            ActivityAction.PROFILE_UPDATED,
            EntityType.USER,
            entity_id=user.id,
            user_id=user.id,
            details={"fields": changed},
            request=request,
        )
    db.commit()
    db.refresh(user)
    return user


def get_stats(db: Session, recent_days: int = 7) -> dict:
    """Account counts for the admin dashboard."""
    total, active = db.query(
        func.count(User.id),
        func.count(User.id).filter(User.is_active.is_(True)),
    ).one()
    by_role = {role: count for role, count in db.query(User.role, func.count()).group_by(User.role).all()}
    recent = (
        db.query(func.count(User.id))
        .filter(User.created_at >= utc_now() - timedelta(days=recent_days))
        .scalar()
    )
    return {
        "total": total,
        "active": active,
        "inactive": total - active,
        "by_role": by_role,
        "recent": recent or 0,
    }
