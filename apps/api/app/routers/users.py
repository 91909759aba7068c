"""Users router - staff account management and the caller's own profile."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.core.deps import get_current_session, get_db, require_roles
from app.db.enums import ROLES_ADMIN
from app.schemas.auth import UserRead, UserSession
from app.schemas.common import Envelope, Page
from app.schemas.user import ProfileUpdate, UserCreate, UserStats, UserUpdate
from app.services import user_service
from app.utils.pagination import PaginationParams, get_pagination, pagination_meta

# Mounted before ``router`` so /me/profile is not captured by /{user_id}
profile_router = APIRouter()
router = APIRouter(dependencies=[Depends(require_roles(ROLES_ADMIN))])


# =============================================================================
# Own profile (any authenticated user)
# =============================================================================


@profile_router.get("/me/profile", response_model=Envelope[UserRead])
def get_profile(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return Envelope(data=UserRead.model_validate(user_service.require_user(db, session.user_id)))


@profile_router.put("/me/profile", response_model=Envelope[UserRead])
def update_profile(
    body: ProfileUpdate,
    request: Request,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    user = user_service.update_profile(db, session, body, request=request)
    return Envelope(data=UserRead.model_validate(user), message="Profile updated")


# =============================================================================
# Admin
# =============================================================================


@router.get("", response_model=Envelope[Page[UserRead]])
def list_users(
    role: str | None = Query(None),
    search: str | None = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    items, total = user_service.list_users(db, pagination, role=role, search=search)
    return Envelope(
        data=Page(items=[UserRead.model_validate(u) for u in items], **pagination_meta(total, pagination))
    )


@router.get("/stats/overview", response_model=Envelope[UserStats])
def get_user_stats(db: Session = Depends(get_db)):
    return Envelope(data=UserStats(**user_service.get_stats(db)))


@router.get("/{user_id}", response_model=Envelope[UserRead])
def get_user(user_id: UUID, db: Session = Depends(get_db)):
    return Envelope(data=UserRead.model_validate(user_service.require_user(db, user_id)))


@router.post("", response_model=Envelope[UserRead], status_code=201)
def create_user(
    body: UserCreate,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db),
):
    user = user_service.create_user_by_admin(db, body, session, request=request)
    return Envelope(data=UserRead.model_validate(user), message="User created")


@router.put("/{user_id}", response_model=Envelope[UserRead])
def update_user(
    user_id: UUID,
    body: UserUpdate,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db),
):
    user = user_service.update_user(db, user_id, body, session, request=request)
    return Envelope(data=UserRead.model_validate(user), message="User updated")


@router.delete("/{user_id}", response_model=Envelope[None])
def delete_user(
    user_id: UUID,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db),
):
    user_service.delete_user(db, user_id, session, request=request)
    return Envelope(message="User deleted")
