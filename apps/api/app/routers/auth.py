"""Authentication router - password login and session management."""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import COOKIE_NAME, get_current_session, get_current_user, get_db, get_optional_session
from app.core.rate_limit import AUTH_LIMIT, limiter
from app.schemas.auth import ChangePasswordRequest, LoginRequest, RegisterRequest, UserRead, UserSession
from app.schemas.common import Envelope
from app.services import auth_service

router = APIRouter()


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


@router.post("/login", response_model=Envelope[dict])
@limiter.limit(AUTH_LIMIT)
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
):
    """Exchange email + password for a session token (also set as a cookie)."""
    user, token = auth_service.authenticate(db, body.email, body.password, request=request)
    _set_session_cookie(response, token)
    return Envelope(
        data={"token": token, "user": UserRead.model_validate(user).model_dump(mode="json")},
        message="Login successful",
    )


@router.post("/register", response_model=Envelope[UserRead], status_code=201)
@limiter.limit(AUTH_LIMIT)
def register(
    request: Request,
    body: RegisterRequest,
    db: Session = Depends(get_db),
    session: UserSession | None = Depends(get_optional_session),
):
    """Register a staff user (admin only)."""
    user = auth_service.register(db, body, session, request=request)
    return Envelope(data=UserRead.model_validate(user), message="User registered successfully")


@router.get("/me", response_model=Envelope[UserRead])
def me(user=Depends(get_current_user)):
    return Envelope(data=UserRead.model_validate(user))


@router.post("/logout", response_model=Envelope[None])
def logout(
    request: Request,
    response: Response,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Log out and clear the session cookie."""
    auth_service.logout(db, session, request=request)
    response.delete_cookie(COOKIE_NAME, path="/")
    return Envelope(message="Logged out successfully")


@router.put("/password", response_model=Envelope[dict])
def change_password(
    request: Request,
    response: Response,
    body: ChangePasswordRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Change the current user's password.

    Other sessions are revoked; the caller receives a fresh token.
    """
    token = auth_service.change_password(
        db, session, body.current_password, body.new_password, request=request
    )
    _set_session_cookie(response, token)
    return Envelope(data={"token": token}, message="Password changed successfully")
