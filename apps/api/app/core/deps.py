"""Request dependencies: database session, staff authentication and role checks."""

from typing import Generator
from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.security import decode_session_token
from app.db.session import SessionLocal


COOKIE_NAME = "crm_session"
AUTH_SCHEME = "bearer"


def get_db() -> Generator[Session, None, None]:
    """One session per request, closed when the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _extract_token(request: Request) -> str | None:
    """Bearer token from the Authorization header, falling back to the session cookie."""
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == AUTH_SCHEME and credentials.strip():
        return credentials.strip()
    return request.cookies.get(COOKIE_NAME)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail)


def _subject_id(payload: dict) -> UUID:
    try:
        return UUID(str(payload.get("sub")))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid session")


def get_current_user(request: Request, db: Session = Depends(get_db)):
    """
    Resolve the staff user behind the request token.

    The token must decode with a current or previous secret, name an
    existing active user, and carry that user's current token_version.
    Password changes, deactivation and role changes bump the version, which
    invalidates every token issued before.

    Raises:
        HTTPException 401: missing, invalid or revoked session
    """
    # Deferred to keep app.core importable without the model registry
    from app.db.models import User

    token = _extract_token(request)
    if not token:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_session_token(token)
    except Exception:
        raise _unauthorized("Invalid session")

    user = db.get(User, _subject_id(payload))
    if not user:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("Account disabled")
    if user.token_version != payload.get("token_version"):
        raise _unauthorized("Session revoked")
    return user


def get_current_session(request: Request, db: Session = Depends(get_db)):
    """
    UserSession for the authenticated staff member.

    Raises:
        HTTPException 401: not authenticated
        HTTPException 403: stored role is not a known Role
    """
    from app.db.enums import Role
    from app.schemas.auth import UserSession

    user = get_current_user(request, db)
    if not Role.has_value(user.role):
        raise HTTPException(status_code=403, detail=f"Unknown role '{user.role}'. Contact administrator.")

    return UserSession(user_id=user.id, role=Role(user.role), email=user.email, name=user.name)


def require_roles(allowed_roles: list):
    """
    Build a dependency that admits only the given roles.

    Usage:
        session: UserSession = Depends(require_roles(ROLES_STAFF))
    """

    def dependency(request: Request, db: Session = Depends(get_db)):
        session = get_current_session(request, db)
        if session.role not in allowed_roles:
            raise HTTPException(
                status_code=403,
                detail=f"Role '{session.role.value}' not authorized for this action",
            )
        return session

    return dependency


def get_optional_session(request: Request, db: Session = Depends(get_db)):
    """Session context when the request carries a valid token, None otherwise."""
    if not _extract_token(request):
        return None
    try:
        return get_current_session(request, db)
    except HTTPException:
        return None
