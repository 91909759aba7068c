"""
Test configuration and fixtures.

Provides:
- A fresh SQLite schema per test (created and dropped around each test)
- Staff users per role and JWT auth headers for them
- HTTPX AsyncClient bound to the app with the test session
- Factories for submissions at a given workflow stage and for upload files
"""
import os
import tempfile
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

_TMP_DIR = tempfile.mkdtemp(prefix="connect-crm-tests-")

# Must be set before the app (and its settings) are imported
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["LOCAL_UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256"
for _var in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_S3_BUCKET", "TWILIO_ACCOUNT_SID"):
    os.environ[_var] = ""
for _var in ("VERCEL", "AWS_LAMBDA_FUNCTION_NAME", "LAMBDA_TASK_ROOT"):
    os.environ.pop(_var, None)

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

import app.db.models  # noqa: F401
from app.main import app
from app.core.config import settings
from app.core.deps import get_db
from app.core.security import create_session_token
from app.db.base import Base
from app.db.enums import Role, WorkflowStage
from app.db.models import Submission, User
from app.db.session import engine, SessionLocal
from app.schemas.auth import UserSession
from app.services import user_service, whatsapp_service


PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Session on a freshly created schema; everything is dropped afterwards."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _make_user(db: Session, role: Role, email: str, name: str) -> User:
    user = user_service.create_user(db, name, email, "password123", role)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def admin_user(db: Session) -> User:
    return _make_user(db, Role.ADMIN, "admin@test.com", "Admin User")


@pytest.fixture(scope="function")
def agent_user(db: Session) -> User:
    return _make_user(db, Role.AGENT, "agent@test.com", "Agent User")


@pytest.fixture(scope="function")
def viewer_user(db: Session) -> User:
    return _make_user(db, Role.VIEWER, "viewer@test.com", "Viewer User")


def session_for(user: User) -> UserSession:
    return UserSession(user_id=user.id, role=Role(user.role), email=user.email, name=user.name)


@pytest.fixture(scope="function")
def admin_session(admin_user: User) -> UserSession:
    return session_for(admin_user)


@pytest.fixture(scope="function")
def agent_session(agent_user: User) -> UserSession:
    return session_for(agent_user)


# =============================================================================
# Auth Fixtures
# =============================================================================

def auth_headers_for(user: User) -> dict[str, str]:
    token = create_session_token(user.id, user.role, user.token_version)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def headers_for():
    """Auth headers for any user created inside a test."""
    return auth_headers_for


@pytest.fixture(scope="function")
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers_for(admin_user)


@pytest.fixture(scope="function")
def agent_headers(agent_user: User) -> dict[str, str]:
    return auth_headers_for(agent_user)


@pytest.fixture(scope="function")
def viewer_headers(viewer_user: User) -> dict[str, str]:
    return auth_headers_for(viewer_user)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create AsyncClient for the app; requests share the test session.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    client: AsyncClient,
    admin_headers: dict[str, str],
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient authenticated as the admin user."""
    client.headers.update(admin_headers)
    yield client


# =============================================================================
# Domain Factories
# =============================================================================

@pytest.fixture(scope="function")
def make_submission(db: Session):
    """Insert a submission directly at a given workflow stage."""

    def _make(
        stage: WorkflowStage = WorkflowStage.PENDING_VALIDATION,
        name: str = "Ali Ben Salah",
        phone: str = "0612345678",
        email: str | None = "ali@example.com",
        service: str = "work_visa",
    ) -> Submission:
        submission = Submission(
            name=name,
            email=email,
            phone=phone,
            service=service,
            message="I would like to work in Canada",
            workflow_status=stage.value,
        )
        db.add(submission)
        db.commit()
        db.refresh(submission)
        return submission

    return _make


@dataclass
class SentMessage:
    phone: str
    body: str


@pytest.fixture(scope="function")
def sent_messages(monkeypatch) -> list[SentMessage]:
    """Replace the WhatsApp gateway call with a recorder."""
    sent: list[SentMessage] = []

    async def fake_send(phone, body, *, client=None):
        sent.append(SentMessage(phone=phone, body=body))
        return whatsapp_service.SendResult(sid=f"SM{len(sent)}")

    monkeypatch.setattr(whatsapp_service, "send_message", fake_send)
    return sent



@pytest.fixture(scope="function")
def upload_dir() -> str:
    """Local storage root used by the app during tests."""
    return settings.upload_root


@pytest.fixture(scope="function")
def pdf_file():
    """Build a multipart file tuple holding a small PDF."""

    def _make(name: str = "passport.pdf", content: bytes = PDF_BYTES) -> tuple[str, bytes, str]:
        return (name, content, "application/pdf")

    return _make
