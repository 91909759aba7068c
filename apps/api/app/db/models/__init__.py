"""SQLAlchemy ORM models."""

from app.db.models.activity import ActivityLog
from app.db.models.auth import User
from app.db.models.clients import Client, ClientNote
from app.db.models.documents import Document, DocumentLink
from app.db.models.jobs import Job
from app.db.models.notifications import Notification
from app.db.models.payments import PaymentLink
from app.db.models.submissions import Submission

__all__ = [
    "ActivityLog",
    "User",
    "Client",
    "ClientNote",
    "Document",
    "DocumentLink",
    "Job",
    "Notification",
    "PaymentLink",
    "Submission",
]
