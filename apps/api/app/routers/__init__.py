"""API routers."""

from app.routers.auth import router as auth_router
from app.routers.submissions import router as submissions_router
from app.routers.documents import router as documents_router
from app.routers.payments import router as payments_router
from app.routers.clients import router as clients_router
from app.routers.notifications import router as notifications_router
from app.routers.users import router as users_router
from app.routers.activity_logs import router as activity_logs_router

__all__ = [
    "auth_router",
    "submissions_router",
    "documents_router",
    "payments_router",
    "clients_router",
    "notifications_router",
    "users_router",
    "activity_logs_router",
]
