"""Service layer modules."""

from app.services.auth_service import (
    authenticate,
    change_password,
    create_session_for_user,
    register,
)
from app.services.user_service import (
    create_user,
    get_user_by_email,
    get_user_by_id,
    revoke_all_sessions,
)

# Import service modules (not individual functions) for cleaner access
from app.services import submission_service
from app.services import document_service
from app.services import payment_service
from app.services import client_service

__all__ = [
    # Auth service
    "authenticate",
    "change_password",
    "create_session_for_user",
    "register",
    # User service
    "create_user",
    "get_user_by_email",
    "get_user_by_id",
    "revoke_all_sessions",
    # Service modules
    "submission_service",
    "document_service",
    "payment_service",
    "client_service",
]
