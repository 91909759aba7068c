"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.db.session import engine

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Applicant phone numbers and names stay out of Sentry
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from app.core.rate_limit import limiter

# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Connect CRM API",
    description="Submission workflow, document collection and client management API",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

app.state.limiter = limiter
register_exception_handlers(app)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    expose_headers=["Content-Disposition"],
)

# ============================================================================
# Routers
# ============================================================================

from app.routers import (
    activity_logs,
    auth,
    clients,
    documents,
    notifications,
    payments,
    submissions,
    users,
)

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])

# Submission workflow (public intake + staff actions)
app.include_router(submissions.router, prefix="/api/submissions", tags=["submissions"])
app.include_router(documents.router, prefix="/api/documents", tags=["documents"])
app.include_router(payments.router, prefix="/api/payments", tags=["payments"])

app.include_router(clients.router, prefix="/api/clients", tags=["clients"])

# Notifications (user-scoped)
app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])

# Own profile for any user; the rest is admin only
app.include_router(users.profile_router, prefix="/api/users", tags=["users"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(activity_logs.router, prefix="/api/activity-logs", tags=["activity-logs"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"success": True, "status": "ok", "env": settings.ENV, "version": settings.VERSION}
