"""Activity logging service - the audit trail for every mutating action.

Entries are added to the caller's session and committed with the caller's
transaction, so a rolled-back action leaves no entry behind. A failure to
build or add an entry is logged and swallowed: auditing never blocks the
primary action.

Security guidelines:
- NEVER log secrets (passwords, tokens)
- Use IDs instead of raw data where possible
- IP: Trust X-Forwarded-For only behind a configured proxy
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from fastapi import Request
from sqlalchemy import delete, func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.enums import ActivityAction, EntityType
from app.db.models import ActivityLog, User
from app.utils.datetimes import utc_now
from app.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)


def get_client_ip(request: Request | None) -> str | None:
    """
    Extract client IP from request.

    Only trusts X-Forwarded-For when TRUST_PROXY_HEADERS=True (behind reverse proxy).
    """
    if not request:
        return None

    if settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            # X-Forwarded-For: client, proxy1, proxy2 - take first
            return forwarded.split(",")[0].strip()[:45]

    if request.client:
        return request.client.host

    return None


def get_user_agent(request: Request | None) -> str | None:
    """Extract user agent from request."""
    if not request:
        return None
    ua = request.headers.get("user-agent", "")
    # Truncate to 500 chars (DB limit)
    return ua[:500] if ua else None


def log_activity(
    db: Session,
    action: ActivityAction,
    entity_type: EntityType,
    entity_id: UUID | None = None,
    user_id: UUID | None = None,
    details: dict | None = None,
    request: Request | None = None,
) -> ActivityLog | None:
    """
    Record one activity log entry in the current transaction.

    Args:
        db: Database session (caller commits)
        action: What happened
        entity_type: Kind of record affected
        entity_id: ID of the affected record
        user_id: Acting staff user (None for public/applicant actions)
        details: Free-form context (no secrets)
        request: FastAPI request for IP/user-agent extraction

    Returns:
        The pending entry, or None if it could not be recorded
    """
    try:
        entry = ActivityLog(
            user_id=user_id,
            action=action.value,
            entity_type=entity_type.value,
            entity_id=entity_id,
            details=_jsonable(details or {}),
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
            created_at=utc_now(),
        )
        db.add(entry)
        return entry
    except Exception:
        logger.exception(
            "Failed to record activity %s for %s %s",
            getattr(action, "value", action),
            getattr(entity_type, "value", entity_type),
            entity_id,
        )
        return None


def _jsonable(value):
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def list_activity(
    db: Session,
    pagination: PaginationParams,
    action: ActivityAction | None = None,
    entity_type: EntityType | None = None,
    entity_id: UUID | None = None,
    user_id: UUID | None = None,
) -> tuple[list[ActivityLog], int]:
    """List activity entries, newest first."""
    query = db.query(ActivityLog)
    if action:
        query = query.filter(ActivityLog.action == action.value)
    if entity_type:
        query = query.filter(ActivityLog.entity_type == entity_type.value)
    if entity_id:
        query = query.filter(ActivityLog.entity_id == entity_id)
    if user_id:
        query = query.filter(ActivityLog.user_id == user_id)
    query = query.order_by(ActivityLog.created_at.desc())
    return paginate_query(query, pagination)


def purge_older_than(db: Session, days: int) -> int:
    """Delete entries older than ``days``. Operator use only."""
    cutoff = utc_now() - timedelta(days=days)
    result = db.execute(delete(ActivityLog).where(ActivityLog.created_at < cutoff))
    db.commit()
    return result.rowcount or 0


def get_stats(db: Session, top: int = 10) -> dict:
    """Totals, the most frequent actions and the most active users."""
    now = utc_now()
    count = func.count(ActivityLog.id)

    by_action = (
        db.query(ActivityLog.action, count)
        .group_by(ActivityLog.action)
        .order_by(count.desc(), ActivityLog.action)
        .limit(top)
        .all()
    )
    by_user = (
        db.query(User.id, User.name, User.email, count)
        .join(ActivityLog, ActivityLog.user_id == User.id)
        .group_by(User.id, User.name, User.email)
        .order_by(count.desc(), User.name)
        .limit(top)
        .all()
    )

    def _since(delta: timedelta) -> int:
        return db.query(count).filter(ActivityLog.created_at >= now - delta).scalar() or 0

    return {
        "total": db.query(count).scalar() or 0,
        "by_action": [{"action": action, "count": n} for action, n in by_action],
        "top_users": [
            {"user_id": user_id, "name": name, "email": email, "count": n}
            for user_id, name, email, n in by_user
        ],
        "last_24_hours": _since(timedelta(days=1)),
        "last_7_days": _since(timedelta(days=7)),
    }
