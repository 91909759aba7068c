"""
Notification Service - in-app notifications and applicant messages.

Two audiences per workflow event:
- every active admin gets one in-app Notification row (bulk insert)
- the applicant gets one WhatsApp message, queued as a job and delivered
  by the worker

Both are written in the caller's transaction. Queuing the applicant message
never fails the triggering action.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from app.db.enums import JobType, NotificationType, Role
from app.db.models import Notification, User
from app.services import job_service
from app.utils.datetimes import utc_now
from app.utils.normalization import format_whatsapp_number, mask_phone

logger = logging.getLogger(__name__)


# =============================================================================
# Fan-out
# =============================================================================


def notify_admins(
    db: Session,
    notification_type: NotificationType,
    title: str,
    message: str,
    link: str | None = None,
    data: dict | None = None,
) -> int:
    """
    Create one notification per active admin. Returns the number created.

    The roster is read at send time: admins promoted later do not receive
    earlier notifications.
    """
    admin_ids = [
        row[0]
        for row in db.query(User.id)
        .filter(User.role == Role.ADMIN.value, User.is_active.is_(True))
        .all()
    ]
    if not admin_ids:
        return 0

    now = utc_now()
    db.add_all(
        [
            Notification(
                recipient_id=admin_id,
                type=notification_type.value,
                title=title,
                message=message,
                link=link,
                data=data or {},
                read=False,
                created_at=now,
            )
            for admin_id in admin_ids
        ]
    )
    return len(admin_ids)


def queue_applicant_message(
    db: Session,
    phone: str | None,
    message: str,
    context: dict | None = None,
) -> bool:
    """
    Queue a WhatsApp message to an applicant.

    Returns False (and logs) when the message could not be queued, e.g. an
    unusable phone number. Never raises.
    """
    try:
        if not format_whatsapp_number(phone):
            logger.warning("Skipping applicant message: unusable phone %r", mask_phone(phone))
            return False
        job_service.schedule_job(
            db,
            JobType.SEND_WHATSAPP,
            payload={"phone": phone, "message": message, "context": context or {}},
        )
        return True
    except Exception:
        logger.exception("Failed to queue applicant message to %s", mask_phone(phone))
        return False


# =============================================================================
# Recipient operations
# =============================================================================


def get_notifications(
    db: Session,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> list[Notification]:
    """Get notifications for a user, newest first."""
    query = db.query(Notification).filter(Notification.recipient_id == user_id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    return (
        query.order_by(Notification.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_unread_count(db: Session, user_id: UUID) -> int:
    """Get count of unread notifications."""
    return db.query(Notification).filter(
        Notification.recipient_id == user_id,
        Notification.read.is_(False),
    ).count()


def get_notification(db: Session, notification_id: UUID, user_id: UUID) -> Optional[Notification]:
    return db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.recipient_id == user_id,
    ).first()


def mark_read(db: Session, notification: Notification) -> Notification:
    """Mark a notification as read."""
    if not notification.read:
        notification.read = True
        notification.read_at = utc_now()
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: UUID) -> int:
    """Mark all notifications as read. Returns count updated."""
    result = db.execute(
        update(Notification)
        .where(Notification.recipient_id == user_id, Notification.read.is_(False))
        .values(read=True, read_at=utc_now())
    )
    db.commit()
    return result.rowcount or 0


def delete_notification(db: Session, notification: Notification) -> None:
    db.delete(notification)
    db.commit()


def clear_read(db: Session, user_id: UUID) -> int:
    """Delete all read notifications for a user. Returns count deleted."""
    result = db.execute(
        delete(Notification).where(
            Notification.recipient_id == user_id,
            Notification.read.is_(True),
        )
    )
    db.commit()
    return result.rowcount or 0
