"""
Notifications Router - /api/notifications endpoints.

In-app notifications of the current user: listing, read status and cleanup.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_session, get_db
from app.core.errors import NotFoundError
from app.schemas.auth import UserSession
from app.schemas.common import Envelope
from app.schemas.notification import NotificationRead, UnreadCount
from app.services import notification_service

router = APIRouter()


@router.get("", response_model=Envelope[dict])
def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get user's notifications with the unread count."""
    notifications = notification_service.get_notifications(
        db, session.user_id, unread_only=unread_only, limit=limit, offset=offset
    )
    return Envelope(
        data={
            "items": [NotificationRead.model_validate(n).model_dump(mode="json") for n in notifications],
            "unread_count": notification_service.get_unread_count(db, session.user_id),
        }
    )


@router.get("/unread-count", response_model=Envelope[UnreadCount])
def get_unread_count(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get unread notification count (for polling)."""
    return Envelope(data=UnreadCount(count=notification_service.get_unread_count(db, session.user_id)))


@router.patch("/read-all", response_model=Envelope[dict])
def mark_all_read(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    count = notification_service.mark_all_read(db, session.user_id)
    return Envelope(data={"updated": count}, message="All notifications marked as read")


@router.delete("/clear-read", response_model=Envelope[dict])
def clear_read(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    count = notification_service.clear_read(db, session.user_id)
    return Envelope(data={"deleted": count}, message="Read notifications cleared")


@router.patch("/{notification_id}/read", response_model=Envelope[NotificationRead])
def mark_read(
    notification_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    notification = notification_service.get_notification(db, notification_id, session.user_id)
    if not notification:
        raise NotFoundError("Notification not found")
    notification = notification_service.mark_read(db, notification)
    return Envelope(data=NotificationRead.model_validate(notification))


@router.delete("/{notification_id}", response_model=Envelope[None])
def delete_notification(
    notification_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    notification = notification_service.get_notification(db, notification_id, session.user_id)
    if not notification:
        raise NotFoundError("Notification not found")
    notification_service.delete_notification(db, notification)
    return Envelope(message="Notification deleted")
