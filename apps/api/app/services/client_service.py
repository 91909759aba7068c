"""Client service - converted applicants, assignment and notes.

Agents only see and edit clients assigned to them. Admins and viewers see
every client; only staff roles reach the write operations.
"""

from uuid import UUID

from fastapi import Request
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from app.core.errors import ForbiddenError, NotFoundError, ValidationError
from app.db.enums import ActivityAction, EntityType, NotificationType, Role
from app.db.models import Client, ClientNote, Submission, User
from app.schemas.auth import UserSession
from app.schemas.client import ClientUpdate
from app.services import activity_service, notification_service
from app.utils.normalization import normalize_email
from app.utils.pagination import PaginationParams, paginate_query


def _check_access(client: Client, session: UserSession) -> None:
    if session.role == Role.AGENT and client.assigned_to != session.user_id:
        raise ForbiddenError("You do not have access to this client")


def _scoped(query, session: UserSession):
    if session.role == Role.AGENT:
        return query.filter(Client.assigned_to == session.user_id)
    return query


def get_client(db: Session, client_id: UUID, session: UserSession) -> Client:
    client = (
        db.query(Client)
        .options(selectinload(Client.notes))
        .filter(Client.id == client_id)
        .first()
    )
    if not client:
        raise NotFoundError("Client not found")
    _check_access(client, session)
    return client


def list_clients(
    db: Session,
    session: UserSession,
    pagination: PaginationParams,
    search: str | None = None,
    status: str | None = None,
    service: str | None = None,
    assigned_to: UUID | None = None,
) -> tuple[list[Client], int]:
    query = _scoped(db.query(Client).options(selectinload(Client.notes)), session)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Client.name.ilike(pattern),
                Client.email.ilike(pattern),
                Client.phone.ilike(pattern),
            )
        )
    if status and status != "all":
        query = query.filter(Client.status == status)
    if service and service != "all":
        query = query.filter(Client.service == service)
    if assigned_to:
        query = query.filter(Client.assigned_to == assigned_to)
    return paginate_query(query.order_by(Client.created_at.desc()), pagination)


def view_client(
    db: Session, client_id: UUID, session: UserSession, request: Request | None = None
) -> Client:
    client = get_client(db, client_id, session)
    activity_service.log_activity(
        db,
        ActivityAction.CLIENT_VIEWED,
        EntityType.CLIENT,
        entity_id=client.id,
        user_id=session.user_id,
        request=request,
    )
    db.commit()
    return client


def update_client(
    db: Session,
    client_id: UUID,
    data: ClientUpdate,
    session: UserSession,
    request: Request | None = None,
) -> Client:
    """Update client fields. Only admins may reassign a client."""
    client = get_client(db, client_id, session)
    changes = data.model_dump(exclude_unset=True)

    if "assigned_to" in changes:
        if session.role != Role.ADMIN:
            raise ForbiddenError("Only admins can reassign clients")
        assignee_id = changes["assigned_to"]
        if assignee_id is not None:
            assignee = db.get(User, assignee_id)
            if not assignee or not assignee.is_active:
                raise ValidationError("Assigned user not found or inactive")

    for field, value in changes.items():
        if hasattr(value, "value"):
            value = value.value
        if field == "email":
            value = normalize_email(value)
        setattr(client, field, value)

    activity_service.log_activity(
        db,
        ActivityAction.CLIENT_UPDATED,
        EntityType.CLIENT,
        entity_id=client.id,
        user_id=session.user_id,
        details={"fields": sorted(changes)},
        request=request,
    )
    notification_service.notify_admins(
        db,
        NotificationType.CLIENT_UPDATED,
        title="تحديث بيانات عميل",
        message=f"تم تحديث بيانات العميل {client.name} بواسطة {session.name}",
        link=f"/admin/clients/{client.id}",
        data={"client_id": str(client.id)},
    )
    db.commit()
    db.refresh(client)
    return client


def add_note(
    db: Session,
    client_id: UUID,
    content: str,
    session: UserSession,
    request: Request | None = None,
) -> ClientNote:
    client = get_client(db, client_id, session)
    content = content.strip()
    if not content:
        raise ValidationError("Note content is required")

    note = ClientNote(client_id=client.id, content=content, added_by=session.user_id)
    db.add(note)
    db.flush()
    activity_service.log_activity(
        db,
        ActivityAction.CLIENT_NOTE_ADDED,
        EntityType.CLIENT,
        entity_id=client.id,
        user_id=session.user_id,
        details={"note_id": str(note.id)},
        request=request,
    )
    db.commit()
    db.refresh(note)
    return note


def delete_client(
    db: Session, client_id: UUID, session: UserSession, request: Request | None = None
) -> None:
    """Delete a client and its notes; the originating submission keeps its history."""
    client = get_client(db, client_id, session)
    activity_service.log_activity(
        db,
        ActivityAction.CLIENT_DELETED,
        EntityType.CLIENT,
        entity_id=client.id,
        user_id=session.user_id,
        details={"name": client.name, "submission_id": str(client.submission_id) if client.submission_id else None},
        request=request,
    )
    notification_service.notify_admins(
        db,
        NotificationType.CLIENT_DELETED,
        title="حذف عميل",
        message=f"تم حذف العميل {client.name} بواسطة {session.name}",
        data={"client_id": str(client.id)},
    )
    db.query(Submission).filter(Submission.client_id == client.id).update(
        {Submission.client_id: None}, synchronize_session=False
    )
    db.delete(client)
    db.commit()


def get_stats(db: Session, session: UserSession) -> dict:
    base = _scoped(db.query(Client), session)

    def _grouped(column) -> dict[str, int]:
        rows = _scoped(db.query(column, func.count(Client.id)), session).group_by(column).all()
        return {key: count for key, count in rows}

    return {
        "total": base.count(),
        "by_status": _grouped(Client.status),
        "by_service": _grouped(Client.service),
    }
