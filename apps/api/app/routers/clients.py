"""Clients router - converted applicants."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_roles
from app.db.enums import ROLES_ADMIN, ROLES_CAN_VIEW, ROLES_STAFF
from app.schemas.auth import UserSession
from app.schemas.client import ClientNoteCreate, ClientNoteRead, ClientRead, ClientStats, ClientUpdate
from app.schemas.common import Envelope, Page
from app.services import client_service
from app.utils.pagination import PaginationParams, get_pagination, pagination_meta

router = APIRouter()


@router.get("", response_model=Envelope[Page[ClientRead]])
def list_clients(
    search: str | None = Query(None),
    status: str | None = Query(None),
    service: str | None = Query(None),
    assigned_to: UUID | None = Query(None, alias="assignedTo"),
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    """List clients. Agents only see clients assigned to them."""
    items, total = client_service.list_clients(
        db,
        session,
        pagination,
        search=search,
        status=status,
        service=service,
        assigned_to=assigned_to,
    )
    return Envelope(
        data=Page(items=[ClientRead.model_validate(c) for c in items], **pagination_meta(total, pagination))
    )


@router.get("/stats/overview", response_model=Envelope[ClientStats])
def client_stats(
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    return Envelope(data=ClientStats(**client_service.get_stats(db, session)))


@router.get("/{client_id}", response_model=Envelope[ClientRead])
def get_client(
    client_id: UUID,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_CAN_VIEW)),
    db: Session = Depends(get_db),
):
    client = client_service.view_client(db, client_id, session, request=request)
    return Envelope(data=ClientRead.model_validate(client))


@router.put("/{client_id}", response_model=Envelope[ClientRead])
def update_client(
    client_id: UUID,
    body: ClientUpdate,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    client = client_service.update_client(db, client_id, body, session, request=request)
    return Envelope(data=ClientRead.model_validate(client), message="Client updated")


@router.post("/{client_id}/notes", response_model=Envelope[ClientNoteRead], status_code=201)
def add_note(
    client_id: UUID,
    body: ClientNoteCreate,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_STAFF)),
    db: Session = Depends(get_db),
):
    note = client_service.add_note(db, client_id, body.content, session, request=request)
    return Envelope(data=ClientNoteRead.model_validate(note), message="Note added")


@router.delete("/{client_id}", response_model=Envelope[None])
def delete_client(
    client_id: UUID,
    request: Request,
    session: UserSession = Depends(require_roles(ROLES_ADMIN)),
    db: Session = Depends(get_db),
):
    client_service.delete_client(db, client_id, session, request=request)
    return Envelope(message="Client deleted")
