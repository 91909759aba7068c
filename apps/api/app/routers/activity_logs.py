"""Activity log router (admin only)."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_roles
from app.db.enums import ROLES_ADMIN, ActivityAction, EntityType
from app.schemas.activity import ActivityLogRead, ActivityStats
from app.schemas.common import Envelope, Page
from app.services import activity_service
from app.utils.pagination import PaginationParams, get_pagination, pagination_meta

router = APIRouter(dependencies=[Depends(require_roles(ROLES_ADMIN))])


@router.get("", response_model=Envelope[Page[ActivityLogRead]])
def list_activity_logs(
    action: ActivityAction | None = Query(None),
    entity_type: EntityType | None = Query(None, alias="entityType"),
    entity_id: UUID | None = Query(None, alias="entityId"),
    user_id: UUID | None = Query(None, alias="userId"),
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    items, total = activity_service.list_activity(
        db,
        pagination,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
    )
    return Envelope(
        data=Page(
            items=[ActivityLogRead.model_validate(entry) for entry in items],
            **pagination_meta(total, pagination),
        )
    )


@router.get("/stats/overview", response_model=Envelope[ActivityStats])
def get_activity_stats(db: Session = Depends(get_db)):
    return Envelope(data=ActivityStats(**activity_service.get_stats(db)))
