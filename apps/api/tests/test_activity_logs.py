"""Activity log listing and the health endpoint."""

import pytest

from app.db.enums import ActivityAction, EntityType
from app.services import activity_service
from app.utils.pagination import PaginationParams


@pytest.fixture
def entries(db, admin_user, agent_user):
    activity_service.log_activity(db, ActivityAction.USER_LOGIN, EntityType.USER, admin_user.id, admin_user.id)
    activity_service.log_activity(db, ActivityAction.USER_LOGIN, EntityType.USER, agent_user.id, agent_user.id)
    activity_service.log_activity(
        db,
        ActivityAction.PASSWORD_CHANGED,
        EntityType.USER,
        agent_user.id,
        agent_user.id,
        details={"at": None, "ids": (1, 2)},
    )
    db.commit()


@pytest.mark.asyncio
async def test_admin_lists_newest_first(client, entries, admin_headers):
    response = await client.get("/api/activity-logs", headers=admin_headers)

    assert response.status_code == 200
    page = response.json()["data"]
    assert page["total"] == 3
    assert page["items"][0]["action"] == "password_changed"
    assert page["items"][0]["details"] == {"at": None, "ids": [1, 2]}


@pytest.mark.asyncio
async def test_filters(client, entries, agent_user, admin_headers):
    response = await client.get(
        "/api/activity-logs",
        params={"action": "user_login", "userId": str(agent_user.id)},
        headers=admin_headers,
    )

    items = response.json()["data"]["items"]
    assert len(items) == 1
    assert items[0]["entity_type"] == "User"


@pytest.mark.asyncio
async def test_pagination(client, entries, admin_headers):
    response = await client.get("/api/activity-logs", params={"page": 2, "limit": 2}, headers=admin_headers)

    page = response.json()["data"]
    assert page["page"] == 2
    assert page["pages"] == 2
    assert len(page["items"]) == 1


@pytest.mark.asyncio
async def test_agents_cannot_read_the_log(client, agent_headers):
    response = await client.get("/api/activity-logs", headers=agent_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_request_metadata_is_recorded(client, db, admin_user):
    await client.post(
        "/api/auth/login",
        json={"email": "admin@test.com", "password": "password123"},
        headers={"User-Agent": "pytest-agent"},
    )

    entry = activity_service.list_activity(db, PaginationParams(page=1, limit=10))[0][0]
    assert entry.user_agent == "pytest-agent"
    assert entry.ip_address is not None


@pytest.mark.asyncio
async def test_stats_overview(client, entries, admin_user, agent_user, admin_headers):
    response = await client.get("/api/activity-logs/stats/overview", headers=admin_headers)

    assert response.status_code == 200
    stats = response.json()["data"]
    assert stats["total"] == 3
    assert stats["last_24_hours"] == 3
    assert stats["last_7_days"] == 3
    assert stats["by_action"] == [
        {"action": "user_login", "count": 2},
        {"action": "password_changed", "count": 1},
    ]
    assert [(u["email"], u["count"]) for u in stats["top_users"]] == [
        ("agent@test.com", 2),
        ("admin@test.com", 1),
    ]


@pytest.mark.asyncio
async def test_stats_are_admin_only(client, agent_headers):
    response = await client.get("/api/activity-logs/stats/overview", headers=agent_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
