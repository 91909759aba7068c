"""Tests for admin notification fan-out and the recipient endpoints."""

import pytest

from app.db.enums import JobType, NotificationType, Role
from app.db.models import Job, Notification
from app.services import notification_service, user_service


@pytest.fixture
def second_admin(db):
    user = user_service.create_user(db, "Second Admin", "admin2@test.com", "password123", Role.ADMIN)
    db.commit()
    return user


def _notify(db, title: str = "طلب جديد") -> int:
    count = notification_service.notify_admins(
        db,
        NotificationType.NEW_SUBMISSION,
        title=title,
        message="طلب جديد من علي",
        link="/admin/submissions",
        data={"source": "website"},
    )
    db.commit()
    return count


class TestFanOut:
    def test_every_active_admin_gets_a_copy(self, db, admin_user, second_admin, agent_user, viewer_user):
        assert _notify(db) == 2

        recipients = {n.recipient_id for n in db.query(Notification).all()}
        assert recipients == {admin_user.id, second_admin.id}

    def test_inactive_admins_are_skipped(self, db, admin_user, second_admin):
        second_admin.is_active = False
        db.commit()

        assert _notify(db) == 1
        assert db.query(Notification).one().recipient_id == admin_user.id

    def test_no_admins_means_no_notifications(self, db, agent_user):
        assert _notify(db) == 0
        assert db.query(Notification).count() == 0


class TestApplicantMessages:
    def test_queue_message_schedules_job(self, db):
        assert notification_service.queue_applicant_message(db, "0612345678", "مرحبا", {"event": "test"})
        db.commit()

        job = db.query(Job).one()
        assert job.job_type == JobType.SEND_WHATSAPP.value
        assert job.payload == {"phone": "0612345678", "message": "مرحبا", "context": {"event": "test"}}

    def test_unusable_phone_is_skipped(self, db):
        assert notification_service.queue_applicant_message(db, "---", "مرحبا") is False
        assert db.query(Job).count() == 0


class TestEndpoints:
    @pytest.mark.asyncio
    async def test_list_only_returns_own_notifications(self, client, db, admin_user, second_admin, admin_headers):
        _notify(db, "one")
        _notify(db, "two")

        response = await client.get("/api/notifications", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["unread_count"] == 2
        assert {n["title"] for n in data["items"]} == {"one", "two"}
        assert db.query(Notification).count() == 4

    @pytest.mark.asyncio
    async def test_mark_read_and_unread_count(self, client, db, admin_user, admin_headers):
        _notify(db)
        notification = db.query(Notification).one()

        response = await client.patch(f"/api/notifications/{notification.id}/read", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["read"] is True
        assert response.json()["data"]["read_at"] is not None

        response = await client.get("/api/notifications/unread-count", headers=admin_headers)
        assert response.json()["data"] == {"count": 0}

    @pytest.mark.asyncio
    async def test_cannot_touch_someone_elses_notification(
        self, client, db, admin_user, second_admin, headers_for
    ):
        _notify(db)
        theirs = db.query(Notification).filter(Notification.recipient_id == admin_user.id).one()

        response = await client.patch(
            f"/api/notifications/{theirs.id}/read", headers=headers_for(second_admin)
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Notification not found"

    @pytest.mark.asyncio
    async def test_read_all_then_clear_read(self, client, db, admin_user, admin_headers):
        _notify(db, "one")
        _notify(db, "two")

        response = await client.patch("/api/notifications/read-all", headers=admin_headers)
        assert response.json()["data"] == {"updated": 2}

        _notify(db, "three")
        response = await client.delete("/api/notifications/clear-read", headers=admin_headers)
        assert response.json()["data"] == {"deleted": 2}

        remaining = db.query(Notification).all()
        assert [n.title for n in remaining] == ["three"]
        assert remaining[0].read is False

    @pytest.mark.asyncio
    async def test_delete_notification(self, client, db, admin_user, admin_headers):
        _notify(db)
        notification = db.query(Notification).one()

        response = await client.delete(f"/api/notifications/{notification.id}", headers=admin_headers)

        assert response.status_code == 200
        assert db.query(Notification).count() == 0

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client):
        response = await client.get("/api/notifications")

        assert response.status_code == 401
