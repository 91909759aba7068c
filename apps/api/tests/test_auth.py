"""Tests for login, session tokens, registration and password changes."""

import pytest

from app.db.models import ActivityLog, User


async def _login(client, email: str = "admin@test.com", password: str = "password123"):
    return await client.post("/api/auth/login", json={"email": email, "password": password})


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_returns_token_and_cookie(self, client, db, admin_user):
        response = await _login(client, email="Admin@Test.com")

        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["user"]["email"] == "admin@test.com"
        assert data["user"]["role"] == "admin"
        assert "password_hash" not in data["user"]
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("crm_session=")
        assert "HttpOnly" in cookie

        db.refresh(admin_user)
        assert admin_user.last_login is not None
        assert db.query(ActivityLog).filter(ActivityLog.action == "user_login").count() == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email, password",
        [("admin@test.com", "wrong-password"), ("ghost@test.com", "password123")],
    )
    async def test_bad_credentials_share_one_message(self, client, admin_user, email, password):
        response = await _login(client, email=email, password=password)

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid email or password"}

    @pytest.mark.asyncio
    async def test_disabled_account_cannot_login(self, client, db, admin_user):
        admin_user.is_active = False
        db.commit()

        response = await _login(client)

        assert response.status_code == 401
        assert response.json()["message"] == "Account disabled"

    @pytest.mark.asyncio
    async def test_me_with_bearer_token(self, client, admin_user):
        token = (await _login(client)).json()["data"]["token"]

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["data"]["id"] == str(admin_user.id)

    @pytest.mark.asyncio
    async def test_me_with_session_cookie(self, client, admin_user):
        token = (await _login(client)).json()["data"]["token"]

        response = await client.get("/api/auth/me", headers={"Cookie": f"crm_session={token}"})

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "admin@test.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "headers, message",
        [
            ({}, "Not authenticated"),
            ({"Authorization": "Bearer not-a-jwt"}, "Invalid session"),
        ],
    )
    async def test_me_rejects_missing_or_bad_token(self, client, headers, message):
        response = await client.get("/api/auth/me", headers=headers)

        assert response.status_code == 401
        assert response.json()["message"] == message

    @pytest.mark.asyncio
    async def test_logout_is_logged(self, client, db, admin_headers):
        response = await client.post("/api/auth/logout", headers=admin_headers)

        assert response.status_code == 200
        assert db.query(ActivityLog).filter(ActivityLog.action == "user_logout").count() == 1


class TestRegister:
    NEW_USER = {"name": "New Agent", "email": "new@test.com", "password": "secret123", "role": "agent"}

    @pytest.mark.asyncio
    async def test_register_needs_bootstrap_admin(self, client, db):
        response = await client.post("/api/auth/register", json=self.NEW_USER)

        assert response.status_code == 403
        assert db.query(User).count() == 0

    @pytest.mark.asyncio
    async def test_register_is_admin_only(self, client, agent_headers):
        response = await client.post("/api/auth/register", json=self.NEW_USER)
        assert response.status_code == 403

        response = await client.post("/api/auth/register", json=self.NEW_USER, headers=agent_headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Only admins can register users"

    @pytest.mark.asyncio
    async def test_admin_registers_user(self, client, db, admin_headers):
        response = await client.post("/api/auth/register", json=self.NEW_USER, headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["data"]["role"] == "agent"

        response = await _login(client, email="new@test.com", password="secret123")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_duplicate_email_is_rejected(self, client, admin_headers):
        body = {**self.NEW_USER, "email": "ADMIN@test.com"}

        response = await client.post("/api/auth/register", json=body, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "A user with this email already exists"


class TestPasswordChange:
    @pytest.mark.asyncio
    async def test_change_revokes_old_tokens(self, client, admin_user):
        old_token = (await _login(client)).json()["data"]["token"]
        old_headers = {"Authorization": f"Bearer {old_token}"}

        response = await client.put(
            "/api/auth/password",
            json={"current_password": "password123", "new_password": "new-password"},
            headers=old_headers,
        )
        assert response.status_code == 200
        new_token = response.json()["data"]["token"]

        response = await client.get("/api/auth/me", headers=old_headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Session revoked"

        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {new_token}"})
        assert response.status_code == 200

        assert (await _login(client)).status_code == 401
        assert (await _login(client, password="new-password")).status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, client, admin_headers):
        response = await client.put(
            "/api/auth/password",
            json={"current_password": "nope", "new_password": "new-password"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Current password is incorrect"

    @pytest.mark.asyncio
    async def test_new_password_must_differ(self, client, admin_headers):
        response = await client.put(
            "/api/auth/password",
            json={"current_password": "password123", "new_password": "password123"},
            headers=admin_headers,
        )

        assert response.status_code == 400
