"""Operator CLI commands."""

from datetime import timedelta

from click.testing import CliRunner

from app.cli import cli
from app.core.security import verify_password
from app.db.models import ActivityLog, User
from app.utils.datetimes import utc_now


def test_create_admin(db):
    result = CliRunner().invoke(
        cli, ["create-admin", "--name", "Site Owner", "--email", "Owner@Example.com", "--password", "secret123"]
    )

    assert result.exit_code == 0, result.output
    assert "Created admin: owner@example.com" in result.output
    user = db.query(User).one()
    assert user.role == "admin"
    assert verify_password("secret123", user.password_hash)


def test_create_admin_rejects_duplicate_email(db, admin_user):
    result = CliRunner().invoke(
        cli, ["create-admin", "--name", "Again", "--email", "admin@test.com", "--password", "secret123"]
    )

    assert result.exit_code == 1
    assert "A user with this email already exists" in result.output


def test_create_admin_rejects_short_password(db):
    result = CliRunner().invoke(
        cli, ["create-admin", "--name", "Owner", "--email", "owner@example.com", "--password", "123"]
    )

    assert result.exit_code == 1
    assert db.query(User).count() == 0


def test_revoke_sessions(db, agent_user):
    version = agent_user.token_version

    result = CliRunner().invoke(cli, ["revoke-sessions", "--email", "agent@test.com"])

    assert result.exit_code == 0, result.output
    db.refresh(agent_user)
    assert agent_user.token_version == version + 1


def test_purge_activity_logs(db):
    db.add_all(
        [
            ActivityLog(action="user_login", entity_type="user", details={}, created_at=utc_now() - timedelta(days=40)),
            ActivityLog(action="user_login", entity_type="user", details={}, created_at=utc_now()),
        ]
    )
    db.commit()

    result = CliRunner().invoke(cli, ["purge-activity-logs", "--older-than-days", "30", "--yes"])

    assert result.exit_code == 0, result.output
    assert "Deleted 1 activity log entries" in result.output
    assert db.query(ActivityLog).count() == 1


def test_purge_requires_confirmation(db):
    result = CliRunner().invoke(cli, ["purge-activity-logs", "--older-than-days", "30"], input="n\n")

    assert result.exit_code == 1
