"""CLI tools for CRM administration."""

import logging

import click

from app.core.errors import AppError
from app.db.enums import Role
from app.db.session import SessionLocal
from app.services import activity_service, user_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


@click.group()
def cli():
    """CRM CLI tools."""
    pass


@cli.command()
@click.option("--name", required=True, help="Admin display name")
@click.option("--email", required=True, help="Admin email address")
@click.option("--password", required=True, prompt=True, hide_input=True, help="Initial password")
def create_admin(name: str, email: str, password: str):
    """
    Create an admin account.

    This is the bootstrap command: registration through the API requires an
    existing admin.

    Example:
        python -m app.cli create-admin --name "Admin" --email "admin@example.com"
    """
    if len(password) < 6:
        raise click.ClickException("Password must be at least 6 characters")

    db = SessionLocal()
    try:
        user = user_service.create_user(db, name, email, password, Role.ADMIN)
        db.commit()
        click.echo(f"✓ Created admin: {user.email}")
        click.echo(f"  ID: {user.id}")
    except AppError as e:
        db.rollback()
        raise click.ClickException(e.message)
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m app.cli revoke-sessions --email "user@example.com"
    """
    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email)
        if not user:
            raise click.ClickException(f"User not found: {email}")

        old_version = user.token_version
        user_service.revoke_all_sessions(db, user)
        db.commit()

        click.echo(f"✓ Revoked all sessions for {user.email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")
    finally:
        db.close()


@cli.command()
@click.option("--older-than-days", required=True, type=click.IntRange(min=1), help="Age cutoff in days")
@click.confirmation_option(prompt="Permanently delete old activity log entries?")
def purge_activity_logs(older_than_days: int):
    """
    Delete activity log entries older than N days.

    Example:
        python -m app.cli purge-activity-logs --older-than-days 365 --yes
    """
    db = SessionLocal()
    try:
        deleted = activity_service.purge_older_than(db, older_than_days)
        click.echo(f"✓ Deleted {deleted} activity log entries older than {older_than_days} days")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
