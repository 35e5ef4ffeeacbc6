# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/bakehouse/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (use `flask db upgrade` for migrated deployments).
# - python -m flask system seed
#   Idempotent: default bread types plus owner/manager/sales rep accounts.
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --name "Ada" --email ada@bakehouse.local --password "Password123!" --role manager
#   Create a user (prompts if options are omitted).
#
# Maintenance:
# - python -m flask maintenance cleanup-activities --retention-days 3
#   Delete activity feed rows older than the retention window.
# - python -m flask maintenance cleanup-sessions
#   Delete expired or revoked sessions older than 30 days.
# - python -m flask maintenance housekeeping
#   Both of the above.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import BreadType, User, USER_ROLES
from .services.auth_service import create_user, list_users, PasswordValidationError
from .services import activity_service
from .services import session_service
from .services import maintenance_service


DEFAULT_BREAD_TYPES = [
    ("Family Loaf", "large", 1500),
    ("Sliced Bread", "medium", 1000),
    ("Agege Bread", "medium", 800),
    ("Mini Loaf", "small", 500),
]

DEFAULT_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('seed')
@click.option('--password', default=DEFAULT_PASSWORD, help='Password for the seeded accounts')
@with_appcontext
def seed(password):
    """
    Seed bread types and one account per role. Safe to re-run.
    """
    click.echo("START Seeding bakehouse data...")

    for name, size, price in DEFAULT_BREAD_TYPES:
        if db.session.query(BreadType).filter_by(name=name).first():
            click.echo(f"WARN  Bread type '{name}' already exists, skipping...")
            continue
        db.session.add(BreadType(name=name, size=size, unit_price=price))
        click.echo(f"PASS Created bread type: {name} ({size}) @ {price}")
    db.session.commit()

    for role in USER_ROLES:
        email = f"{role.replace('_', '')}@bakehouse.local"
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        try:
            create_user(name=role.replace('_', ' ').title(), email=email, password=password, role=role)
            click.echo(f"PASS Created user: {email} with role '{role}'")
        except PasswordValidationError as e:
            click.echo(f"FAIL Password validation failed for '{email}': {str(e)}")
            return
        except ValueError as e:
            click.echo(f"FAIL Failed to create user '{email}': {str(e)}")

    click.echo("DONE Seed complete")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(USER_ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """
    Create a new user.

    Password must meet strength requirements:
    8+ chars, uppercase, lowercase, digit, special character.
    """
    try:
        user = create_user(name=name, email=email, password=password, role=role)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        return
    except ValueError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{user.role}'")


@users_group.command('list')
@click.option('--all', 'include_inactive', is_flag=True, help='Include inactive users')
@with_appcontext
def list_users_cli(include_inactive):
    """List users with role and active status."""
    users = list_users(include_inactive=include_inactive)
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 72)
    click.echo(f"{'ID':<5} {'Name':<24} {'Email':<28} {'Role':<10} {'Active'}")
    click.echo("=" * 72)
    for u in users:
        click.echo(f"{u.id:<5} {u.name:<24} {u.email:<28} {u.role:<10} {'yes' if u.is_active else 'no'}")
    click.echo("=" * 72 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Retention and cleanup commands."""


@maintenance_group.command('cleanup-activities')
@click.option('--retention-days', type=int, default=None, help='Days to keep (defaults to ACTIVITY_RETENTION_DAYS)')
@with_appcontext
def cleanup_activities(retention_days):
    deleted = activity_service.cleanup_old_activities(retention_days)
    click.echo(f"PASS Deleted {deleted} activities")


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions():
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} sessions")


@maintenance_group.command('housekeeping')
@click.option('--retention-days', type=int, default=None, help='Activity days to keep')
@with_appcontext
def housekeeping(retention_days):
    """Run every cleanup in one go (suitable for a daily cron)."""
    counts = maintenance_service.run_housekeeping(retention_days=retention_days)
    for table, deleted in counts.items():
        click.echo(f"PASS {table}: deleted {deleted}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
