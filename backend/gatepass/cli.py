# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/gatepass/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, the default destination and an admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email guard@example.com --name "Gate Desk" --password "Password123!"
# - python -m flask users list
#
# Destinations:
# - python -m flask destinations create --name "Central Lab" --code CLAB --email lab@example.com
# - python -m flask destinations list
#
# Pass numbers:
# - python -m flask passes next-number --date 2024-03-05
#   Preview the number the next pass for that day will receive (nothing is reserved).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Destination, User
from .services import destination_service, sequence_service
from .services.auth_service import create_user, PasswordValidationError
from .validation import ConflictError, ValidationError


DEFAULT_DESTINATION = {"destinationName": "General", "destinationCode": "GEN"}


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-email', default='admin@gatepass.local', show_default=True, help='Admin login email')
@click.option('--admin-password', default='Password123!', show_default=True, help='Admin password')
@with_appcontext
def init_system(admin_email, admin_password):
    """
    Initialize tables, the default destination and an admin user.

    The default destination backs GATEPASS_DEFAULT_DESTINATION_ID when a
    pass names a destination that is not on the list.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing gate pass system...")
    db.create_all()

    if db.session.query(Destination).count() == 0:
        destination = destination_service.create_destination(DEFAULT_DESTINATION)
        db.session.commit()
        click.echo(f"PASS Created default destination: {destination.name} (ID: {destination.id})")
    else:
        click.echo("PASS Destinations already present")

    if db.session.query(User).filter_by(email=admin_email.lower()).first():
        click.echo(f"PASS Using existing admin: {admin_email}")
    else:
        try:
            create_user(admin_email, admin_password, name="Administrator")
            click.echo(f"PASS Created admin user: {admin_email}")
        except (PasswordValidationError, ValueError) as e:
            click.echo(f"FAIL Failed to create admin: {e}")

    click.echo("DONE Initialization complete.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address (login)')
@click.option('--name', default='', help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(email, name, password):
    """Create a user."""
    try:
        user = create_user(email, password, name=name)
        click.echo(f"PASS Created user {user.email} (ID: {user.id})")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except ValueError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<25} {'Active'}")
    click.echo("="*80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {(user.name or ''):<25} {active_str}")
    click.echo("="*80 + "\n")


@click.group('destinations')
def destinations_group():
    """Destination reference data commands."""


@destinations_group.command('create')
@click.option('--name', required=True, help='Destination name')
@click.option('--code', required=True, help='Short code (unique, case-insensitive)')
@click.option('--email', default=None, help='Contact email')
@click.option('--inactive', is_flag=True, help='Create as inactive')
@with_appcontext
def create_destination_cli(name, code, email, inactive):
    """Create a destination."""
    try:
        destination = destination_service.create_destination({
            "destinationName": name,
            "destinationCode": code,
            "emailID": email,
            "isActive": 0 if inactive else 1,
        })
        db.session.commit()
        click.echo(f"PASS Created destination {destination.code} (ID: {destination.id})")
    except (ValidationError, ConflictError) as e:
        db.session.rollback()
        click.echo(f"FAIL {e}")


@destinations_group.command('list')
@with_appcontext
def list_destinations_cli():
    """List destinations."""
    destinations = destination_service.list_destinations()
    if not destinations:
        click.echo("No destinations found.")
        return
    for d in destinations:
        status = "active" if d.is_active else "inactive"
        click.echo(f"{d.id:<5} {d.code:<12} {d.name:<40} {d.email or '-':<30} {status}")


@click.group('passes')
def passes_group():
    """Gate pass numbering commands."""


@passes_group.command('next-number')
@click.option('--date', 'pass_date', required=True, help='Pass date (YYYY-MM-DD or DD-MM-YYYY)')
@with_appcontext
def next_number_cli(pass_date):
    """Preview the next pass number for a day without reserving it."""
    try:
        click.echo(sequence_service.preview_next_pass_number(pass_date))
    except sequence_service.SequenceError as e:
        raise click.BadParameter(str(e), param_hint="--date")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(destinations_group)
    app.cli.add_command(passes_group)
