# Overview: Flask CLI command groups for bootstrap, tenants, and order maintenance.

# backend/orderdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--tenant "Main Store"] [--email owner@orderdesk.local]
#   Idempotent: creates tables, a default tenant and its owner user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Tenants:
# - python -m flask tenants list
# - python -m flask tenants create --name "Acme Prints" --code ACME
# - python -m flask tenants add-user --tenant-id 1 --email staff@acme.test --password "Password123!"
#
# Orders:
# - python -m flask orders reconcile-mirror [--tenant-id 1]
#   Rebuild admin_orders from orders and resolve open sync events.
#
# Webhooks:
# - python -m flask webhooks show --tenant-id 1
# - python -m flask webhooks rotate-key --tenant-id 1

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import NotFoundError
from .models import Tenant, User
from .services import auth_service, webhook_service
from .services.auth_service import PasswordValidationError
from .services.order_repository import reconcile_mirror


DEFAULT_PASSWORD = "Password123!"


# =============================================================================
# SYSTEM
# =============================================================================

@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--tenant', 'tenant_name', default='Default Store', help='Tenant name')
@click.option('--code', 'tenant_code', default='DEFAULT', help='Tenant code')
@click.option('--email', default='owner@orderdesk.local', help='Owner email')
@click.option('--password', default=DEFAULT_PASSWORD, help='Owner password')
@with_appcontext
def init_system(tenant_name, tenant_code, email, password):
    """
    Create schema, a default tenant and its owner user.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing orderdesk...")
    db.create_all()

    tenant = db.session.query(Tenant).filter_by(code=tenant_code).first()
    if not tenant:
        tenant = auth_service.create_tenant(tenant_name, tenant_code)
        click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id}, Code: {tenant.code})")
    else:
        click.echo(f"PASS Using existing tenant: {tenant.name} (ID: {tenant.id})")

    user = db.session.query(User).filter_by(tenant_id=tenant.id, email=email.lower()).first()
    if not user:
        try:
            user = auth_service.create_user(tenant.id, email, password, display_name="Owner")
        except (ValueError, PasswordValidationError) as e:
            raise click.ClickException(str(e))
        click.echo(f"PASS Created owner user: {user.email}")
    else:
        click.echo(f"PASS Owner user exists: {user.email}")

    config = webhook_service.get_or_create_config(tenant.id)
    click.echo(f"PASS Webhook URL: {config.webhook_url}")
    click.echo("DONE")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        raise click.ClickException("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


# =============================================================================
# TENANTS
# =============================================================================

@click.group('tenants')
def tenants_group():
    """Tenant and user management commands."""


@tenants_group.command('list')
@with_appcontext
def list_tenants():
    tenants = db.session.query(Tenant).order_by(Tenant.id.asc()).all()
    if not tenants:
        click.echo("No tenants found.")
        return

    click.echo("\n" + "="*64)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<15} {'Active':<8} {'Users'}")
    click.echo("="*64)
    for tenant in tenants:
        user_count = db.session.query(User).filter_by(tenant_id=tenant.id).count()
        active_str = "Yes" if tenant.is_active else "No"
        click.echo(f"{tenant.id:<5} {tenant.name:<30} {tenant.code or '-':<15} {active_str:<8} {user_count}")
    click.echo("="*64 + "\n")


@tenants_group.command('create')
@click.option('--name', required=True, help='Tenant name')
@click.option('--code', default=None, help='Short code (unique)')
@with_appcontext
def create_tenant_cli(name, code):
    """Create a new tenant."""
    try:
        tenant = auth_service.create_tenant(name, code)
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created tenant: {tenant.name} (ID: {tenant.id}, Code: {tenant.code or '-'})")


@tenants_group.command('add-user')
@click.option('--tenant-id', type=int, required=True, help='Tenant ID')
@click.option('--email', required=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--name', 'display_name', default=None, help='Display name')
@with_appcontext
def add_user_cli(tenant_id, email, password, display_name):
    """Create a back-office user inside a tenant."""
    try:
        user = auth_service.create_user(tenant_id, email, password, display_name=display_name)
    except (ValueError, PasswordValidationError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) in tenant {tenant_id}")


# =============================================================================
# ORDERS
# =============================================================================

@click.group('orders')
def orders_group():
    """Order maintenance commands."""


@orders_group.command('reconcile-mirror')
@click.option('--tenant-id', type=int, default=None, help='Limit to one tenant')
@with_appcontext
def reconcile_mirror_cli(tenant_id):
    """Rebuild admin_orders from orders and resolve open sync events."""
    stats = reconcile_mirror(tenant_id)
    click.echo(
        "PASS Mirror reconciled: "
        f"created={stats['created']} repaired={stats['repaired']} "
        f"removed={stats['removed']} unchanged={stats['unchanged']} "
        f"events_resolved={stats['events_resolved']}"
    )


# =============================================================================
# WEBHOOKS
# =============================================================================

@click.group('webhooks')
def webhooks_group():
    """Webhook configuration commands."""


@webhooks_group.command('show')
@click.option('--tenant-id', type=int, required=True, help='Tenant ID')
@with_appcontext
def show_webhook_cli(tenant_id):
    try:
        config = webhook_service.get_or_create_config(tenant_id)
    except NotFoundError as e:
        raise click.ClickException(e.message)
    click.echo(f"URL:    {config.webhook_url}")
    click.echo(f"Key:    {config.webhook_key}")
    click.echo(f"Active: {'Yes' if config.is_active else 'No'}")


@webhooks_group.command('rotate-key')
@click.option('--tenant-id', type=int, required=True, help='Tenant ID')
@with_appcontext
def rotate_key_cli(tenant_id):
    """Replace the tenant's webhook key; the old key stops working immediately."""
    try:
        config = webhook_service.rotate_key(tenant_id)
    except NotFoundError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS New webhook key for tenant {tenant_id}: {config.webhook_key}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tenants_group)
    app.cli.add_command(orders_group)
    app.cli.add_command(webhooks_group)
