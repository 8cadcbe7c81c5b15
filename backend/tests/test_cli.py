# Overview: Pytest coverage for the flask CLI command groups.

from orderdesk.extensions import db
from orderdesk.models import AdminOrder, OrderSyncEvent, Tenant, User, WebhookConfig
from orderdesk.services import order_service
from orderdesk.services.order_repository import OrderRepository


class TestSystemCommands:

    def test_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "init", "--tenant", "Nile Prints", "--code", "NILE"])
        assert result.exit_code == 0, result.output
        assert "PASS Created tenant: Nile Prints" in result.output
        assert "Webhook URL:" in result.output

        result = runner.invoke(args=["system", "init", "--tenant", "Nile Prints", "--code", "NILE"])
        assert result.exit_code == 0, result.output
        assert "Using existing tenant" in result.output

        assert db.session.query(Tenant).count() == 1
        assert db.session.query(User).count() == 1
        assert db.session.query(WebhookConfig).count() == 1

    def test_reset_requires_confirmation(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["system", "reset-db"])
        assert result.exit_code != 0
        assert "--yes" in result.output


class TestTenantCommands:

    def test_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["tenants", "create", "--name", "Delta Frames", "--code", "DELTA"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(args=["tenants", "list"])
        assert "Delta Frames" in result.output
        assert "DELTA" in result.output

    def test_add_user_rejects_weak_password(self, app, tenant_a):
        result = app.test_cli_runner().invoke(args=[
            "tenants", "add-user", "--tenant-id", str(tenant_a.id),
            "--email", "staff@nile.test", "--password", "weak",
        ])
        assert result.exit_code != 0
        assert "at least 8 characters" in result.output


class TestOrderCommands:

    def test_reconcile_mirror(self, app, tenant_a, payload, monkeypatch, store_error):
        def failing(*args, **kwargs):
            raise store_error
        monkeypatch.setattr(OrderRepository, "_write_mirror_header", failing)
        order_service.create_order(tenant_a.id, payload, source=order_service.SOURCE_UI)
        monkeypatch.undo()

        result = app.test_cli_runner().invoke(args=["orders", "reconcile-mirror", "--tenant-id", str(tenant_a.id)])

        assert result.exit_code == 0, result.output
        assert "created=1" in result.output
        assert "events_resolved=1" in result.output
        assert db.session.query(AdminOrder).count() == 1
        assert db.session.query(OrderSyncEvent).filter_by(resolved=False).count() == 0


class TestWebhookCommands:

    def test_show_and_rotate(self, app, webhook_a, tenant_a):
        runner = app.test_cli_runner()
        old_key = webhook_a.webhook_key

        result = runner.invoke(args=["webhooks", "show", "--tenant-id", str(tenant_a.id)])
        assert old_key in result.output

        result = runner.invoke(args=["webhooks", "rotate-key", "--tenant-id", str(tenant_a.id)])
        assert result.exit_code == 0, result.output
        assert old_key not in result.output
        assert db.session.query(WebhookConfig).one().webhook_key != old_key

    def test_unknown_tenant(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["webhooks", "show", "--tenant-id", "9999"])
        assert result.exit_code != 0
        assert "Tenant not found" in result.output
