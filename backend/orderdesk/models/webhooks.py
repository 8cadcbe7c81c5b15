from __future__ import annotations

from ..extensions import db
from orderdesk.time_utils import to_utc_z


class WebhookConfig(db.Model):
    """
    One inbound-order webhook per tenant.

    The key is the only credential an external integrator presents; rotating
    it invalidates the previous value immediately. Never deleted automatically.
    """
    __tablename__ = "webhook_configs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, unique=True, index=True)

    webhook_key = db.Column(db.String(128), nullable=False, unique=True, index=True)
    webhook_url = db.Column(db.String(512), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    key_rotated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    tenant = db.relationship("Tenant", backref=db.backref("webhook_config", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "webhook_key": self.webhook_key,
            "webhook_url": self.webhook_url,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "key_rotated_at": to_utc_z(self.key_rotated_at) if self.key_rotated_at else None,
        }


class WebhookLog(db.Model):
    """
    Append-only audit row for every inbound webhook call.

    tenant_id is NULL when the request was rejected before the key resolved
    to a tenant; order_serial is NULL unless an order was created.
    """
    __tablename__ = "webhook_logs"
    __table_args__ = (
        db.Index("ix_webhook_logs_tenant_created", "tenant_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=True, index=True)
    order_serial = db.Column(db.String(32), nullable=True)

    response_status = db.Column(db.Integer, nullable=False, index=True)
    response_message = db.Column(db.String(255), nullable=False)

    # Request body with the webhook key redacted; NULL for unparseable bodies
    request_data = db.Column(db.JSON, nullable=True)
    remote_addr = db.Column(db.String(45), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "order_serial": self.order_serial,
            "response_status": self.response_status,
            "response_message": self.response_message,
            "request_data": self.request_data,
            "remote_addr": self.remote_addr,
            "created_at": to_utc_z(self.created_at),
        }
