# Overview: Inbound order webhook: per-tenant key management and the request pipeline.

"""
Webhook Gateway

Per request, stateless:

    Received -> Authenticated -> Validated -> Persisted -> Logged -> Responded

Early exits:
- body not a JSON object / items not a list of objects  -> 400
- webhook_key missing                                   -> 400
- unknown key                                           -> 401
- configuration (or its tenant) inactive                -> 403
- semantic validation failure                           -> 400
- primary write failure                                 -> 500

Every exit, success included, writes exactly one WebhookLog row in its own
commit after the order transaction has committed or rolled back. A failure
to write the log is reported to the application logger only.
"""

from __future__ import annotations

import copy
import secrets
from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import (
    OrderDeskError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from ..models import Tenant, WebhookConfig, WebhookLog
from . import order_service
from .order_validation import parse_json_body, check_shape
from orderdesk.time_utils import utcnow


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type, x-webhook-key",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

SUCCESS_MESSAGE = "Order created successfully"
PERSISTENCE_MESSAGE = "Error creating order"
INTERNAL_MESSAGE = "Internal server error"
REDACTED = "***"

MAX_LOG_LIMIT = 200


# =============================================================================
# Configuration management
# =============================================================================

def generate_webhook_key() -> str:
    """URL-safe random key, 32 bytes of entropy."""
    return secrets.token_urlsafe(32)


def get_config(tenant_id: int) -> WebhookConfig | None:
    return db.session.query(WebhookConfig).filter_by(tenant_id=tenant_id).first()


def get_or_create_config(tenant_id: int) -> WebhookConfig:
    """Return the tenant's webhook config, creating an active one on first access."""
    config = get_config(tenant_id)
    if config:
        return config

    tenant = db.session.get(Tenant, tenant_id)
    if not tenant:
        raise NotFoundError("Tenant not found")

    config = WebhookConfig(
        tenant_id=tenant_id,
        webhook_key=generate_webhook_key(),
        webhook_url=current_app.config["WEBHOOK_PUBLIC_URL"],
        is_active=True,
    )
    db.session.add(config)
    db.session.commit()
    current_app.logger.info("Webhook config created for tenant %s", tenant_id)
    return config


def rotate_key(tenant_id: int) -> WebhookConfig:
    """Replace the key. The previous key is rejected from the next request on."""
    config = get_or_create_config(tenant_id)
    config.webhook_key = generate_webhook_key()
    config.key_rotated_at = utcnow()
    db.session.commit()
    current_app.logger.info("Webhook key rotated for tenant %s", tenant_id)
    return config


def set_active(tenant_id: int, is_active: bool) -> WebhookConfig:
    if not isinstance(is_active, bool):
        raise ValidationError("is_active must be a boolean")
    config = get_or_create_config(tenant_id)
    config.is_active = is_active
    db.session.commit()
    current_app.logger.info("Webhook for tenant %s %s", tenant_id, "enabled" if is_active else "disabled")
    return config


def recent_logs(tenant_id: int, limit: int = 50) -> list[WebhookLog]:
    limit = max(1, min(int(limit), MAX_LOG_LIMIT))
    return (
        db.session.query(WebhookLog)
        .filter_by(tenant_id=tenant_id)
        .order_by(WebhookLog.created_at.desc(), WebhookLog.id.desc())
        .limit(limit)
        .all()
    )


# =============================================================================
# Request pipeline
# =============================================================================

@dataclass
class WebhookOutcome:
    status: int
    message: str
    order_serial: str | None = None
    tenant_id: int | None = None

    @property
    def success(self) -> bool:
        return self.status == 200

    def body(self) -> dict:
        body = {
            "success": self.success,
            "message": self.message,
            "order_serial": self.order_serial,
        }
        if not self.success:
            body["error"] = self.message
        return body


def authenticate_key(key: str) -> WebhookConfig:
    """Resolve a presented key to its config. 401 unknown, 403 inactive."""
    config = db.session.query(WebhookConfig).filter_by(webhook_key=key).first()
    if not config:
        raise AuthenticationError("Invalid webhook key")
    if not config.is_active or not config.tenant or not config.tenant.is_active:
        raise AuthorizationError("Webhook is disabled", details={"tenant_id": config.tenant_id})
    return config


def redact(payload: dict | None) -> dict | None:
    if payload is None:
        return None
    data = copy.deepcopy(payload)
    if "webhook_key" in data:
        data["webhook_key"] = REDACTED
    return data


def handle_order_webhook(raw_body: bytes | str | None, *, remote_addr: str | None = None) -> WebhookOutcome:
    """Run one inbound webhook request to completion and log it."""
    payload = None
    tenant_id = None

    current_app.logger.info("Webhook request received from %s", remote_addr or "unknown")
    try:
        payload = parse_json_body(raw_body)
        check_shape(payload)

        key = payload.get("webhook_key")
        if not isinstance(key, str) or not key.strip():
            raise ValidationError("Missing required fields: webhook_key")

        try:
            config = authenticate_key(key.strip())
        except AuthorizationError as e:
            tenant_id = e.details.get("tenant_id")
            raise
        tenant_id = config.tenant_id

        order = order_service.create_order(tenant_id, payload, source=order_service.SOURCE_WEBHOOK)
        outcome = WebhookOutcome(200, SUCCESS_MESSAGE, order_serial=order.serial, tenant_id=tenant_id)
        current_app.logger.info("Webhook accepted: tenant=%s serial=%s", tenant_id, order.serial)

    except PersistenceError as e:
        db.session.rollback()
        outcome = WebhookOutcome(500, PERSISTENCE_MESSAGE, tenant_id=tenant_id)
        current_app.logger.error(
            "Webhook rejected: tenant=%s status=500 (%s, retryable=%s)",
            tenant_id, e.message, e.retryable,
        )
    except OrderDeskError as e:
        db.session.rollback()
        outcome = WebhookOutcome(e.status_code, e.message, tenant_id=tenant_id)
        current_app.logger.info(
            "Webhook rejected: tenant=%s status=%s message=%s",
            tenant_id, e.status_code, e.message,
        )
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Unexpected webhook failure (tenant=%s)", tenant_id)
        outcome = WebhookOutcome(500, INTERNAL_MESSAGE, tenant_id=tenant_id)

    _write_log(outcome, payload, remote_addr)
    return outcome


def _write_log(outcome: WebhookOutcome, payload: dict | None, remote_addr: str | None) -> None:
    try:
        db.session.add(WebhookLog(
            tenant_id=outcome.tenant_id,
            order_serial=outcome.order_serial,
            response_status=outcome.status,
            response_message=outcome.message[:255],
            request_data=redact(payload),
            remote_addr=remote_addr,
            created_at=utcnow(),
        ))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.warning(
            "Failed to write webhook log (tenant=%s status=%s serial=%s)",
            outcome.tenant_id, outcome.status, outcome.order_serial, exc_info=True,
        )
