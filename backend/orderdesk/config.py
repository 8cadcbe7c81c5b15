# backend/orderdesk/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/orderdesk.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///orderdesk.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Every store call is bounded; see create_app for per-dialect wiring
    DB_TIMEOUT_SECONDS = int(os.environ.get("DB_TIMEOUT_SECONDS", "10"))
    DB_RETRY_ATTEMPTS = int(os.environ.get("DB_RETRY_ATTEMPTS", "3"))

    # Serial numbers: INV-YYMM-SEQ
    SERIAL_PREFIX = os.environ.get("SERIAL_PREFIX", "INV")
    SERIAL_SCAN_FALLBACK = _env_bool("SERIAL_SCAN_FALLBACK", True)

    # "net_of_shipping" or "items_only"
    ORDER_PROFIT_POLICY = os.environ.get("ORDER_PROFIT_POLICY", "net_of_shipping")

    WEBHOOK_PUBLIC_URL = os.environ.get(
        "WEBHOOK_PUBLIC_URL",
        "http://localhost:5000/api/webhooks/orders",
    )

    CORS_ALLOWED_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if o.strip()
    ]

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
