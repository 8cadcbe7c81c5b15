# backend/orderdesk/__init__.py
from flask import Flask, request
from sqlalchemy.engine import make_url

from .config import Config
from .extensions import db, migrate


def _engine_options(app: Flask) -> dict:
    """Bound every store call: connection wait and statement timeouts per dialect."""
    options = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS") or {})
    timeout = int(app.config.get("DB_TIMEOUT_SECONDS", 10))
    backend = make_url(app.config["SQLALCHEMY_DATABASE_URI"]).get_backend_name()

    connect_args = dict(options.get("connect_args") or {})
    if backend == "sqlite":
        # Seconds to wait on a locked database before OperationalError
        connect_args.setdefault("timeout", timeout)
    elif backend == "postgresql":
        connect_args.setdefault("connect_timeout", timeout)
        connect_args.setdefault("options", f"-c statement_timeout={timeout * 1000}")
        options.setdefault("pool_pre_ping", True)
        options.setdefault("pool_timeout", timeout)
    options["connect_args"] = connect_args
    return options


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = _engine_options(app)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.orders import orders_bp
    from .routes.webhooks import webhooks_bp
    from .routes.payments import payments_bp
    from .routes.transactions import transactions_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(webhooks_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(reports_bp)

    allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS") or [])

    @app.after_request
    def add_cors_headers(response):
        # The public webhook sets its own permissive headers
        if request.path.startswith("/api/webhooks/"):
            return response
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
