# Overview: Retry and classification helpers for store writes.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..errors import PersistenceError


RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def is_retryable(exc: BaseException) -> bool:
    """Transient store failures (locks, timeouts, dropped connections, version conflicts)."""
    if isinstance(exc, IntegrityError):
        return False
    return isinstance(exc, RETRYABLE_ERRORS)


def _configured_attempts() -> int:
    return int(current_app.config.get("DB_RETRY_ATTEMPTS", 3))


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks, timeouts) and StaleDataError
    (optimistic locking conflicts). The session is rolled back before every
    retry so func always starts from a clean transaction.
    """
    if attempts is None:
        attempts = _configured_attempts()
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            current_app.logger.info(
                "Retrying store operation after transient error (attempt %d/%d): %s",
                attempt + 1, attempts, exc.__class__.__name__,
            )
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def persist(func, *, action: str, backoff_base: float = 0.1):
    """
    Run a unit of work and translate store failures into PersistenceError.

    func must do its own commit. On any SQLAlchemyError the session is rolled
    back so no partial rows remain visible.
    """
    try:
        return run_with_retry(func, backoff_base=backoff_base)
    except SQLAlchemyError as exc:
        db.session.rollback()
        retryable = is_retryable(exc)
        current_app.logger.error(
            "Store rejected %s (%s): %s",
            action, "retryable" if retryable else "fatal", exc.__class__.__name__,
        )
        raise PersistenceError(
            f"Failed to {action}",
            retryable=retryable,
            details={"error_type": exc.__class__.__name__},
        ) from exc
