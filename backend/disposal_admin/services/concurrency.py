# Overview: Service-layer helpers for row locking, retry on lock contention, and atomic saves.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError

from ..errors import NotFoundError, UpstreamFailure
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def load_for_update(model, record_id: int, *, label: str | None = None):
    """Load one row under a write lock or raise NotFoundError."""
    row = lock_for_update(db.session.query(model).filter_by(id=record_id)).first()
    if row is None:
        name = label or getattr(model, "ENTITY_TYPE", model.__tablename__)
        raise NotFoundError(f"{name.capitalize()} {record_id} not found", details={"id": record_id})
    return row


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on lock contention.

    Retries OperationalError (deadlocks, database is locked) only; domain
    errors propagate on the first attempt. Exhausted retries surface as
    UpstreamFailure.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise UpstreamFailure("Database unavailable, please retry") from exc
            time.sleep(backoff_base * (2 ** attempt))


def atomic(func, *, attempts: int = 3):
    """
    Run func inside one unit of work: commit on success, roll back on any
    error so a refused save never leaves partial changes in the database.
    """
    def _op():
        try:
            result = func()
            db.session.commit()
            return result
        except OperationalError:
            raise
        except Exception:
            db.session.rollback()
            raise

    return run_with_retry(_op, attempts=attempts)
