# Overview: Service-layer helpers for row locking and conflict retries around yard transactions.

from __future__ import annotations

from flask import current_app
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from .errors import ConcurrencyConflictError


# One automatic retry with a fresh read after a lost race
CONFLICT_ATTEMPTS = 2


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = CONFLICT_ATTEMPTS):
    """
    Execute a yard transaction, re-running it after a concurrency conflict.

    Retries on ConcurrencyConflictError (conditional UPDATE matched no row)
    and StaleDataError (version_id mismatch on flush). The session is rolled
    back before each retry so the next attempt reads fresh rows. Capacity
    rejections and infrastructure errors propagate immediately.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (ConcurrencyConflictError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                if isinstance(exc, StaleDataError):
                    raise ConcurrencyConflictError(str(exc)) from exc
                raise
            current_app.logger.warning(
                "Concurrency conflict (attempt %s of %s), retrying: %s",
                attempt + 1, attempts, exc,
            )


def commit_transaction():
    """
    Commit the current request's transaction.

    A stale version on flush means another writer won; surface it as a
    conflict after rolling back so nothing from this request is applied.
    """
    try:
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        raise ConcurrencyConflictError(str(exc)) from exc
