# Overview: Retry helper for writes that can hit SQLite lock contention.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError

from ..extensions import db

# SQLite reports writer contention as OperationalError("database is locked")
_RETRYABLE_MESSAGES = ("database is locked", "database table is locked")


def _is_lock_error(exc: OperationalError) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    return any(m in message for m in _RETRYABLE_MESSAGES)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on lock contention.

    The session is rolled back before each retry so the operation starts
    from a clean transaction. Other OperationalErrors are not retried.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError as exc:
            db.session.rollback()
            if not _is_lock_error(exc) or attempt >= attempts - 1:
                raise
            current_app.logger.warning("Database locked, retrying (attempt %d/%d)", attempt + 1, attempts)
            time.sleep(backoff_base * (2 ** attempt))
