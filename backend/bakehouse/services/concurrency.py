# Overview: Retry and row-locking helpers for the few writes that race (batch numbers, remaining stock).

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


TRANSIENT_ERRORS = (OperationalError, StaleDataError)


class RetriesExhausted(Exception):
    """Raised when a unique-key race keeps losing after every attempt."""
    pass


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, retry_on=TRANSIENT_ERRORS):
    """
    Execute a DB unit of work, rolling back and retrying on `retry_on`.

    The session is rolled back before every retry, so `func` must be a
    complete unit of work that re-reads whatever it depends on.
    """
    for attempt in range(attempts):
        try:
            return func()
        except retry_on:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            if backoff_base:
                time.sleep(backoff_base * (2 ** attempt))


def run_with_unique_retry(func, *, attempts: int = 5):
    """
    Retry a unit of work that may lose a unique-constraint race.

    Each attempt is itself wrapped in run_with_retry for transient errors.
    """
    for _ in range(attempts):
        try:
            return run_with_retry(func)
        except IntegrityError:
            db.session.rollback()
    raise RetriesExhausted(f"Unique allocation failed after {attempts} attempts")
