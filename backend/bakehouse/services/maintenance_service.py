# Overview: Periodic housekeeping run from the CLI; activity retention and session cleanup.

from __future__ import annotations

from .activity_service import cleanup_old_activities
from .session_service import cleanup_expired_sessions


def run_housekeeping(*, retention_days: int | None = None) -> dict:
    """
    Purge activities past retention and dead sessions.

    Returns the number of rows deleted per table.
    """
    return {
        "activities": cleanup_old_activities(retention_days),
        "session_tokens": cleanup_expired_sessions(),
    }
