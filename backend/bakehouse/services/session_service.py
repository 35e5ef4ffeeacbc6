# Overview: Service-layer operations for session tokens, the selected shift and staff-online counts.

"""
Session Token Management Service

Tokens are 32 random bytes handed to the client as hex; only the SHA-256
hash is stored. Each session carries the shift its user is working
(selected_shift), so the choice is part of the request context rather than
client-side storage.

Timeouts:
- 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- 2-hour idle timeout (SESSION_IDLE_TIMEOUT)

A session that is neither revoked nor expired counts its user as
"online" for the staff dashboard.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import SessionToken, User
from ..validation import require_shift
from .shift_service import classify_shift
from bakehouse.time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)
SESSION_RETENTION = timedelta(days=30)


@dataclass
class SessionContext:
    """What require_auth puts on flask.g for the duration of a request."""
    user: User
    session: SessionToken

    @property
    def shift(self) -> str:
        return self.session.selected_shift


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user_id: int,
    *,
    shift: str | None = None,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session for the user.

    Without an explicit shift the session starts on the shift that is
    running now.

    Returns (session_record, plaintext_token).
    """
    user = db.session.get(User, user_id)
    if not user:
        raise ValueError("User not found")

    selected = require_shift(shift) if shift else classify_shift()

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        selected_shift=selected,
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str, now) -> None:
    session.is_revoked = True
    session.revoked_at = now
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Return the SessionContext for a live token, None otherwise.

    Idle sessions and sessions of deactivated users are revoked on sight.
    Updates last_used_at on success.
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout", now)
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session, "User account deactivated", now)
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(user=user, session=session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Returns True if a live session was revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason, utcnow())
    return True


def set_selected_shift(session: SessionToken, shift: str) -> SessionToken:
    session.selected_shift = require_shift(shift)
    db.session.commit()
    return session


def staff_online_count() -> dict:
    """
    Active non-owner users with at least one live session, against all
    active non-owner users.
    """
    now = utcnow()

    online = (
        db.session.query(func.count(func.distinct(SessionToken.user_id)))
        .join(User, User.id == SessionToken.user_id)
        .filter(
            SessionToken.is_revoked.is_(False),
            SessionToken.expires_at > now,
            SessionToken.last_used_at > now - SESSION_IDLE_TIMEOUT,
            User.is_active.is_(True),
            User.role != "owner",
        )
        .scalar()
    ) or 0

    total = (
        db.session.query(func.count(User.id))
        .filter(User.is_active.is_(True), User.role != "owner")
        .scalar()
    ) or 0

    return {"online": online, "total": total}


def cleanup_expired_sessions() -> int:
    """
    Delete sessions that are expired or revoked and older than 30 days.

    Returns count of sessions deleted.
    """
    now = utcnow()
    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < now - SESSION_RETENTION,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
