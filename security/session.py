import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from models import db
from models.account import Account
from models.session import Session
from utils.transaction import unit_of_work


def hash_token(token: str) -> str:
    # SHA-256 is fine for hashing random session tokens
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def establish(account: Account, ip=None, user_agent=None, login_report=None) -> str:
    """
    Creates a server-side session bound to the account id and role and
    returns the RAW token (to set as cookie). Only the hash is stored in DB.
    """
    raw_token = secrets.token_urlsafe(32)

    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 28800)
    expires_at = datetime.utcnow() + timedelta(seconds=lifetime)

    with unit_of_work("Session establishment"):
        if current_app.config.get("SESSION_SINGLE_LOGIN", True):
            _revoke_all(account.id)
        db.session.add(Session(
            account_id=account.id,
            role=account.role,
            token_hash=hash_token(raw_token),
            expires_at=expires_at,
            ip=ip,
            user_agent=user_agent,
            login_report=login_report,
        ))
    return raw_token


def _active_session(raw_token) -> Optional[Session]:
    if not raw_token:
        return None

    now = datetime.utcnow()
    sess = (
        Session.query
        .filter_by(token_hash=hash_token(raw_token), revoked=False)
        .first()
    )
    if not sess:
        return None

    # Absolute expiry
    if sess.expires_at <= now:
        return None

    # Idle timeout
    idle_seconds = current_app.config.get("IDLE_TIMEOUT_SECONDS", 1200)
    last_seen = sess.last_seen_at or sess.created_at
    if (last_seen + timedelta(seconds=idle_seconds)) <= now:
        return None

    return sess


def current_identity(raw_token) -> Optional[Account]:
    """Resolve the account behind a session token, or None."""
    sess = _active_session(raw_token)
    if sess is None:
        return None

    account = db.session.get(Account, sess.account_id)
    if account is None or account.role != sess.role:
        return None

    # Update activity timestamp (touch)
    with unit_of_work("Session touch"):
        sess.last_seen_at = datetime.utcnow()
    return account


def take_login_report(raw_token) -> Optional[str]:
    """Return the one-shot login report and clear it; later reads get None."""
    sess = _active_session(raw_token)
    if sess is None or sess.login_report is None:
        return None

    with unit_of_work("Login report read"):
        report = sess.login_report
        sess.login_report = None
    return report


def destroy(raw_token) -> bool:
    if not raw_token:
        return False
    sess = Session.query.filter_by(token_hash=hash_token(raw_token)).first()
    if not sess:
        return False
    with unit_of_work("Session destroy"):
        sess.revoked = True
    return True


def _revoke_all(account_id: int, keep_session_id=None) -> int:
    q = Session.query.filter_by(account_id=account_id, revoked=False)
    if keep_session_id is not None:
        q = q.filter(Session.id != keep_session_id)
    sessions = q.all()
    for s in sessions:
        s.revoked = True
    return len(sessions)


def revoke_all_sessions(account_id: int, except_token=None) -> int:
    keep = None
    if except_token:
        current = Session.query.filter_by(token_hash=hash_token(except_token)).first()
        keep = current.id if current else None
    with unit_of_work("Session revoke"):
        count = _revoke_all(account_id, keep_session_id=keep)
    return count
