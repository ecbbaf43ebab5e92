from datetime import datetime, timedelta

from flask import current_app

from models import db
from models.account import Account
from models.password_history import PasswordHistory
from security.errors import (
    PolicyViolation,
    NEW_PASSWORD_SAME_AS_OLD,
    PASSWORD_TOO_RECENT,
    PASSWORD_IN_HISTORY,
)
from security.password import hash_password, verify_password


def _password_in_history(account: Account, new_password: str, history_count: int) -> bool:
    if history_count <= 0:
        return False

    recent = (
        PasswordHistory.query
        .filter_by(account_id=account.id)
        .order_by(PasswordHistory.created_at.desc(), PasswordHistory.id.desc())
        .limit(history_count)
        .all()
    )
    return any(verify_password(new_password, row.password_hash) for row in recent)


def ensure_password_change_allowed(account: Account, new_password: str, now: datetime) -> None:
    """Raise PolicyViolation if the new password may not replace the current one."""
    if verify_password(new_password, account.password_hash):
        raise PolicyViolation(
            "New password cannot be the same as your current password.",
            reason="new password matches the current password",
            code=NEW_PASSWORD_SAME_AS_OLD,
        )

    min_age_hours = current_app.config.get("PASSWORD_MIN_AGE_HOURS", 24)
    if account.last_password_change and now - account.last_password_change < timedelta(hours=min_age_hours):
        raise PolicyViolation(
            "You must wait at least 1 day before changing your password again.",
            reason="attempted to change password too soon",
            code=PASSWORD_TOO_RECENT,
        )

    history_count = current_app.config.get("PASSWORD_HISTORY_COUNT", 5)
    if _password_in_history(account, new_password, history_count):
        raise PolicyViolation(
            "New password cannot be one of your recently used passwords.",
            reason="attempted to reuse a recent password",
            code=PASSWORD_IN_HISTORY,
        )


def set_password(account: Account, new_password: str, now: datetime) -> None:
    """
    Store a new password and its history row. Also clears lockout state.

    Must run inside the caller's unit of work.
    """
    pw_hash = hash_password(new_password)
    account.password_hash = pw_hash
    account.last_password_change = now
    account.login_attempts = 0
    account.lockout_until = None
    db.session.add(PasswordHistory(account_id=account.id, password_hash=pw_hash, created_at=now))
