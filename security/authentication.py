"""
Credential verification with progressive lockout.

A login attempt moves through: input validation, account lookup, lockout
check, password check. Every path ends in exactly one audit entry. The
caller only ever learns "success" or the generic failure message; the
audited description carries the real reason.

Lockout expiry is lazy: an account whose ``lockout_until`` has passed keeps
that value until its next login attempt clears it. There is no sweeper.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app

from models.account import Account
from security.errors import (
    AuthenticationFailure,
    InputValidationError,
    SecurityError,
    GENERIC_LOGIN_FAILURE,
)
from security.password import hash_password, verify_password
from security.password_policy import validate_login_input
from utils.audit import (
    log_event,
    AUTHENTICATION,
    INPUT_VALIDATION,
    SUCCESS,
    FAILURE,
)
from utils.transaction import unit_of_work

FIRST_LOGIN_REPORT = "This is your first login."

_TS_FORMAT = "%Y-%m-%d %H:%M:%S UTC"

# per work factor; checked on failures that have no real hash to compare
_dummy_hashes = {}


@dataclass
class LoginResult:
    account: Account
    login_report: str


@dataclass
class _Outcome:
    account: Optional[Account]
    success: bool
    reason: str
    login_report: Optional[str] = None


def login_report(last_successful_login, last_login_attempt) -> str:
    """
    Describe the previous attempt from the pre-login timestamps.

    Equal timestamps mean the last attempt was the last success.
    """
    if last_login_attempt is None:
        return FIRST_LOGIN_REPORT
    when = last_login_attempt.strftime(_TS_FORMAT)
    if last_successful_login is not None and last_successful_login == last_login_attempt:
        return f"Your last login was successful at: {when}."
    return f"Your last login attempt was unsuccessful at: {when}."


def _burn_hash_check(password: str) -> None:
    rounds = current_app.config.get("BCRYPT_ROUNDS")
    if rounds not in _dummy_hashes:
        _dummy_hashes[rounds] = hash_password("not-a-real-password")
    verify_password(password, _dummy_hashes[rounds])


def _evaluate(account: Optional[Account], username: str, password: str, now: datetime) -> _Outcome:
    if account is None:
        _burn_hash_check(password)
        return _Outcome(None, False, f"Login failed for unknown username '{username}'.")

    if account.lockout_until is not None:
        if account.is_locked(now):
            _burn_hash_check(password)
            return _Outcome(
                account, False,
                f"Login refused for '{username}': account locked until {account.lockout_until.isoformat()}.",
            )
        # lockout window elapsed
        account.login_attempts = 0
        account.lockout_until = None

    if verify_password(password, account.password_hash):
        report = login_report(account.last_successful_login, account.last_login_attempt)
        account.login_attempts = 0
        account.last_successful_login = now
        account.last_login_attempt = now
        return _Outcome(account, True, f"User '{username}' logged in successfully.", login_report=report)

    max_attempts = current_app.config.get("MAX_LOGIN_ATTEMPTS", 5)
    lock_minutes = current_app.config.get("LOCKOUT_MINUTES", 10)

    attempts = (account.login_attempts or 0) + 1
    account.login_attempts = attempts
    account.last_login_attempt = now

    if attempts >= max_attempts:
        account.lockout_until = now + timedelta(minutes=lock_minutes)
        return _Outcome(
            account, False,
            f"Login failed for '{username}': incorrect password (attempt {attempts}). "
            f"Account locked for {lock_minutes} minutes.",
        )
    return _Outcome(
        account, False,
        f"Login failed for '{username}': incorrect password (attempt {attempts} of {max_attempts}).",
    )


def authenticate(username, password, ip=None) -> LoginResult:
    """
    Verify credentials and update the account's attempt bookkeeping.

    Returns a LoginResult on success. Raises InputValidationError,
    AuthenticationFailure or StorageFailure, all carrying the generic
    login message.
    """
    errors = validate_login_input(username, password)
    if errors:
        log_event(
            INPUT_VALIDATION, FAILURE,
            f"Login input rejected. Reason: {errors[0]}",
            username=username if isinstance(username, str) else None, ip=ip,
        )
        raise InputValidationError(GENERIC_LOGIN_FAILURE, reason=errors[0])

    now = datetime.utcnow()
    try:
        with unit_of_work("Login"):
            account = (
                Account.query
                .filter_by(username=username)
                .with_for_update()
                .first()
            )
            outcome = _evaluate(account, username, password, now)
    except SecurityError as exc:
        log_event(AUTHENTICATION, FAILURE, exc.reason, username=username, ip=ip)
        raise

    user_id = outcome.account.id if outcome.account is not None else None
    if not outcome.success:
        log_event(AUTHENTICATION, FAILURE, outcome.reason, user_id=user_id, username=username, ip=ip)
        raise AuthenticationFailure(reason=outcome.reason)

    log_event(AUTHENTICATION, SUCCESS, outcome.reason, user_id=user_id, username=username, ip=ip)
    return LoginResult(account=outcome.account, login_report=outcome.login_report)
