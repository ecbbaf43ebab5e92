"""
Security-question recovery and password changes.

Recovery is two calls bound by a single-use token: ``verify_details``
checks the question and answer and issues the token, ``reset_password``
spends it. Both return the same vague message for every verification
failure. Policy failures on the new password are specific, since by then
the caller has proven knowledge of the answer (or the old password).
"""
import secrets
from datetime import datetime, timedelta

from flask import current_app

from models import db
from models.account import Account
from models.recovery_token import RecoveryToken
from models.security_question import SecurityQuestion
from security.credentials import ensure_password_change_allowed, set_password
from security.errors import (
    AuthenticationFailure,
    InputValidationError,
    NotFoundError,
    PolicyViolation,
    SecurityError,
    GENERIC_RECOVERY_FAILURE,
    INVALID_OLD_PASSWORD,
    NEW_PASSWORD_SAME_AS_OLD,
    INVALID_CURRENT_PASSWORD,
)
from security.password import hash_secret, verify_secret
from security.password_policy import (
    validate_username,
    validate_password,
    validate_password_change,
    validate_security_question,
)
from security.session import hash_token, revoke_all_sessions
from utils.audit import (
    log_event,
    log_for,
    ACCOUNT_MANAGEMENT,
    INPUT_VALIDATION,
    SUCCESS,
    FAILURE,
)
from utils.transaction import unit_of_work


def _recovery_mismatch(reason: str) -> AuthenticationFailure:
    return AuthenticationFailure(GENERIC_RECOVERY_FAILURE, reason=reason, status_code=400)


def _issue_token(account: Account, now: datetime) -> str:
    raw_token = secrets.token_urlsafe(32)
    ttl = current_app.config.get("RECOVERY_TOKEN_TTL_SECONDS", 600)
    db.session.add(RecoveryToken(
        account_id=account.id,
        token_hash=hash_token(raw_token),
        created_at=now,
        expires_at=now + timedelta(seconds=ttl),
    ))
    return raw_token


def verify_details(username, question, answer, ip=None) -> str:
    """
    Check the account's security question and answer.

    Returns a recovery token for ``reset_password``. Every failure carries
    the same public message; status is 404 for a missing account or
    question and 400 for a mismatch.
    """
    errors = validate_username(username) + validate_security_question(question, answer)
    if errors:
        log_event(
            INPUT_VALIDATION, FAILURE,
            f"Recovery details rejected. Reason: {errors[0]}",
            username=username if isinstance(username, str) else None, ip=ip,
        )
        raise InputValidationError(GENERIC_RECOVERY_FAILURE, reason=errors[0])

    now = datetime.utcnow()
    account_id = None
    try:
        with unit_of_work("Recovery verification"):
            account = Account.query.filter_by(username=username).first()
            if account is None:
                raise NotFoundError(reason=f"Recovery verification failed for '{username}'. Reason: no such account.")
            account_id = account.id

            sq = SecurityQuestion.query.filter_by(account_id=account.id).first()
            if sq is None:
                raise NotFoundError(reason=f"Recovery verification failed for '{username}'. Reason: no security question set.")
            if sq.question_text != question:
                raise _recovery_mismatch(f"Recovery verification failed for '{username}'. Reason: question does not match.")
            if not verify_secret(answer, sq.answer_hash):
                raise _recovery_mismatch(f"Recovery verification failed for '{username}'. Reason: incorrect answer.")

            raw_token = _issue_token(account, now)
    except SecurityError as exc:
        log_event(
            ACCOUNT_MANAGEMENT, FAILURE, exc.reason,
            user_id=account_id, username=username, ip=ip,
        )
        raise

    log_event(
        ACCOUNT_MANAGEMENT, SUCCESS,
        f"Recovery details verified for '{username}'.",
        user_id=account_id, username=username, ip=ip,
    )
    return raw_token


def _live_token(account: Account, raw_token, now: datetime) -> RecoveryToken:
    if not raw_token or not isinstance(raw_token, str):
        raise _recovery_mismatch(f"Password reset refused for '{account.username}'. Reason: no recovery token.")

    row = RecoveryToken.query.filter_by(token_hash=hash_token(raw_token)).with_for_update().first()
    if row is None or row.account_id != account.id:
        raise _recovery_mismatch(f"Password reset refused for '{account.username}'. Reason: unknown recovery token.")
    if row.used_at is not None:
        raise _recovery_mismatch(f"Password reset refused for '{account.username}'. Reason: recovery token already used.")
    if row.expires_at <= now:
        raise _recovery_mismatch(f"Password reset refused for '{account.username}'. Reason: recovery token expired.")
    return row


def reset_password(username, recovery_token, new_password, ip=None) -> None:
    valid, errors = validate_password(new_password)
    errors = validate_username(username) + ([] if valid else errors)
    if errors:
        log_event(
            INPUT_VALIDATION, FAILURE,
            f"Password reset rejected. Reason: {errors[0]}",
            username=username if isinstance(username, str) else None, ip=ip,
        )
        raise InputValidationError("Password does not meet policy", reason=errors[0], details=errors)

    now = datetime.utcnow()
    account_id = None
    try:
        with unit_of_work("Password reset"):
            account = Account.query.filter_by(username=username).with_for_update().first()
            if account is None:
                raise NotFoundError(reason=f"Password reset failed for '{username}'. Reason: no such account.")
            account_id = account.id

            token = _live_token(account, recovery_token, now)
            ensure_password_change_allowed(account, new_password, now)
            set_password(account, new_password, now)
            # consumed only once the reset goes through
            token.used_at = now
    except SecurityError as exc:
        reason = exc.reason
        if isinstance(exc, PolicyViolation):
            reason = f"Password reset failed for '{username}'. Reason: {exc.reason}."
        log_event(
            ACCOUNT_MANAGEMENT, FAILURE, reason,
            user_id=account_id, username=username, ip=ip,
        )
        raise

    revoke_all_sessions(account_id)
    log_event(
        ACCOUNT_MANAGEMENT, SUCCESS,
        f"Password reset via security question for '{username}'.",
        user_id=account_id, username=username, ip=ip,
    )


def change_password(identity: Account, old_password, new_password, ip=None, keep_token=None) -> None:
    """Authenticated password change; same reuse and age rules as a reset."""
    errors = validate_password_change(old_password, new_password)
    if errors:
        log_for(identity, INPUT_VALIDATION, FAILURE, f"Password change failed. Reason: {errors[0]}", ip=ip)
        if old_password and old_password == new_password:
            raise PolicyViolation(
                "New password cannot be the same as your current password.",
                reason="new password matches the current password",
                code=NEW_PASSWORD_SAME_AS_OLD,
            )
        raise InputValidationError("Password does not meet policy", reason=errors[0], details=errors)

    now = datetime.utcnow()
    try:
        with unit_of_work("Password change"):
            account = Account.query.filter_by(id=identity.id).with_for_update().first()
            if account is None:
                raise NotFoundError(
                    "User not found.",
                    reason="Password change failed. Reason: acting user was not found in the database.",
                )
            if not verify_secret(old_password, account.password_hash):
                raise PolicyViolation(
                    "Current password is incorrect.",
                    reason="incorrect current password provided",
                    code=INVALID_OLD_PASSWORD,
                )
            ensure_password_change_allowed(account, new_password, now)
            set_password(account, new_password, now)
    except SecurityError as exc:
        reason = exc.reason
        if isinstance(exc, PolicyViolation):
            reason = f"Password change failed. Reason: {exc.reason}."
        log_for(identity, ACCOUNT_MANAGEMENT, FAILURE, reason, ip=ip)
        raise

    revoke_all_sessions(identity.id, except_token=keep_token)
    log_for(identity, ACCOUNT_MANAGEMENT, SUCCESS, "User successfully changed their password.", ip=ip)


def set_security_question(identity: Account, current_password, question, answer, ip=None) -> None:
    """Create or overwrite the account's security question."""
    errors = validate_security_question(question, answer)
    if not isinstance(current_password, str) or current_password.strip() == "":
        errors.append("Current password is required.")
    if errors:
        log_for(identity, INPUT_VALIDATION, FAILURE, f"Security question update failed. Reason: {errors[0]}", ip=ip)
        raise InputValidationError(errors[0], details=errors)

    try:
        with unit_of_work("Security question update"):
            account = db.session.get(Account, identity.id)
            if account is None or not verify_secret(current_password, account.password_hash):
                raise PolicyViolation(
                    "Incorrect current password. Please try again.",
                    reason="Security question update failed. Reason: incorrect current password provided.",
                    code=INVALID_CURRENT_PASSWORD,
                    status_code=401,
                )

            answer_hash = hash_secret(answer)
            sq = SecurityQuestion.query.filter_by(account_id=account.id).first()
            if sq is None:
                db.session.add(SecurityQuestion(account_id=account.id, question_text=question, answer_hash=answer_hash))
            else:
                sq.question_text = question
                sq.answer_hash = answer_hash
    except SecurityError as exc:
        log_for(identity, ACCOUNT_MANAGEMENT, FAILURE, exc.reason, ip=ip)
        raise

    log_for(identity, ACCOUNT_MANAGEMENT, SUCCESS, "User successfully updated their security question.", ip=ip)
