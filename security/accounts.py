from datetime import datetime

from models import db
from models.account import Account, Role
from models.password_history import PasswordHistory
from security.errors import (
    InputValidationError,
    PolicyViolation,
    SecurityError,
    USERNAME_TAKEN,
)
from security.password import hash_password
from security.password_policy import validate_new_credentials, validate_address
from utils.audit import (
    log_event,
    log_for,
    ACCOUNT_MANAGEMENT,
    INPUT_VALIDATION,
    SUCCESS,
    FAILURE,
)
from utils.transaction import unit_of_work

PROVISIONABLE_ROLES = (Role.ADMIN, Role.MANAGER)

REGISTRATION_FAILED = "Registration failed. Please try again with different information."


def _create_account(username: str, password: str, role: Role) -> Account:
    if Account.query.filter_by(username=username).first():
        raise PolicyViolation(REGISTRATION_FAILED, reason="username already exists", code=USERNAME_TAKEN, status_code=409)

    now = datetime.utcnow()
    pw_hash = hash_password(password)

    account = Account(
        username=username,
        password_hash=pw_hash,
        role=role,
        login_attempts=0,
        last_password_change=now,
        created_at=now,
    )
    db.session.add(account)
    db.session.flush()

    db.session.add(PasswordHistory(account_id=account.id, password_hash=pw_hash, created_at=now))
    return account


def register(username, password, confirm_password, ip=None) -> Account:
    """Self-service sign-up; always creates a customer."""
    errors = validate_new_credentials(username, password, confirm_password)
    if errors:
        log_event(
            INPUT_VALIDATION, FAILURE,
            f"User registration failed for '{username}'. Reason: {errors[0]}",
            username=username if isinstance(username, str) else None, ip=ip,
        )
        raise InputValidationError(errors[0], details=errors)

    try:
        with unit_of_work("Registration"):
            account = _create_account(username, password, Role.CUSTOMER)
    except SecurityError as exc:
        log_event(
            ACCOUNT_MANAGEMENT, FAILURE,
            f"Customer account creation failed for '{username}'. Reason: {exc.reason}",
            username=username, ip=ip,
        )
        raise

    log_event(
        ACCOUNT_MANAGEMENT, SUCCESS,
        f"New customer account created successfully for '{username}'.",
        user_id=account.id, username=username, ip=ip,
    )
    return account


def provision_account(actor, username, password, confirm_password, role, ip=None) -> Account:
    """
    Admin-only creation of admin or manager accounts.

    ``actor`` is the acting admin, or None when called from the CLI.
    """
    actor_id = actor.id if actor is not None else None
    actor_name = actor.username if actor is not None else "cli"

    try:
        role = Role(role)
    except ValueError:
        role = None

    errors = validate_new_credentials(username, password, confirm_password)
    if role not in PROVISIONABLE_ROLES:
        errors.append(f"Role must be one of: {', '.join(r.value for r in PROVISIONABLE_ROLES)}.")
    if errors:
        log_event(
            INPUT_VALIDATION, FAILURE,
            f"Account provisioning failed for '{username}'. Reason: {errors[0]}",
            user_id=actor_id, username=actor_name, ip=ip,
        )
        raise InputValidationError(errors[0], details=errors)

    try:
        with unit_of_work("Account provisioning"):
            account = _create_account(username, password, role)
    except SecurityError as exc:
        log_event(
            ACCOUNT_MANAGEMENT, FAILURE,
            f"'{actor_name}' failed to create {role.value} account for '{username}'. Reason: {exc.reason}",
            user_id=actor_id, username=actor_name, ip=ip,
        )
        raise

    log_event(
        ACCOUNT_MANAGEMENT, SUCCESS,
        f"'{actor_name}' successfully created a new {role.value} account for '{username}'.",
        user_id=actor_id, username=actor_name, ip=ip,
    )
    return account


def update_address(identity: Account, address, ip=None) -> Account:
    errors = validate_address(address)
    if errors:
        log_for(identity, INPUT_VALIDATION, FAILURE, f"Profile update failed. Reason: {errors[0]}", ip=ip)
        raise InputValidationError(errors[0], details=errors)

    try:
        with unit_of_work("Profile update"):
            account = db.session.get(Account, identity.id)
            account.address = address.strip()
    except SecurityError as exc:
        log_for(identity, ACCOUNT_MANAGEMENT, FAILURE, f"Profile address update failed. Reason: {exc.reason}", ip=ip)
        raise

    log_for(identity, ACCOUNT_MANAGEMENT, SUCCESS, "User successfully updated their profile address.", ip=ip)
    return account
