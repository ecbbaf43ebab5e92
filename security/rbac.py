import enum
from functools import wraps
from typing import Optional, Union

from flask import current_app, redirect, request

from models.account import Account, Role
from security.session import current_identity
from utils.audit import log_for, ACCESS_CONTROL, SUCCESS, FAILURE
from utils.auth_context import client_ip, session_token


class Access(enum.Enum):
    ANY = "authenticated"       # any resolved identity
    NONE = "unauthenticated"    # only when nobody is logged in


class Decision(enum.Enum):
    ALLOW = "Allow"
    DENY = "Deny"


Requirement = Union[Role, Access]

_ROLE_LABELS = {
    Role.ADMIN: "admin-only",
    Role.MANAGER: "manager-only",
    Role.CUSTOMER: "customer-only",
}


def _describe(identity: Optional[Account], required: Requirement, operation: str, allowed: bool) -> str:
    who = f"User '{identity.username}' ({identity.role.value})" if identity else "Unauthenticated user"

    if isinstance(required, Role):
        label = _ROLE_LABELS[required]
        if allowed:
            return f"{who} accessed a {label} operation '{operation}'."
        if identity is None:
            return f"{who} attempted a {label} operation '{operation}'. Reason: not logged in."
        return (
            f"{who} attempted a {label} operation '{operation}'. "
            f"Reason: role mismatch (has {identity.role.value}, needs {required.value})."
        )

    if required is Access.ANY:
        if allowed:
            return f"{who} accessed a protected operation '{operation}'."
        return f"{who} attempted a protected operation '{operation}'. Reason: not logged in."

    if required is Access.NONE:
        if allowed:
            return f"{who} accessed a guest-only operation '{operation}'."
        return f"{who} attempted a guest-only operation '{operation}'. Reason: already logged in."

    raise ValueError(f"Unknown access requirement: {required!r}")


def is_allowed(identity: Optional[Account], required: Requirement) -> bool:
    if isinstance(required, Role):
        # exact match, no hierarchy
        return identity is not None and identity.role is required
    if required is Access.ANY:
        return identity is not None
    if required is Access.NONE:
        return identity is None
    raise ValueError(f"Unknown access requirement: {required!r}")


def decide(identity: Optional[Account], required: Requirement, operation: str, ip=None) -> Decision:
    """
    Allow or deny one operation for an already-resolved identity.

    Each call writes exactly one Access Control audit entry.
    """
    allowed = is_allowed(identity, required)
    log_for(
        identity,
        ACCESS_CONTROL,
        SUCCESS if allowed else FAILURE,
        _describe(identity, required, operation, allowed),
        ip=ip,
    )
    return Decision.ALLOW if allowed else Decision.DENY


def authorize(raw_token, required: Requirement, operation: str, ip=None) -> Decision:
    return decide(current_identity(raw_token), required, operation, ip=ip)


def require_access(required: Requirement):
    """
    Usage: @require_access(Role.ADMIN)

    The resolved account is passed to the view as ``identity`` (except for
    guest-only views). Denied requests are redirected without saying why.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            identity = current_identity(session_token())
            operation = f"{request.method} {request.path}"
            decision = decide(identity, required, operation, ip=client_ip())

            if decision is Decision.DENY:
                if required is Access.NONE:
                    return redirect(current_app.config.get("AUTHENTICATED_HOME", "/auth/me"))
                return redirect(current_app.config.get("ACCESS_DENIED_REDIRECT", "/error"))

            if required is not Access.NONE:
                kwargs["identity"] = identity
            return fn(*args, **kwargs)
        return wrapper
    return decorator
