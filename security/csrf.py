"""
Double-submit CSRF check for cookie-authenticated requests.

Login issues a random token in a script-readable cookie next to the session
cookie. While a session is live, every state-changing request has to echo
that token in a header. Guest endpoints are exempt since they have no session
to ride on.
"""
import hmac
import secrets

from flask import request, jsonify, current_app

from security.session import current_identity
from utils.audit import log_for, ACCESS_CONTROL, FAILURE
from utils.auth_context import client_ip, session_token, set_cookie, clear_cookie

STATE_CHANGING_METHODS = ("POST", "PUT", "PATCH", "DELETE")

CSRF_EXEMPT_PATHS = {
    "/auth/login",
    "/auth/register",
    "/recovery/verify",
    "/recovery/reset",
    "/health",
}


def _cookie_name() -> str:
    return current_app.config.get("CSRF_COOKIE_NAME", "csrf_token")


def issue_csrf_token(resp):
    # must be readable by client JS
    return set_cookie(resp, _cookie_name(), secrets.token_urlsafe(32), httponly=False)


def clear_csrf_token(resp):
    return clear_cookie(resp, _cookie_name())


def token_matches() -> bool:
    cookie_token = request.cookies.get(_cookie_name()) or ""
    header_token = request.headers.get(current_app.config.get("CSRF_HEADER_NAME", "X-CSRF-Token")) or ""
    return bool(cookie_token) and hmac.compare_digest(cookie_token, header_token)


def protect_request():
    """before_request hook: 403 for a live session's unsigned state change."""
    if request.method not in STATE_CHANGING_METHODS or request.path in CSRF_EXEMPT_PATHS:
        return None

    identity = current_identity(session_token())
    if identity is None or token_matches():
        return None

    current_app.logger.warning("CSRF validation failed for %s %s", request.method, request.path)
    log_for(
        identity, ACCESS_CONTROL, FAILURE,
        f"Request {request.method} {request.path} rejected: missing or mismatched CSRF token.",
        ip=client_ip(),
    )
    return jsonify(error="CSRF validation failed"), 403
