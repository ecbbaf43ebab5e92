from flask import Blueprint, jsonify, current_app

from models.account import Account
from security import session as sessions
from security.accounts import register as register_account
from security.authentication import authenticate
from security.csrf import issue_csrf_token, clear_csrf_token
from security.rbac import Access, require_access
from utils.audit import log_for, AUTHENTICATION, SUCCESS
from utils.auth_context import client_ip, user_agent, session_token, request_json, set_cookie, clear_cookie


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME", "shopfront_session")


def account_payload(account: Account) -> dict:
    return {
        "id": account.id,
        "username": account.username,
        "role": account.role.value,
        "address": account.address,
        "last_successful_login": account.last_successful_login.isoformat() if account.last_successful_login else None,
    }


@auth_bp.post("/register")
@require_access(Access.NONE)
def register():
    data = request_json()
    register_account(
        data.get("username"),
        data.get("password"),
        data.get("confirm_password"),
        ip=client_ip(),
    )
    return jsonify(message="You are now registered and can log in!"), 201


@auth_bp.post("/login")
@require_access(Access.NONE)
def login():
    data = request_json()
    result = authenticate(data.get("username"), data.get("password"), ip=client_ip())

    raw_token = sessions.establish(
        result.account,
        ip=client_ip(),
        user_agent=user_agent(),
        login_report=result.login_report,
    )

    resp = jsonify(message="Login OK")
    set_cookie(resp, _cookie_name(), raw_token)
    issue_csrf_token(resp)
    return resp, 200


@auth_bp.get("/me")
@require_access(Access.ANY)
def me(identity):
    return jsonify(account_payload(identity)), 200


@auth_bp.get("/last-login")
@require_access(Access.ANY)
def last_login(identity):
    # one-shot: a second call returns null
    return jsonify(report=sessions.take_login_report(session_token())), 200


@auth_bp.post("/logout")
@require_access(Access.ANY)
def logout(identity):
    sessions.destroy(session_token())
    log_for(identity, AUTHENTICATION, SUCCESS, f"User '{identity.username}' logged out.", ip=client_ip())

    resp = jsonify(message="You are logged out.")
    clear_cookie(resp, _cookie_name())
    clear_csrf_token(resp)
    return resp, 200


@auth_bp.post("/logout_all")
@require_access(Access.ANY)
def logout_all(identity):
    count = sessions.revoke_all_sessions(identity.id)
    log_for(
        identity, AUTHENTICATION, SUCCESS,
        f"User '{identity.username}' logged out everywhere ({count} sessions revoked).",
        ip=client_ip(),
    )

    resp = jsonify(message="Logged out everywhere", revoked_sessions=count)
    clear_cookie(resp, _cookie_name())
    clear_csrf_token(resp)
    return resp, 200
