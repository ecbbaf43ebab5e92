from flask import Blueprint, jsonify

from security.accounts import update_address
from security.rbac import Access, require_access
from security.recovery import change_password as change_account_password
from security.recovery import set_security_question
from utils.auth_context import client_ip, session_token, request_json

account_bp = Blueprint("account", __name__, url_prefix="/account")


@account_bp.post("/password")
@require_access(Access.ANY)
def change_password(identity):
    data = request_json()
    change_account_password(
        identity,
        data.get("old_password"),
        data.get("new_password"),
        ip=client_ip(),
        keep_token=session_token(),
    )
    return jsonify(message="Password changed successfully!"), 200


@account_bp.post("/security-question")
@require_access(Access.ANY)
def security_question(identity):
    data = request_json()
    set_security_question(
        identity,
        data.get("current_password"),
        data.get("question"),
        data.get("answer"),
        ip=client_ip(),
    )
    return jsonify(message="Security question updated successfully!"), 200


@account_bp.post("/profile")
@require_access(Access.ANY)
def update_profile(identity):
    data = request_json()
    account = update_address(identity, data.get("address"), ip=client_ip())
    return jsonify(message="Profile updated successfully!", address=account.address), 200
