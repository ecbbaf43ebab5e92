from flask import Blueprint, jsonify

from security.rbac import Access, require_access
from security.recovery import verify_details, reset_password
from utils.auth_context import client_ip, request_json

recovery_bp = Blueprint("recovery", __name__, url_prefix="/recovery")


@recovery_bp.post("/verify")
@require_access(Access.NONE)
def verify():
    data = request_json()
    token = verify_details(
        data.get("username"),
        data.get("question"),
        data.get("answer"),
        ip=client_ip(),
    )
    return jsonify(message="Details verified. You may now reset your password.", recovery_token=token), 200


@recovery_bp.post("/reset")
@require_access(Access.NONE)
def reset():
    data = request_json()
    reset_password(
        data.get("username"),
        data.get("recovery_token"),
        data.get("new_password"),
        ip=client_ip(),
    )
    return jsonify(message="Password reset successfully. You can now log in."), 200
