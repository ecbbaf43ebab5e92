from flask import Blueprint, jsonify

from models.account import Role
from security.accounts import provision_account
from security.rbac import require_access
from utils.auth_context import client_ip, request_json

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.get("/dashboard")
@require_access(Role.ADMIN)
def dashboard(identity):
    return jsonify(message=f"Welcome, {identity.username}"), 200


@admin_bp.post("/accounts")
@require_access(Role.ADMIN)
def create_account(identity):
    data = request_json()
    account = provision_account(
        identity,
        data.get("username"),
        data.get("password"),
        data.get("confirm_password"),
        str(data.get("role") or "").strip().lower(),
        ip=client_ip(),
    )
    return jsonify(
        message=f"{account.role.value.capitalize()} '{account.username}' registered successfully!",
        id=account.id,
    ), 201
