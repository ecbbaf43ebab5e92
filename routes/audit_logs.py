from flask import Blueprint, jsonify, request, current_app

from models.account import Role
from security.rbac import require_access
from utils.audit import recent_events

audit_bp = Blueprint("audit", __name__, url_prefix="/admin")


@audit_bp.get("/audit-logs")
@require_access(Role.ADMIN)
def list_audit_logs(identity):
    default_limit = current_app.config.get("AUDIT_LOG_DEFAULT_LIMIT", 200)
    max_limit = current_app.config.get("AUDIT_LOG_MAX_LIMIT", 500)

    limit = request.args.get("limit", type=int) or default_limit
    limit = max(1, min(limit, max_limit))

    rows = recent_events(
        limit,
        event_type=request.args.get("event_type"),
        status=request.args.get("status"),
        user_id=request.args.get("user_id", type=int),
    )
    return jsonify([r.to_dict() for r in rows]), 200
