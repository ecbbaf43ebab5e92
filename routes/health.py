from flask import Blueprint, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.get("/health")
def health():
    return jsonify(status="ok"), 200


@health_bp.get("/error")
def error():
    # generic landing for denied requests; says nothing about why
    return jsonify(error="You do not have access to this resource."), 403
