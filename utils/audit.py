from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.audit_log import AuditLog

# event types
AUTHENTICATION = "Authentication"
ACCESS_CONTROL = "Access Control"
ACCOUNT_MANAGEMENT = "Account Management"
INPUT_VALIDATION = "Input Validation"

SUCCESS = "Success"
FAILURE = "Failure"

GUEST = "Guest"


def log_event(event_type: str, status: str, description: str, user_id=None, username=None, ip=None) -> bool:
    """
    Append one audit row in its own commit.

    Callers commit their own work first; a failing audit write is rolled
    back and logged locally but never propagates to the caller.
    """
    row = AuditLog(
        event_type=event_type,
        status=status,
        description=description,
        user_id=user_id,
        username=(username or GUEST)[:64],
        ip_address=ip[:64] if ip else None,
    )
    try:
        db.session.add(row)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to write audit log entry (%s/%s)", event_type, status)
        return False
    return True


def log_for(identity, event_type: str, status: str, description: str, ip=None) -> bool:
    return log_event(
        event_type,
        status,
        description,
        user_id=identity.id if identity is not None else None,
        username=identity.username if identity is not None else GUEST,
        ip=ip,
    )


def recent_events(limit: int, event_type=None, status=None, user_id=None):
    q = AuditLog.query
    if event_type:
        q = q.filter(AuditLog.event_type == event_type)
    if status:
        q = q.filter(AuditLog.status == status)
    if user_id is not None:
        q = q.filter(AuditLog.user_id == user_id)
    return q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()
