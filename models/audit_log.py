from datetime import datetime
from models.db import db

class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(db.String(40), nullable=False, index=True)  # e.g. Authentication, Access Control
    user_id = db.Column(db.Integer, nullable=True)  # nullable for unauth events
    username = db.Column(db.String(64), nullable=True)

    ip_address = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(10), nullable=False)  # Success | Failure
    description = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "user_id": self.user_id,
            "username": self.username,
            "ip_address": self.ip_address,
            "status": self.status,
            "description": self.description,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
