import enum
from datetime import datetime
from models.db import db


class Role(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    CUSTOMER = "customer"


class Account(db.Model):
    __tablename__ = "accounts"

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(20), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # set once at creation, never reassigned
    role = db.Column(db.Enum(Role, native_enum=False, length=20), nullable=False, default=Role.CUSTOMER)

    # lockout state (expiry is applied lazily on the next login attempt)
    login_attempts = db.Column(db.Integer, default=0, nullable=False)
    lockout_until = db.Column(db.DateTime, nullable=True)

    last_successful_login = db.Column(db.DateTime, nullable=True)
    last_login_attempt = db.Column(db.DateTime, nullable=True)
    last_password_change = db.Column(db.DateTime, nullable=True)

    address = db.Column(db.String(255), nullable=True)
    profile_image = db.Column(db.LargeBinary, nullable=True)
    profile_image_mimetype = db.Column(db.String(100), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def is_locked(self, now: datetime) -> bool:
        return self.lockout_until is not None and self.lockout_until > now

    def __repr__(self):
        return f"<Account {self.username} role={self.role.value}>"
