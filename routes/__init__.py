from .health import health_bp
from .auth import auth_bp
from .account import account_bp
from .recovery import recovery_bp
from .admin import admin_bp
from .audit_logs import audit_bp
