from .db import db
from .account import Account, Role
from .audit_log import AuditLog
from .session import Session
from .password_history import PasswordHistory
from .security_question import SecurityQuestion
from .recovery_token import RecoveryToken
