import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as shopfront.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "shopfront.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "shopfront_session"

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60

    # Idle timeout: 20 minutes
    IDLE_TIMEOUT_SECONDS = 20 * 60

    # Revoke the account's other sessions on a fresh login
    SESSION_SINGLE_LOGIN = True

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = False  # set True when using HTTPS

    # Double-submit CSRF token, issued at login with the session cookie
    CSRF_COOKIE_NAME = "csrf_token"
    CSRF_HEADER_NAME = "X-CSRF-Token"

    # Reverse proxies in front of the app whose X-Forwarded-* headers are trusted.
    # 0 means the peer address is used as-is.
    TRUSTED_PROXY_COUNT = int(os.getenv("TRUSTED_PROXY_COUNT", "0"))

    # Where denied requests are sent
    ACCESS_DENIED_REDIRECT = "/error"
    AUTHENTICATED_HOME = "/auth/me"

    # Password hashing work factor
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

    # Brute-force protection
    MAX_LOGIN_ATTEMPTS = 5
    LOCKOUT_MINUTES = 10

    # Credential input limits
    USERNAME_MIN_LEN = 3
    USERNAME_MAX_LEN = 20
    PASSWORD_MIN_LEN = 8
    PASSWORD_MAX_LEN = 50
    PASSWORD_SPECIAL_CHARS = "!@#$%^&*"

    # Password policy
    PASSWORD_HISTORY_COUNT = 5          # block last 5 passwords
    PASSWORD_MIN_AGE_HOURS = 24         # one change per day

    # Security question / recovery
    SECURITY_QUESTION_MAX_LEN = 255
    SECURITY_ANSWER_MAX_LEN = 100
    RECOVERY_TOKEN_TTL_SECONDS = 10 * 60

    # Profile
    ADDRESS_MIN_LEN = 5
    ADDRESS_MAX_LEN = 255

    # Audit log listing
    AUDIT_LOG_DEFAULT_LIMIT = 200
    AUDIT_LOG_MAX_LIMIT = 500

    # Basic app settings
    DEBUG = False
