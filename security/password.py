import bcrypt

from flask import current_app, has_app_context

DEFAULT_ROUNDS = 10

# bcrypt only reads the first 72 bytes of its input
_BCRYPT_MAX_BYTES = 72


def _rounds() -> int:
    if not has_app_context():
        return DEFAULT_ROUNDS
    return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_ROUNDS))


def _encode(secret: str) -> bytes:
    return secret.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_secret(secret: str) -> str:
    """Salted bcrypt hash for passwords and security answers alike."""
    if not isinstance(secret, str) or len(secret) == 0:
        raise ValueError("Secret must be a non-empty string")

    salt = bcrypt.gensalt(rounds=_rounds())
    hashed = bcrypt.hashpw(_encode(secret), salt)
    return hashed.decode("utf-8")


def verify_secret(secret: str, secret_hash: str) -> bool:
    if not secret or not secret_hash:
        return False
    try:
        return bcrypt.checkpw(_encode(secret), secret_hash.encode("utf-8"))
    except (ValueError, TypeError):
        # malformed stored hash fails closed
        return False


hash_password = hash_secret
verify_password = verify_secret
