import re
from typing import List, Optional, Tuple

from flask import current_app, has_app_context

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"[0-9]")

_DEFAULTS = {
    "USERNAME_MIN_LEN": 3,
    "USERNAME_MAX_LEN": 20,
    "PASSWORD_MIN_LEN": 8,
    "PASSWORD_MAX_LEN": 50,
    "PASSWORD_SPECIAL_CHARS": "!@#$%^&*",
    "SECURITY_QUESTION_MAX_LEN": 255,
    "SECURITY_ANSWER_MAX_LEN": 100,
    "ADDRESS_MIN_LEN": 5,
    "ADDRESS_MAX_LEN": 255,
}


def _cfg(name: str):
    if not has_app_context():
        return _DEFAULTS[name]
    return current_app.config.get(name, _DEFAULTS[name])


def _blank(value) -> bool:
    return not isinstance(value, str) or value.strip() == ""


def validate_username(username) -> List[str]:
    if _blank(username):
        return ["Username is required."]
    min_len = int(_cfg("USERNAME_MIN_LEN"))
    max_len = int(_cfg("USERNAME_MAX_LEN"))
    if len(username) < min_len or len(username) > max_len:
        return [f"Username must be between {min_len} and {max_len} characters long."]
    return []


def validate_login_input(username, password) -> List[str]:
    """Length checks only; composition is not enforced at login."""
    errors = validate_username(username)
    if _blank(password):
        errors.append("Password is required.")
    else:
        min_len = int(_cfg("PASSWORD_MIN_LEN"))
        max_len = int(_cfg("PASSWORD_MAX_LEN"))
        if len(password) < min_len or len(password) > max_len:
            errors.append(f"Password must be between {min_len} and {max_len} characters long.")
    return errors


def validate_password(pw) -> Tuple[bool, List[str]]:
    errors: List[str] = []

    if not isinstance(pw, str) or pw == "":
        return False, ["Password is required."]

    min_len = int(_cfg("PASSWORD_MIN_LEN"))
    max_len = int(_cfg("PASSWORD_MAX_LEN"))
    specials = str(_cfg("PASSWORD_SPECIAL_CHARS"))

    if len(pw) < min_len:
        errors.append(f"Password must be at least {min_len} characters long.")
    if len(pw) > max_len:
        errors.append(f"Password cannot exceed {max_len} characters.")
    if not _UPPER.search(pw):
        errors.append("Password must contain an uppercase letter.")
    if not _LOWER.search(pw):
        errors.append("Password must contain a lowercase letter.")
    if not _DIGIT.search(pw):
        errors.append("Password must contain a number.")
    if not any(ch in specials for ch in pw):
        errors.append(f"Password must contain a special character ({specials}).")

    return (len(errors) == 0), errors


def validate_new_credentials(username, password, confirm_password) -> List[str]:
    errors = validate_username(username)
    if password != confirm_password:
        errors.append("Passwords do not match.")
    _, pw_errors = validate_password(password)
    return errors + pw_errors


def validate_password_change(old_password, new_password) -> List[str]:
    errors: List[str] = []
    if _blank(old_password):
        errors.append("Current password is required.")
    _, pw_errors = validate_password(new_password)
    errors.extend(pw_errors)
    if old_password and old_password == new_password:
        errors.append("New password cannot be the same as your current password.")
    return errors


def validate_security_question(question, answer) -> List[str]:
    errors: List[str] = []
    q_max = int(_cfg("SECURITY_QUESTION_MAX_LEN"))
    a_max = int(_cfg("SECURITY_ANSWER_MAX_LEN"))

    if _blank(question):
        errors.append("Security question cannot be empty.")
    elif len(question) > q_max:
        errors.append(f"Security question must be {q_max} characters or less.")

    if _blank(answer):
        errors.append("Answer cannot be empty.")
    elif len(answer) > a_max:
        errors.append(f"Answer must be {a_max} characters or less.")
    return errors


def validate_address(address: Optional[str]) -> List[str]:
    if _blank(address):
        return ["Address is required."]
    address = address.strip()
    min_len = int(_cfg("ADDRESS_MIN_LEN"))
    max_len = int(_cfg("ADDRESS_MAX_LEN"))
    if len(address) < min_len or len(address) > max_len:
        return [f"Address must be between {min_len} and {max_len} characters long."]
    return []
