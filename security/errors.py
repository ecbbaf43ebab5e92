"""
Failure kinds raised by the auth core.

Every error carries two texts: ``message`` is what the caller may see,
``reason`` is what the audit log records. Login and recovery failures use
deliberately vague messages; the reason is never returned to the client.
"""

GENERIC_LOGIN_FAILURE = "Invalid username and/or password"
GENERIC_RECOVERY_FAILURE = "Could not verify your details. Please try again."
GENERIC_STORAGE_FAILURE = "An unexpected error occurred. Please try again."


class SecurityError(Exception):
    kind = "Error"
    status_code = 500
    default_message = GENERIC_STORAGE_FAILURE

    def __init__(self, message=None, reason=None, code=None, details=None, status_code=None):
        self.message = message or self.default_message
        self.reason = reason or self.message
        self.code = code
        self.details = details or []
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.reason)

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.code:
            body["code"] = self.code
        if self.details:
            body["details"] = self.details
        return body


class InputValidationError(SecurityError):
    kind = "InputValidation"
    status_code = 400
    default_message = "Invalid input"


class AuthenticationFailure(SecurityError):
    kind = "AuthenticationFailure"
    status_code = 401
    default_message = GENERIC_LOGIN_FAILURE


class PolicyViolation(SecurityError):
    kind = "PolicyViolation"
    status_code = 400
    default_message = "Password does not meet policy"


class NotFoundError(SecurityError):
    kind = "NotFound"
    status_code = 404
    default_message = GENERIC_RECOVERY_FAILURE


class StorageFailure(SecurityError):
    kind = "StorageFailure"
    status_code = 500
    default_message = GENERIC_STORAGE_FAILURE


# PolicyViolation codes
NEW_PASSWORD_SAME_AS_OLD = "NEW_PASSWORD_SAME_AS_OLD"
PASSWORD_TOO_RECENT = "PASSWORD_TOO_RECENT"
PASSWORD_IN_HISTORY = "PASSWORD_IN_HISTORY"
INVALID_OLD_PASSWORD = "INVALID_OLD_PASSWORD"
INVALID_CURRENT_PASSWORD = "INVALID_CURRENT_PASSWORD"
USERNAME_TAKEN = "USERNAME_TAKEN"
