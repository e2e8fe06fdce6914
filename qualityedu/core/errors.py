"""Domain error taxonomy.

Services raise these; the exception handlers registered in main.py turn
them into the uniform ``{success, message, data, error}`` envelope.
``ConfigError`` is the odd one out: it is raised while settings load and
aborts startup instead of becoming a response.
"""

from __future__ import annotations


class ConfigError(ValueError):
    """Fatal startup misconfiguration (missing or weak secret, bad TTL)."""


class ServiceError(Exception):
    status_code = 400
    code = "service_error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentials(ServiceError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid email or password"


class AccountNotActive(ServiceError):
    status_code = 403
    code = "account_not_active"
    default_message = "Your account is not active. Please contact support."


class DuplicateAccount(ServiceError):
    status_code = 409
    code = "duplicate_account"
    default_message = "Email already registered"


class PasswordMismatch(ServiceError):
    code = "password_mismatch"
    default_message = "Passwords do not match"


class InvalidOrExpiredResetCode(ServiceError):
    code = "invalid_reset_code"
    default_message = "Invalid or expired token"


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class Forbidden(ServiceError):
    status_code = 403
    code = "forbidden"
    default_message = "You do not have access to this resource"


class Conflict(ServiceError):
    status_code = 409
    code = "conflict"
    default_message = "Conflict"


class ValidationFailed(ServiceError):
    code = "validation_failed"
    default_message = "Validation failed"


# --- Token decode failures ---------------------------------------------------


class TokenError(ServiceError):
    status_code = 401
    code = "invalid_token"
    default_message = "Invalid token"


class MalformedToken(TokenError):
    code = "malformed_token"
    default_message = "Malformed token"


class InvalidSignature(TokenError):
    code = "invalid_signature"
    default_message = "Invalid token signature"


class TokenExpired(TokenError):
    code = "token_expired"
    default_message = "Token expired"
