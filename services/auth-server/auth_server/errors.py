"""Domain error kinds and their HTTP-facing classification.

Every error carries a stable ``code`` used in the error envelope, the HTTP
status it maps to, and a generic ``public_message``. The message passed to the
constructor is internal detail for logs only and is never sent to clients.
"""

from __future__ import annotations


class AuthServerError(Exception):
    """Base class for failures translated into the error envelope."""

    code: str = "server_error"
    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.public_message)
        self.detail = detail or self.public_message


class ValidationError(AuthServerError):
    code = "validation_error"
    status_code = 400
    public_message = "Invalid request payload"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail)
        # Field-level validation messages are safe to echo back.
        if detail:
            self.public_message = detail


class InvalidIdentifier(AuthServerError):
    code = "invalid_user_id"
    status_code = 400
    public_message = "Invalid user ID format"


class InvalidCredentials(AuthServerError):
    code = "invalid_credentials"
    status_code = 401
    public_message = "Invalid email or password"


class Unauthenticated(AuthServerError):
    code = "unauthorized"
    status_code = 401
    public_message = "Authentication required"


class AccountNotFound(AuthServerError):
    code = "user_not_found"
    status_code = 404
    public_message = "User not found"


class AccountExists(AuthServerError):
    code = "user_exists"
    status_code = 409
    public_message = "User with this email already exists"


class PersistenceError(AuthServerError):
    code = "database_error"
    status_code = 500
    public_message = "Failed to complete the request"


class HashingError(AuthServerError):
    code = "server_error"
    status_code = 500
    public_message = "Failed to process password"


class TokenIssueError(AuthServerError):
    code = "token_error"
    status_code = 500
    public_message = "Failed to generate authentication token"


class TokenError(Exception):
    """Raised by token validation; always surfaced to clients as ``Unauthenticated``."""


class TokenInvalid(TokenError):
    """The token is malformed, unparseable or lacks required claims."""


class TokenExpired(TokenError):
    """The token is correctly signed but past its expiry instant."""


class TokenSignatureMismatch(TokenError):
    """The token signature does not match the configured signing key."""
