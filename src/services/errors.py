"""Error taxonomy shared by the identity services.

Every error raised by the core derives from :class:`AuthError`; the transport
layer decides how each maps onto a response.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for auth errors."""


class ValidationError(AuthError):
    """Raised when input is malformed (bad email, short password, ...)."""


class ConflictError(AuthError):
    """Raised when a username or email is already taken."""


class InvalidTokenError(AuthError):
    """Raised when a token is malformed, forged, superseded or already used."""


class ExpiredTokenError(InvalidTokenError):
    """Raised when a token's signature is fine but its time window elapsed."""


class AuthenticationError(AuthError):
    """Raised when login fails.

    ``reason`` is ``"not_found"``, ``"mismatch"`` or ``"invalid_identity"`` so
    callers can tell the causes apart without parsing the message.
    """

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class NotFoundError(AuthError):
    """Raised when a referenced user does not exist."""


class FederatedAccountError(AuthError):
    """Raised when a password operation targets an account without a password."""
