"""Auth Service (SQLite).

Supports:
- Direct and invitation-based registration
- Username/password login returning a signed session token
- Google sign-in (find-or-create by verified email)
- Forgot/reset password via single-use, time-limited tokens

Each call is independent; the service keeps no per-request state.
Storage: SQLite at {DATA_DIR}/app.db (see config.DB_PATH).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from config import TOKEN_SECRET

from .credential_store import CredentialStore, User
from .database import Database, normalize_email
from .errors import (
    AuthenticationError,
    ConflictError,
    FederatedAccountError,
    InvalidTokenError,
    NotFoundError,
)
from .identity_provider import GoogleIdentityVerifier, IdentityVerifier
from .invitation_service import InvitationManager
from .notifications import LoggingNotifier, NotificationKind, Notifier
from .reset_service import ResetManager
from .token_codec import TokenCodec
from .validation import (
    validate_email,
    validate_password,
    validate_registration,
    validate_username,
)

logger = logging.getLogger(__name__)

_SESSION_CLAIMS = ("id", "username", "email")


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: dict[str, Any]


@dataclass(frozen=True)
class ForgotPasswordResult:
    status: Literal["sent", "federated"]
    message: str


class AuthService:
    """Registration, login and password recovery on top of the token services."""

    def __init__(
        self,
        *,
        db_path: Path | None = None,
        secret: str | None = None,
        verifier: IdentityVerifier | None = None,
        notifier: Notifier | None = None,
        invite_ttl_hours: int | None = None,
        reset_ttl_hours: int | None = None,
        password_min_length: int | None = None,
    ) -> None:
        self._db = Database(db_path)
        self._codec = TokenCodec(secret or TOKEN_SECRET)
        self._users = CredentialStore(self._db)
        self._invitations = InvitationManager(self._db, self._codec, ttl_hours=invite_ttl_hours)
        self._resets = ResetManager(self._db, self._codec, self._users, ttl_hours=reset_ttl_hours)
        self._verifier = verifier or GoogleIdentityVerifier()
        self._notifier = notifier or LoggingNotifier()
        self._password_min_length = password_min_length

    @property
    def db_path(self) -> Path:
        return self._db.path

    @property
    def users(self) -> CredentialStore:
        return self._users

    @property
    def invitations(self) -> InvitationManager:
        return self._invitations

    @property
    def resets(self) -> ResetManager:
        return self._resets

    def _notify(self, recipient: str, token: str, kind: NotificationKind) -> None:
        # Delivery failures never revoke the token that was just issued.
        try:
            self._notifier.send(recipient, token, kind)
        except Exception:
            logger.exception("Failed to deliver %s notification to %s", kind, recipient)

    def _issue_session(self, user: User) -> AuthResult:
        view = user.public()
        return AuthResult(token=self._codec.issue(view), user=view)

    # ---------------------------------------------------------------------
    # Registration
    # ---------------------------------------------------------------------

    def register(self, *, username: str, email: str, password: str) -> dict[str, Any]:
        username, email, password = validate_registration(
            username, email, password, min_password_length=self._password_min_length
        )
        return self._create_user(username, email, password)

    def register_invited(self, *, username: str, email: str, password: str, token: str) -> dict[str, Any]:
        """Register with an invitation token.

        The invitation is consumed before the user row is written; if the
        write then conflicts, the invitation is gone.
        """
        username, email, password = validate_registration(
            username, email, password, min_password_length=self._password_min_length
        )
        self._invitations.redeem(token, email=email)
        return self._create_user(username, email, password)

    def _create_user(self, username: str, email: str, password: str) -> dict[str, Any]:
        if self._users.find_by_username_or_email(username, email):
            raise ConflictError("A user with that e-mail or username already exists.")
        return self._users.create(username, email, password).public()

    def invite(self, email: str) -> str:
        """Issue (or re-issue) an invitation and send it to ``email``."""
        email = validate_email(email)
        if self._users.find_by_email(email):
            raise ConflictError("A user with this email already exists.")
        token = self._invitations.issue(email)
        self._notify(email, token, "invitation")
        return token

    # ---------------------------------------------------------------------
    # Login
    # ---------------------------------------------------------------------

    def authenticate(self, *, username: str, password: str) -> AuthResult:
        user = self._users.find_by_username((username or "").strip())
        if user is None:
            raise AuthenticationError("User not found.", reason="not_found")
        if not self._users.verify_password(user, password):
            raise AuthenticationError("Password does not match!", reason="mismatch")
        logger.info("Password login for user id=%s", user.id)
        return self._issue_session(user)

    def authenticate_federated(self, identity_token: str) -> AuthResult:
        identity = self._verifier.verify(identity_token)
        email = normalize_email(identity.email)
        display_name = (identity.display_name or "").strip() or None

        user = self._users.find_by_email(email)
        if user is None:
            # First sign-in; the name may already belong to someone else.
            name = display_name if display_name and not self._users.find_by_username(display_name) else None
            try:
                user = self._users.create(name, email)
            except ConflictError:
                # Raced with another first sign-in for the same email.
                user = self._users.find_by_email(email)
                if user is None:
                    raise
            logger.info("Created federated user id=%s", user.id)
        elif not user.username and display_name:
            try:
                user = self._users.link_username(user, display_name)
            except ConflictError:
                logger.warning("Username %r taken; leaving user id=%s without one", display_name, user.id)

        return self._issue_session(user)

    def decode_session(self, token: str) -> dict[str, Any]:
        claims = self._codec.verify(token)
        if not all(k in claims for k in _SESSION_CLAIMS):
            raise InvalidTokenError("Not a session token.")
        return {k: claims[k] for k in _SESSION_CLAIMS}

    # ---------------------------------------------------------------------
    # Password recovery
    # ---------------------------------------------------------------------

    def forgot_password(self, username: str) -> ForgotPasswordResult:
        username = validate_username(username)
        user = self._users.find_by_username(username)
        if user is None:
            raise NotFoundError("User not found.")
        try:
            token = self._resets.issue(username)
        except FederatedAccountError:
            return ForgotPasswordResult(status="federated", message="User has logged in with google")

        self._notify(user.email, token, "reset")
        return ForgotPasswordResult(status="sent", message="Forgot password e-mail sent.")

    def reset_password(self, *, token: str, password: str) -> None:
        password = validate_password(password, min_length=self._password_min_length)
        self._resets.redeem(token, password)

    # ---------------------------------------------------------------------
    # Administration
    # ---------------------------------------------------------------------

    def list_users(self) -> list[dict[str, Any]]:
        return [u.public() for u in self._users.list_users()]

    def delete_user(self, user_id: str) -> bool:
        return self._users.delete(user_id)
