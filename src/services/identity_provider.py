"""Federated identity verification.

The core never talks to Google's certificate endpoint itself; it asks an
:class:`IdentityVerifier` for a verified ``(email, display_name)`` pair.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from threading import RLock
from typing import Iterator

import cachecontrol
import google.auth.exceptions
import google.auth.transport.requests
import google.oauth2.id_token
import requests

from config import GOOGLE_CLIENT_ID

from .errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FederatedIdentity:
    email: str
    display_name: str | None


class IdentityVerifier(ABC):
    @abstractmethod
    def verify(self, identity_token: str) -> FederatedIdentity:
        """Return the verified identity or raise AuthenticationError."""


_session: requests.Session | None = None
_lock = RLock()


@contextmanager
def _cached_session() -> Iterator[requests.Session]:
    """Shared HTTP session that caches Google's signing certs."""
    global _session
    with _lock:
        if _session is None:
            _session = cachecontrol.CacheControl(requests.session())
        yield _session


class GoogleIdentityVerifier(IdentityVerifier):
    """Verifies Google ID tokens against the configured OAuth client id."""

    def __init__(self, audience: str | None = None) -> None:
        self._audience = audience or GOOGLE_CLIENT_ID

    def verify(self, identity_token: str) -> FederatedIdentity:
        if not identity_token:
            raise AuthenticationError("Missing identity token.", reason="invalid_identity")
        if not self._audience:
            raise AuthenticationError("Google sign-in is not configured.", reason="invalid_identity")

        with _cached_session() as session:
            request = google.auth.transport.requests.Request(session=session)
            try:
                idinfo = google.oauth2.id_token.verify_oauth2_token(
                    identity_token, request, self._audience
                )
            except (ValueError, google.auth.exceptions.GoogleAuthError) as exc:
                logger.info("Rejected Google ID token: %s", exc)
                raise AuthenticationError("Authentication error.", reason="invalid_identity") from exc

        email = (idinfo or {}).get("email")
        if not email:
            raise AuthenticationError("Google account has no email.", reason="invalid_identity")
        if idinfo.get("email_verified") is False:
            raise AuthenticationError("Google email is not verified.", reason="invalid_identity")

        return FederatedIdentity(email=email, display_name=idinfo.get("name"))
