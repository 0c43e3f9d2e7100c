"""Outbound notifications for invitation and reset tokens.

Delivery is best-effort: callers log failures and keep the issued token.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Literal
from urllib.parse import urlencode

from config import CLIENT_URL

logger = logging.getLogger(__name__)

NotificationKind = Literal["invitation", "reset"]


def build_link(kind: NotificationKind, token: str, recipient: str, *, base_url: str | None = None) -> str:
    """Frontend URL the recipient follows to use ``token``."""
    base = (base_url if base_url is not None else CLIENT_URL).rstrip("/")
    if kind == "invitation":
        return f"{base}/register?{urlencode({'token': token, 'email': recipient})}"
    if kind == "reset":
        return f"{base}/reset-password?{urlencode({'token': token})}"
    raise ValueError(f"Unknown notification kind: {kind}")


class Notifier(ABC):
    @abstractmethod
    def send(self, recipient: str, token: str, kind: NotificationKind) -> None:
        """Deliver ``token`` to ``recipient``. May raise on delivery failure."""


class LoggingNotifier(Notifier):
    """Writes the link to the log instead of sending mail (dev / tests)."""

    def __init__(self, *, base_url: str | None = None) -> None:
        self._base_url = base_url

    def send(self, recipient: str, token: str, kind: NotificationKind) -> None:
        link = build_link(kind, token, recipient, base_url=self._base_url)
        logger.info("Notification kind=%s to=%s link=%s", kind, recipient, link)
