"""Google ID token verification, with the google-auth call stubbed out."""

from __future__ import annotations

import google.auth.exceptions
import google.oauth2.id_token
import pytest

from src.services.errors import AuthenticationError
from src.services.identity_provider import FederatedIdentity, GoogleIdentityVerifier


def _stub(monkeypatch, result=None, exc=None):
    calls: list[tuple] = []

    def fake_verify(token, request, audience):  # type: ignore[no-untyped-def]
        calls.append((token, audience))
        if exc is not None:
            raise exc
        return result

    monkeypatch.setattr(google.oauth2.id_token, "verify_oauth2_token", fake_verify)
    return calls


def test_returns_email_and_name(monkeypatch):
    calls = _stub(monkeypatch, {"email": "c@x.com", "name": "Carol", "email_verified": True})
    identity = GoogleIdentityVerifier(audience="client-id").verify("id-token")

    assert identity == FederatedIdentity(email="c@x.com", display_name="Carol")
    assert calls == [("id-token", "client-id")]


def test_invalid_token_maps_to_authentication_error(monkeypatch):
    _stub(monkeypatch, exc=ValueError("Token has wrong audience"))
    with pytest.raises(AuthenticationError) as err:
        GoogleIdentityVerifier(audience="client-id").verify("id-token")
    assert err.value.reason == "invalid_identity"


def test_unverified_email_is_rejected(monkeypatch):
    _stub(monkeypatch, {"email": "c@x.com", "email_verified": False})
    with pytest.raises(AuthenticationError):
        GoogleIdentityVerifier(audience="client-id").verify("id-token")


def test_missing_audience_or_token(monkeypatch):
    _stub(monkeypatch, {"email": "c@x.com"})
    monkeypatch.setattr("src.services.identity_provider.GOOGLE_CLIENT_ID", "")
    with pytest.raises(AuthenticationError):
        GoogleIdentityVerifier(audience="client-id").verify("")
    with pytest.raises(AuthenticationError):
        GoogleIdentityVerifier(audience="").verify("id-token")


@pytest.mark.parametrize(
    "exc",
    [
        google.auth.exceptions.GoogleAuthError("Wrong issuer."),
        google.auth.exceptions.TransportError("certs fetch failed"),
    ],
)
def test_google_auth_errors_map_to_authentication_error(monkeypatch, exc):
    _stub(monkeypatch, exc=exc)
    with pytest.raises(AuthenticationError) as err:
        GoogleIdentityVerifier(audience="client-id").verify("id-token")
    assert err.value.reason == "invalid_identity"
