from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from src.services.database import Database
from src.services.errors import ExpiredTokenError, InvalidTokenError
from src.services.invitation_service import InvitationManager
from src.services.token_codec import TokenCodec

SECRET = "unit-test-secret-0123456789abcdef0123456789"


@pytest.fixture
def manager(tmp_path):
    return InvitationManager(Database(tmp_path / "app.db"), TokenCodec(SECRET), ttl_hours=0)


def test_redeem_returns_email_once(manager):
    token = manager.issue("New@X.com")
    assert manager.redeem(token) == "new@x.com"
    assert manager.pending("new@x.com") is None

    with pytest.raises(InvalidTokenError):
        manager.redeem(token)


def test_new_invitation_supersedes_old(manager):
    old = manager.issue("new@x.com")
    new = manager.issue("new@x.com")

    with pytest.raises(InvalidTokenError):
        manager.redeem(old)
    assert manager.redeem(new) == "new@x.com"


def test_reissue_keeps_single_row(manager, tmp_path):
    for _ in range(3):
        manager.issue("new@x.com")
    with Database(tmp_path / "app.db").connect() as conn:
        count = conn.execute("SELECT COUNT(*) FROM invitations").fetchone()[0]
    assert count == 1


def test_signed_token_without_row_is_rejected(manager):
    forged = TokenCodec(SECRET).issue({"email": "nobody@x.com"})
    with pytest.raises(InvalidTokenError):
        manager.redeem(forged)


def test_foreign_signature_is_rejected(manager):
    manager.issue("new@x.com")
    foreign = TokenCodec("another-secret-0123456789abcdef012345").issue({"email": "new@x.com"})
    with pytest.raises(InvalidTokenError):
        manager.redeem(foreign)


def test_email_mismatch_does_not_consume(manager):
    token = manager.issue("new@x.com")
    with pytest.raises(InvalidTokenError):
        manager.redeem(token, email="other@x.com")
    assert manager.redeem(token, email="NEW@x.com") == "new@x.com"


def test_expired_invitation_is_rejected_and_kept(tmp_path):
    db = Database(tmp_path / "app.db")
    manager = InvitationManager(db, TokenCodec(SECRET), ttl_hours=24)
    manager.issue("new@x.com")
    stale = TokenCodec(SECRET).issue({"email": "new@x.com"}, ttl=timedelta(seconds=-5))
    with db.connect() as conn:
        conn.execute("UPDATE invitations SET token = ? WHERE email = ?", (stale, "new@x.com"))

    with pytest.raises(ExpiredTokenError):
        manager.redeem(stale)
    assert manager.pending("new@x.com").token == stale


def test_concurrent_issuance_leaves_one_redeemable_token(manager, tmp_path):
    with ThreadPoolExecutor(max_workers=4) as pool:
        tokens = list(pool.map(lambda _: manager.issue("new@x.com"), range(8)))

    with Database(tmp_path / "app.db").connect() as conn:
        assert conn.execute("SELECT COUNT(*) FROM invitations").fetchone()[0] == 1

    survivor = manager.pending("new@x.com").token
    assert survivor in tokens
    for token in tokens:
        if token != survivor:
            with pytest.raises(InvalidTokenError):
                manager.redeem(token)
    assert manager.redeem(survivor) == "new@x.com"
