"""
Tests for bearer-token verification in app.core.security.

Tokens are minted with jose using the same shared secret the login service
would use; no network or database is involved.
"""
import time

import pytest
from fastapi import HTTPException
from jose import jwt

from app.core.security import _verify_access_token

TEST_SECRET = "unit-test-secret"
TEST_ISSUER = "backoffice-app"


def _make_token(
    sub: str | None = "USR001",
    iss: str = TEST_ISSUER,
    secret: str = TEST_SECRET,
    exp_offset: int = 3600,
    **extra,
) -> str:
    now = int(time.time())
    payload = {"iss": iss, "iat": now, "exp": now + exp_offset, **extra}
    if sub is not None:
        payload["sub"] = sub
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture(autouse=True)
def patch_settings(monkeypatch):
    import app.core.security as sec_module
    monkeypatch.setattr(sec_module.settings, "jwt_secret", TEST_SECRET)
    monkeypatch.setattr(sec_module.settings, "jwt_issuer", TEST_ISSUER)
    monkeypatch.setattr(sec_module.settings, "jwt_algorithm", "HS256")


def test_valid_token_returns_payload():
    payload = _verify_access_token(_make_token(sub="USR042", department="Finance"))
    assert payload["sub"] == "USR042"
    assert payload["department"] == "Finance"


def test_user_code_claim_is_accepted_without_sub():
    payload = _verify_access_token(_make_token(sub=None, user_code="USR007"))
    assert payload["user_code"] == "USR007"


def test_expired_token_raises_401():
    token = _make_token(exp_offset=-10)  # expired 10 seconds ago
    with pytest.raises(HTTPException) as exc_info:
        _verify_access_token(token)
    assert exc_info.value.status_code == 401
    assert "expired" in exc_info.value.detail.lower()


def test_wrong_issuer_raises_401():
    with pytest.raises(HTTPException) as exc_info:
        _verify_access_token(_make_token(iss="someone-else"))
    assert exc_info.value.status_code == 401
    assert "issuer" in exc_info.value.detail.lower()


def test_wrong_secret_raises_401():
    with pytest.raises(HTTPException) as exc_info:
        _verify_access_token(_make_token(secret="not-the-secret"))
    assert exc_info.value.status_code == 401


def test_missing_subject_raises_401():
    with pytest.raises(HTTPException) as exc_info:
        _verify_access_token(_make_token(sub=None))
    assert exc_info.value.status_code == 401


def test_malformed_token_raises_401():
    with pytest.raises(HTTPException) as exc_info:
        _verify_access_token("not.a.jwt")
    assert exc_info.value.status_code == 401
