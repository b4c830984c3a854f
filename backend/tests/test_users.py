"""
Tests for the current-user endpoint and the bearer-token path of
get_current_user().

The client fixture runs with DEV_SKIP_AUTH=true; the bearer tests switch the
bypass off on the shared settings object.
"""
import time

import pytest
from fastapi import HTTPException
from jose import jwt

import app.core.security as sec_module
from app.core.security import get_current_user


def _token(sub: str, secret: str = "test-secret", exp_offset: int = 3600) -> str:
    now = int(time.time())
    payload = {"sub": sub, "iss": "backoffice-app", "iat": now, "exp": now + exp_offset}
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def bearer_mode(monkeypatch):
    monkeypatch.setattr(sec_module.settings, "dev_skip_auth", False)
    monkeypatch.setattr(sec_module.settings, "jwt_secret", "test-secret")
    monkeypatch.setattr(sec_module.settings, "jwt_issuer", "backoffice-app")


@pytest.mark.asyncio
async def test_get_me(client, admin_user):
    resp = await client.get("/api/v1/users/me")
    assert resp.status_code == 200
    data = resp.json()
    assert data["user_code"] == admin_user.user_code
    assert data["email"] == admin_user.email
    assert data["role"] == "ADMIN"


@pytest.mark.asyncio
async def test_get_me_as_staff(client, staff_user):
    resp = await client.get("/api/v1/users/me", headers={"X-Dev-User-ID": staff_user.user_code})
    assert resp.status_code == 200
    assert resp.json()["department"] == "Sales"


@pytest.mark.asyncio
async def test_dev_auth_unknown_user(client):
    resp = await client.get("/api/v1/users/me", headers={"X-Dev-User-ID": "GHOST"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_bearer_token_resolves_user(bearer_mode, db_session, staff_user):
    user = await get_current_user(token=_token(staff_user.user_code), db=db_session)
    assert user.user_code == staff_user.user_code


@pytest.mark.asyncio
async def test_bearer_missing_token(bearer_mode, db_session):
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(token=None, db=db_session)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_bearer_unknown_user(bearer_mode, db_session):
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(token=_token("NOBODY"), db=db_session)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_bearer_inactive_user(bearer_mode, db_session, staff_user):
    staff_user.is_active = False
    await db_session.commit()
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(token=_token(staff_user.user_code), db=db_session)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_bearer_without_secret_configured(bearer_mode, monkeypatch, db_session):
    monkeypatch.setattr(sec_module.settings, "jwt_secret", "")
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user(token=_token("ADM001"), db=db_session)
    assert exc_info.value.status_code == 503
