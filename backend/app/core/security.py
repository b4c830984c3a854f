"""
Bearer JWT verification + current-user dependency.

In development with DEV_SKIP_AUTH=true:
  - Pass X-Dev-User-ID: <user_code> header to authenticate as that user.
  - If the header is absent, the first active admin in the DB is used as
    fallback (only in development; production always requires a valid token).

In production / staging:
  - Bearer token must be an HS256 JWT signed with JWT_SECRET by the login
    service, issued by JWT_ISSUER, with the user_code as subject.
"""
import logging
from contextvars import ContextVar
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.db import get_db
from app.models.user import User

logger = logging.getLogger(__name__)
settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

# Set by the dev auth middleware in main.py
_dev_user_code: ContextVar[str | None] = ContextVar("_dev_user_code", default=None)


def set_dev_user_code(user_code: str | None) -> None:
    _dev_user_code.set(user_code)


def _verify_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a bearer token.
    Raises HTTPException(401) on any failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_aud": False},
        )
    except ExpiredSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has expired") from exc
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token verification failed") from exc

    if payload.get("iss") != settings.jwt_issuer:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token issuer")

    if not (payload.get("sub") or payload.get("user_code")):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no subject")

    return payload


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    FastAPI dependency: resolve and return the current authenticated User.

    Dev bypass: when DEV_SKIP_AUTH=true (development only), the token is not
    checked and the user is taken from the X-Dev-User-ID header (or the
    first active admin if the header is absent).
    """
    # ------------------------------------------------------------------ #
    # Development bypass
    # ------------------------------------------------------------------ #
    if settings.auth_disabled:
        user_code = _dev_user_code.get(None)
        if user_code:
            result = await db.execute(select(User).where(User.user_code == user_code))
            user = result.scalars().first()
        else:
            result = await db.execute(
                select(User).where(User.role == "ADMIN", User.is_active.is_(True)).limit(1)
            )
            user = result.scalars().first()

        if user and user.is_active:
            return user
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Dev auth: no matching user found. "
                   "Set X-Dev-User-ID header or create an admin user first.",
        )

    # ------------------------------------------------------------------ #
    # Bearer token
    # ------------------------------------------------------------------ #
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not settings.jwt_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured on this server",
        )

    payload = _verify_access_token(token)
    user_code = payload.get("sub") or payload.get("user_code")

    result = await db.execute(select(User).where(User.user_code == user_code))
    user = result.scalars().first()

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    return user
