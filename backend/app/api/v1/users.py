"""
User endpoints.

Accounts and tokens are managed by the login service; this API only exposes
the caller's own profile so the UI can decide which admin actions to show.
"""
from fastapi import APIRouter, Depends

from app.core.security import get_current_user
from app.models.user import User
from app.schemas.user import UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the authenticated user's own profile."""
    return UserResponse.model_validate(current_user)
