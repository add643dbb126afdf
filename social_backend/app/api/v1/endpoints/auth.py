from __future__ import annotations

from fastapi import APIRouter

from ....core.errors import NotFoundError
from ....schemas.auth import LoginRequest, TokenResponse, UserPublic
from ....services.users import public_view
from ..deps import CurrentUserId, Users
from .users import issue_token


router = APIRouter()


@router.get("", response_model=UserPublic)
async def me(user_id: CurrentUserId, users: Users) -> UserPublic:
    user = await users.get_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")
    return UserPublic(**public_view(user))


@router.post("", response_model=TokenResponse)
async def login(payload: LoginRequest, users: Users) -> TokenResponse:
    user = await users.authenticate(str(payload.email), payload.password)
    return issue_token(user["id"])
