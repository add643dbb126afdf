from __future__ import annotations

from fastapi import APIRouter

import app.core.runtime as runtime
from ....core.errors import InternalError
from ....schemas.auth import RegisterRequest, TokenResponse
from ..deps import Users


router = APIRouter()


def issue_token(user_id: str) -> TokenResponse:
    if runtime.token_service is None:
        raise InternalError("Token service not initialized")
    return TokenResponse(token=runtime.token_service.issue(user_id))


@router.post("", response_model=TokenResponse)
async def register(payload: RegisterRequest, users: Users) -> TokenResponse:
    user = await users.register(payload.name, str(payload.email), payload.password)
    return issue_token(user["id"])
