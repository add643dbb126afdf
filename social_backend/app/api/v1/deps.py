from __future__ import annotations

from typing import Annotated

from fastapi import Depends

import app.core.runtime as runtime
from ...core.errors import InternalError
from ...core.security import require_user_id
from ...services.posts import PostService
from ...services.users import UserService


def get_user_service() -> UserService:
    if runtime.store is None or runtime.password_hasher is None:
        raise InternalError("Store not initialized")
    return UserService(runtime.store, runtime.password_hasher)


def get_post_service(users: UserService = Depends(get_user_service)) -> PostService:
    return PostService(runtime.store, users)  # type: ignore[arg-type]


CurrentUserId = Annotated[str, Depends(require_user_id)]
Users = Annotated[UserService, Depends(get_user_service)]
Posts = Annotated[PostService, Depends(get_post_service)]
