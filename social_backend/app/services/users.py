from __future__ import annotations

import datetime as dt
import hashlib
from typing import Any, Callable, Optional
from urllib.parse import urlencode

from loguru import logger
from starlette.concurrency import run_in_threadpool

from ..core.documents import DocumentStore, MalformedIdError, new_id
from ..core.errors import InvalidCredentialsError, UserExistsError
from ..core.security import PasswordHasher


USERS = "users"

Clock = Callable[[], dt.datetime]


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def gravatar_url(email: str) -> str:
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"https://www.gravatar.com/avatar/{digest}?" + urlencode({"s": "200", "r": "pg", "d": "mm"})


def email_key(email: str) -> str:
    return email.strip().lower()


def public_view(user: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in user.items() if k != "password"}


class UserService:
    def __init__(self, store: DocumentStore, hasher: PasswordHasher, clock: Clock = utc_now) -> None:
        self.store = store
        self.hasher = hasher
        self.clock = clock

    async def get_by_email(self, email: str) -> Optional[dict[str, Any]]:
        return await self.store.find_one(USERS, "email", email_key(email))

    async def get_by_id(self, user_id: str) -> Optional[dict[str, Any]]:
        try:
            return await self.store.find_by_id(USERS, user_id)
        except MalformedIdError:
            return None

    async def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        if await self.get_by_email(email):
            raise UserExistsError()

        digest = await run_in_threadpool(self.hasher.hash, password)
        user_id = new_id()
        if not await self.store.claim_unique(USERS, "email", email_key(email), user_id):
            raise UserExistsError()

        # the claimed email must not outlive a failed registration
        try:
            user = {
                "name": name,
                "email": email,
                "avatar": gravatar_url(email),
                "password": digest,
                "date": self.clock().isoformat(),
            }
            await self.store.insert(USERS, user, doc_id=user_id)
        except BaseException:
            await self.store.release_unique(USERS, "email", email_key(email))
            raise
        logger.info("Registered user {}", user_id)
        return {**user, "id": user_id}

    async def authenticate(self, email: str, password: str) -> dict[str, Any]:
        user = await self.get_by_email(email)
        if not user:
            raise InvalidCredentialsError()
        if not await run_in_threadpool(self.hasher.verify, password, user.get("password", "")):
            raise InvalidCredentialsError()
        logger.info("User {} logged in", user["id"])
        return user
