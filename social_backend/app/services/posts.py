from __future__ import annotations

import datetime as dt
from typing import Any

from loguru import logger

from ..core.documents import DocumentStore, MalformedIdError, new_id
from ..core.errors import (
    AlreadyLikedError,
    ForbiddenError,
    NotFoundError,
    NotLikedError,
    ValidationError,
)
from .users import Clock, UserService, utc_now


POSTS = "posts"

Post = dict[str, Any]


def _require_text(text: str | None) -> str:
    if text is None or not text.strip():
        raise ValidationError("Text is required", param="text")
    return text


class PostService:
    """Lifecycle of post documents and the likes/comments embedded in them.

    Likes and comments are rewritten together with their post. The
    like/unlike/comment operations fetch the post, change it in memory and
    replace it in the store; concurrent mutations of the same post race and
    the last write wins.
    """

    def __init__(self, store: DocumentStore, users: UserService, clock: Clock = utc_now) -> None:
        self.store = store
        self.users = users
        self.clock = clock

    async def _author_snapshot(self, user_id: str) -> dict[str, str]:
        user = await self.users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return {"user": user_id, "name": user["name"], "avatar": user["avatar"]}

    async def _load(self, post_id: str) -> Post:
        try:
            post = await self.store.find_by_id(POSTS, post_id)
        except MalformedIdError:
            post = None
        if post is None:
            raise NotFoundError("Post not found")
        return post

    async def _save(self, post: Post) -> None:
        if not await self.store.update(POSTS, post["id"], post):
            # deleted between read and write
            raise NotFoundError("Post not found")

    async def create(self, user_id: str, text: str) -> Post:
        text = _require_text(text)
        post: Post = {
            **await self._author_snapshot(user_id),
            "text": text,
            "date": self.clock().isoformat(),
            "likes": [],
            "comments": [],
        }
        post["id"] = await self.store.insert(POSTS, post)
        logger.info("User {} created post {}", user_id, post["id"])
        return post

    async def list(self) -> list[Post]:
        posts = await self.store.find_all(POSTS)
        return sorted(posts, key=lambda p: dt.datetime.fromisoformat(p["date"]), reverse=True)

    async def get(self, post_id: str) -> Post:
        return await self._load(post_id)

    async def delete(self, user_id: str, post_id: str) -> None:
        post = await self._load(post_id)
        if post["user"] != user_id:
            raise ForbiddenError()
        await self.store.delete(POSTS, post_id)
        logger.info("User {} deleted post {}", user_id, post_id)

    async def like(self, user_id: str, post_id: str) -> list[dict[str, Any]]:
        post = await self._load(post_id)
        if any(like["user"] == user_id for like in post["likes"]):
            raise AlreadyLikedError()
        post["likes"].insert(0, {"user": user_id})
        await self._save(post)
        logger.info("User {} liked post {}", user_id, post_id)
        return post["likes"]

    async def unlike(self, user_id: str, post_id: str) -> list[dict[str, Any]]:
        post = await self._load(post_id)
        likers = [like["user"] for like in post["likes"]]
        if user_id not in likers:
            raise NotLikedError()
        del post["likes"][likers.index(user_id)]
        await self._save(post)
        logger.info("User {} unliked post {}", user_id, post_id)
        return post["likes"]

    async def add_comment(self, user_id: str, post_id: str, text: str) -> list[dict[str, Any]]:
        text = _require_text(text)
        post = await self._load(post_id)
        comment = {
            "id": new_id(),
            **await self._author_snapshot(user_id),
            "text": text,
            "date": self.clock().isoformat(),
        }
        post["comments"].insert(0, comment)
        await self._save(post)
        logger.info("User {} commented {} on post {}", user_id, comment["id"], post_id)
        return post["comments"]

    async def delete_comment(self, user_id: str, post_id: str, comment_id: str) -> list[dict[str, Any]]:
        post = await self._load(post_id)
        ids = [c["id"] for c in post["comments"]]
        if comment_id not in ids:
            raise NotFoundError("Comment does not exist")
        index = ids.index(comment_id)
        if post["comments"][index]["user"] != user_id:
            raise ForbiddenError()
        del post["comments"][index]
        await self._save(post)
        logger.info("User {} deleted comment {} on post {}", user_id, comment_id, post_id)
        return post["comments"]
