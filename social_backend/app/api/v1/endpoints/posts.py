from __future__ import annotations

from typing import List

from fastapi import APIRouter

from ....schemas.posts import CommentPublic, LikePublic, MessageResponse, PostPublic, TextBody
from ..deps import CurrentUserId, Posts


router = APIRouter()


@router.post("", response_model=PostPublic)
async def create_post(payload: TextBody, user_id: CurrentUserId, posts: Posts) -> PostPublic:
    return PostPublic(**await posts.create(user_id, payload.text))


@router.get("", response_model=List[PostPublic])
async def list_posts(user_id: CurrentUserId, posts: Posts) -> List[PostPublic]:
    return [PostPublic(**p) for p in await posts.list()]


@router.put("/like/{post_id}", response_model=List[LikePublic])
async def like_post(post_id: str, user_id: CurrentUserId, posts: Posts) -> List[LikePublic]:
    return [LikePublic(**like) for like in await posts.like(user_id, post_id)]


@router.put("/unlike/{post_id}", response_model=List[LikePublic])
async def unlike_post(post_id: str, user_id: CurrentUserId, posts: Posts) -> List[LikePublic]:
    return [LikePublic(**like) for like in await posts.unlike(user_id, post_id)]


@router.post("/comment/{post_id}", response_model=List[CommentPublic])
async def add_comment(post_id: str, payload: TextBody, user_id: CurrentUserId, posts: Posts) -> List[CommentPublic]:
    return [CommentPublic(**c) for c in await posts.add_comment(user_id, post_id, payload.text)]


@router.delete("/comment/{post_id}/{comment_id}", response_model=List[CommentPublic])
async def delete_comment(post_id: str, comment_id: str, user_id: CurrentUserId, posts: Posts) -> List[CommentPublic]:
    return [CommentPublic(**c) for c in await posts.delete_comment(user_id, post_id, comment_id)]


@router.get("/{post_id}", response_model=PostPublic)
async def get_post(post_id: str, user_id: CurrentUserId, posts: Posts) -> PostPublic:
    return PostPublic(**await posts.get(post_id))


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(post_id: str, user_id: CurrentUserId, posts: Posts) -> MessageResponse:
    await posts.delete(user_id, post_id)
    return MessageResponse(msg="Post removed")
