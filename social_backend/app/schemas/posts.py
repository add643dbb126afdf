from __future__ import annotations

import datetime as dt
from typing import List

from pydantic import BaseModel, Field


class TextBody(BaseModel):
    text: str = ""


class LikePublic(BaseModel):
    user: str


class CommentPublic(BaseModel):
    id: str
    user: str
    text: str
    name: str
    avatar: str
    date: dt.datetime


class PostPublic(BaseModel):
    id: str
    user: str
    text: str
    name: str
    avatar: str
    date: dt.datetime
    likes: List[LikePublic] = Field(default_factory=list)
    comments: List[CommentPublic] = Field(default_factory=list)


class MessageResponse(BaseModel):
    msg: str
