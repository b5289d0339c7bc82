# devblog/schemas/comment.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from devblog.schemas.user import AuthorInfo


class BodyIn(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)

    @field_validator("body")
    def strip_body(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Comment must not be empty")
        return v


# ==================== Comment Schemas ====================


class CommentCreate(BodyIn):
    pass


class CommentUpdate(BodyIn):
    pass


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    body: str
    likes: int
    replies: int
    created_at: datetime
    author: AuthorInfo


class CommentListResponse(BaseModel):
    cursor: Optional[str]
    comments: List[CommentResponse]


# ==================== Reply Schemas ====================


class ReplyCreate(BodyIn):
    reply_to_username: Optional[str] = Field(None, max_length=50)

    @field_validator("reply_to_username")
    def strip_username(cls, v):
        if v is None:
            return v
        return v.strip() or None


class ReplyUpdate(BodyIn):
    pass


class ReplyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    comment_id: int
    reply_to_username: Optional[str]
    body: str
    likes: int
    created_at: datetime
    author: AuthorInfo


class ReplyListResponse(BaseModel):
    cursor: Optional[str]
    replies: List[ReplyResponse]


# ==================== Reaction Schemas ====================


class ReactionStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    liked: bool
    changed: bool


class LikeStatusResponse(BaseModel):
    liked: bool
