# devblog/schemas/post.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from devblog.models.enums import HeaderType, PostBlockType
from devblog.schemas.user import AuthorInfo

# ==================== Post Blocks ====================


class PostHeader(BaseModel):
    """Table-of-contents entry"""

    id: str = Field(..., min_length=1)
    type: HeaderType
    value: str = Field(..., min_length=1)


class ContentBlock(BaseModel):
    type: PostBlockType
    value: str = Field(..., min_length=1)
    language: Optional[str] = None

    @model_validator(mode="after")
    def require_language_for_code(self):
        if self.type is PostBlockType.CODE_SNIPPET and not self.language:
            raise ValueError("Code block requires a language")
        return self


# ==================== Post Schemas ====================


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


class PostCreate(BaseModel):
    title: str = Field(..., max_length=255)
    description: str
    cover: str
    headers: List[PostHeader] = Field(..., min_length=1)
    content: List[ContentBlock] = Field(..., min_length=1)
    tags: List[str] = Field(..., min_length=1)

    @field_validator("title", "description", "cover")
    def strip_text(cls, v):
        return _strip_required(v)


class PostUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    cover: Optional[str] = None
    headers: Optional[List[PostHeader]] = Field(None, min_length=1)
    content: Optional[List[ContentBlock]] = Field(None, min_length=1)
    tags: Optional[List[str]] = Field(None, min_length=1)

    @field_validator("title", "description", "cover")
    def strip_text(cls, v):
        return _strip_required(v) if v is not None else v


class PostCreatedResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    message: str = "Post created successfully."
    id: int
    slug: str


class PostSummary(BaseModel):
    """Fields rendered in post listings"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: str
    cover: str
    tags: List[str]
    likes: int
    comments: int
    created_at: datetime


class PostResponse(PostSummary):
    description: str
    headers: List[PostHeader]
    content: List[ContentBlock]
    author: AuthorInfo
    updated_at: datetime


class PostListResponse(BaseModel):
    cursor: Optional[str]
    posts: List[PostSummary]
