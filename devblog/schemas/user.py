# devblog/schemas/user.py

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from devblog.models.enums import Role


class AuthorInfo(BaseModel):
    """Minimal user info shown next to posts, comments and replies"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    username: str
    profile_image: Optional[str] = None


class UserProfileResponse(BaseModel):
    """Public profile"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    username: str
    email: str
    profile_image: Optional[str]
    bio: Optional[str]
    role: Role


class UserListResponse(BaseModel):
    cursor: Optional[str]
    users: List[AuthorInfo]


class UserProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=100)
    username: Optional[str] = Field(
        None, min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$"
    )
    bio: Optional[str] = Field(None, max_length=1000)
    profile_image: Optional[str] = None
    password: Optional[str] = Field(None, min_length=8, max_length=128)


class RoleChange(BaseModel):
    role: Role


class RoleChangeResponse(BaseModel):
    message: str
    username: str
    role: Role
    changed: bool
