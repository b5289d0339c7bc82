# devblog/routers/users.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from devblog.core.database import get_db
from devblog.core.dependencies import get_current_user, require_roles
from devblog.models.enums import Role, Sort
from devblog.models.user import User
from devblog.schemas.user import (
    RoleChange,
    RoleChangeResponse,
    UserListResponse,
    UserProfileResponse,
    UserProfileUpdate,
)
from devblog.services.users import UserService

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={404: {"description": "Not found"}},
)


@router.get("/", response_model=UserListResponse)
async def list_users(
    role: Role = Query(...),
    limit: Optional[int] = Query(None, ge=1),
    cursor: Optional[str] = Query(None),
    sort: Sort = Query(Sort.LATEST),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(Role.ADMIN, Role.MODERATOR)),
):
    """List users holding a role, newest or oldest first."""
    page = await UserService(db).list_users(role, sort, cursor, limit)
    return {"cursor": page.next_cursor, "users": page.items}


@router.patch("/me", response_model=UserProfileResponse)
async def update_my_profile(
    profile_in: UserProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await UserService(db).update_profile(current_user, profile_in)


@router.get("/{username}", response_model=UserProfileResponse)
async def get_user(
    username: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await UserService(db).get_by_username(username)


@router.post("/{username}/roles", response_model=RoleChangeResponse)
async def change_user_role(
    username: str,
    role_in: RoleChange,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_roles(Role.ADMIN)),
):
    """Give a user another role. Admins only."""
    user, changed = await UserService(db).change_role(username, role_in.role)
    if changed:
        message = f"Role of {user.username} changed to {user.role.value}"
    else:
        message = f"{user.username} already has the {user.role.value} role"
    return {
        "message": message,
        "username": user.username,
        "role": user.role,
        "changed": changed,
    }


@router.delete("/{username}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    username: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Delete an account with its posts, comments, replies and likes.
    Moderators and admins may delete accounts that hold their own role.
    """
    await UserService(db).delete_user(username, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
