# devblog/routers/posts.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from devblog.core.database import get_db
from devblog.core.dependencies import get_current_user, require_roles
from devblog.models.enums import Role, Sort
from devblog.models.user import User
from devblog.schemas.comment import LikeStatusResponse, ReactionStatusResponse
from devblog.schemas.post import (
    PostCreate,
    PostCreatedResponse,
    PostListResponse,
    PostResponse,
    PostUpdate,
)
from devblog.services.posts import PostService
from devblog.services.reactions import LikeTarget, ReactionService

router = APIRouter(
    prefix="/posts",
    tags=["Posts"],
    responses={404: {"description": "Not found"}},
)

editors = require_roles(Role.ADMIN, Role.MODERATOR)


@router.get("/", response_model=PostListResponse)
async def list_posts(
    limit: Optional[int] = Query(None, ge=1),
    cursor: Optional[str] = Query(None),
    sort: Sort = Query(Sort.LATEST),
    search: str = Query(""),
    tags: str = Query("", description="Comma-separated tags, any may match"),
    db: AsyncSession = Depends(get_db),
):
    """
    Get a page of posts.
    Pass the returned `cursor` back to fetch the next page; it is null on the last one.
    """
    page = await PostService(db).list_posts(sort, cursor, limit, search, tags)
    return {"cursor": page.next_cursor, "posts": page.items}


@router.get("/{post_slug}", response_model=PostResponse)
async def get_post(post_slug: str, db: AsyncSession = Depends(get_db)):
    """Get a full post by slug"""
    return await PostService(db).get_post(post_slug)


@router.post("/", response_model=PostCreatedResponse, status_code=201)
async def create_post(
    post_in: PostCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(editors),
):
    """
    Create a new post.
    Admins and moderators only.
    """
    return await PostService(db).create_post(current_user, post_in)


@router.patch("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    post_in: PostUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(editors),
):
    """
    Update a post.
    Admins and moderators only.
    """
    return await PostService(db).update_post(post_id, post_in)


@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(editors),
):
    """
    Delete a post with its comments, replies and likes.
    Admins and moderators only.
    """
    await PostService(db).delete_post(post_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================== Post Likes ====================


@router.get("/{post_id}/likes/status", response_model=LikeStatusResponse)
async def get_post_like_status(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    liked = await ReactionService(db).get_like_status(current_user, LikeTarget(post_id))
    return {"liked": liked}


@router.post("/{post_id}/likes", response_model=ReactionStatusResponse)
async def like_post(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Like a post. Liking it again changes nothing."""
    return await ReactionService(db).like(current_user, LikeTarget(post_id))


@router.delete("/{post_id}/likes", response_model=ReactionStatusResponse)
async def unlike_post(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Remove a like from a post. Unliking twice changes nothing."""
    return await ReactionService(db).unlike(current_user, LikeTarget(post_id))
