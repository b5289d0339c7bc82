# devblog/routers/comments.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from devblog.core.database import get_db
from devblog.core.dependencies import get_current_user
from devblog.models.enums import Sort
from devblog.models.user import User
from devblog.schemas.comment import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    CommentUpdate,
    LikeStatusResponse,
    ReactionStatusResponse,
)
from devblog.services.comments import CommentService
from devblog.services.reactions import LikeTarget, ReactionService

router = APIRouter(
    prefix="/posts/{post_id}/comments",
    tags=["Comments"],
    responses={404: {"description": "Not found"}},
)


@router.get("/", response_model=CommentListResponse)
async def list_comments(
    post_id: int,
    limit: Optional[int] = Query(None, ge=1),
    cursor: Optional[str] = Query(None),
    sort: Sort = Query(Sort.TOP),
    db: AsyncSession = Depends(get_db),
):
    """Get a page of comments on a post, most liked first by default."""
    page = await CommentService(db).list_comments(post_id, sort, cursor, limit)
    return {"cursor": page.next_cursor, "comments": page.items}


@router.post("/", response_model=CommentResponse, status_code=201)
async def create_comment(
    post_id: int,
    comment_in: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await CommentService(db).create_comment(
        post_id, current_user, comment_in.body
    )


@router.patch("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    post_id: int,
    comment_id: int,
    comment_in: CommentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Edit a comment.
    Only the comment author can do this.
    """
    return await CommentService(db).update_comment(
        post_id, comment_id, current_user, comment_in.body
    )


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    post_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Delete a comment, its replies and their likes.
    The author, moderators and admins can do this.
    """
    await CommentService(db).delete_comment(post_id, comment_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================== Comment Likes ====================


@router.get("/{comment_id}/likes/status", response_model=LikeStatusResponse)
async def get_comment_like_status(
    post_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    liked = await ReactionService(db).get_like_status(
        current_user, LikeTarget(post_id, comment_id=comment_id)
    )
    return {"liked": liked}


@router.post("/{comment_id}/likes", response_model=ReactionStatusResponse)
async def like_comment(
    post_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await ReactionService(db).like(
        current_user, LikeTarget(post_id, comment_id=comment_id)
    )


@router.delete("/{comment_id}/likes", response_model=ReactionStatusResponse)
async def unlike_comment(
    post_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await ReactionService(db).unlike(
        current_user, LikeTarget(post_id, comment_id=comment_id)
    )
