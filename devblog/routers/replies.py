# devblog/routers/replies.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from devblog.core.database import get_db
from devblog.core.dependencies import get_current_user
from devblog.models.enums import Sort
from devblog.models.user import User
from devblog.schemas.comment import (
    LikeStatusResponse,
    ReactionStatusResponse,
    ReplyCreate,
    ReplyListResponse,
    ReplyResponse,
    ReplyUpdate,
)
from devblog.services.comments import ReplyService
from devblog.services.reactions import LikeTarget, ReactionService

router = APIRouter(
    prefix="/posts/{post_id}/comments/{comment_id}/replies",
    tags=["Replies"],
    responses={404: {"description": "Not found"}},
)


@router.get("/", response_model=ReplyListResponse)
async def list_replies(
    post_id: int,
    comment_id: int,
    limit: Optional[int] = Query(None, ge=1),
    cursor: Optional[str] = Query(None),
    sort: Sort = Query(Sort.OLDEST),
    db: AsyncSession = Depends(get_db),
):
    """Get a page of replies to a comment, oldest first by default."""
    page = await ReplyService(db).list_replies(post_id, comment_id, sort, cursor, limit)
    return {"cursor": page.next_cursor, "replies": page.items}


@router.post("/", response_model=ReplyResponse, status_code=201)
async def create_reply(
    post_id: int,
    comment_id: int,
    reply_in: ReplyCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await ReplyService(db).create_reply(
        post_id,
        comment_id,
        current_user,
        reply_in.body,
        reply_to_username=reply_in.reply_to_username,
    )


@router.patch("/{reply_id}", response_model=ReplyResponse)
async def update_reply(
    post_id: int,
    comment_id: int,
    reply_id: int,
    reply_in: ReplyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await ReplyService(db).update_reply(
        post_id, comment_id, reply_id, current_user, reply_in.body
    )


@router.delete("/{reply_id}", status_code=204)
async def delete_reply(
    post_id: int,
    comment_id: int,
    reply_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await ReplyService(db).delete_reply(post_id, comment_id, reply_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================== Reply Likes ====================


@router.get("/{reply_id}/likes/status", response_model=LikeStatusResponse)
async def get_reply_like_status(
    post_id: int,
    comment_id: int,
    reply_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    liked = await ReactionService(db).get_like_status(
        current_user, LikeTarget(post_id, comment_id=comment_id, reply_id=reply_id)
    )
    return {"liked": liked}


@router.post("/{reply_id}/likes", response_model=ReactionStatusResponse)
async def like_reply(
    post_id: int,
    comment_id: int,
    reply_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await ReactionService(db).like(
        current_user, LikeTarget(post_id, comment_id=comment_id, reply_id=reply_id)
    )


@router.delete("/{reply_id}/likes", response_model=ReactionStatusResponse)
async def unlike_reply(
    post_id: int,
    comment_id: int,
    reply_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await ReactionService(db).unlike(
        current_user, LikeTarget(post_id, comment_id=comment_id, reply_id=reply_id)
    )
