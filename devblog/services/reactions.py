# devblog/services/reactions.py
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from devblog.core.database import atomic
from devblog.core.exceptions import NotFoundError
from devblog.models.comment import Comment
from devblog.models.enums import ReactionTarget
from devblog.models.like import Like
from devblog.models.post import Post
from devblog.models.reply import Reply
from devblog.models.user import User
from devblog.services.helpers import find_one, lock_one

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LikeTarget:
    """
    What a like points at.

    Only ``post_id``: the post itself. ``comment_id``: a comment of that post.
    ``reply_id``: a reply of that post, additionally scoped to ``comment_id``
    when one is given.
    """

    post_id: int
    comment_id: Optional[int] = None
    reply_id: Optional[int] = None

    @classmethod
    def of(cls, like: Like) -> "LikeTarget":
        """Target of an existing ledger row"""
        if like.target_type is ReactionTarget.COMMENT:
            return cls(like.post_id, comment_id=like.target_id)
        if like.target_type is ReactionTarget.REPLY:
            return cls(like.post_id, reply_id=like.target_id)
        return cls(like.post_id)

    @property
    def kind(self) -> ReactionTarget:
        if self.reply_id is not None:
            return ReactionTarget.REPLY
        if self.comment_id is not None:
            return ReactionTarget.COMMENT
        return ReactionTarget.POST

    @property
    def target_id(self) -> int:
        if self.reply_id is not None:
            return self.reply_id
        if self.comment_id is not None:
            return self.comment_id
        return self.post_id


@dataclass(frozen=True)
class ReactionStatus:
    liked: bool
    changed: bool


class ReactionService:
    """Ledger of at most one like per (user, target), kept in lockstep with ``likes``."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_target(self, target: LikeTarget, lock: bool = True):
        """Load the liked row, read `FOR UPDATE` unless ``lock`` is False."""
        load = lock_one if lock else find_one
        kind = target.kind
        if kind is ReactionTarget.POST:
            entity = await load(self.db, Post, Post.id == target.post_id)
            label = "Post"
        elif kind is ReactionTarget.COMMENT:
            entity = await load(
                self.db,
                Comment,
                Comment.id == target.comment_id,
                Comment.post_id == target.post_id,
            )
            label = "Comment"
        else:
            criteria = [Reply.id == target.reply_id, Reply.post_id == target.post_id]
            if target.comment_id is not None:
                criteria.append(Reply.comment_id == target.comment_id)
            entity = await load(self.db, Reply, *criteria)
            label = "Reply"

        if entity is None:
            raise NotFoundError(f"{label} not found")
        return entity

    async def _find_like(self, user_id: int, target: LikeTarget) -> Optional[Like]:
        return await self.db.scalar(
            select(Like).where(
                Like.user_id == user_id,
                Like.post_id == target.post_id,
                Like.target_type == target.kind,
                Like.target_id == target.target_id,
            )
        )

    async def like(self, user: User, target: LikeTarget) -> ReactionStatus:
        """
        Record a like and bump the target's counter in one transaction.
        Liking something already liked is a successful no-op.
        """
        user_id = user.id
        try:
            async with atomic(self.db):
                entity = await self.load_target(target)

                if await self._find_like(user_id, target):
                    logger.debug(
                        f"User {user_id} already liked {target.kind.value}:{target.target_id}"
                    )
                    return ReactionStatus(liked=True, changed=False)

                self.db.add(
                    Like(
                        user_id=user_id,
                        post_id=target.post_id,
                        target_type=target.kind,
                        target_id=target.target_id,
                    )
                )
                entity.likes += 1
                await self.db.flush()
        except IntegrityError:
            # A concurrent request inserted the same ledger row first.
            logger.info(
                f"Duplicate like by user {user_id} on "
                f"{target.kind.value}:{target.target_id} rolled back"
            )
            return ReactionStatus(liked=True, changed=False)

        logger.info(
            f"User {user_id} liked {target.kind.value}:{target.target_id} "
            f"(likes={entity.likes})"
        )
        return ReactionStatus(liked=True, changed=True)

    async def unlike(self, user: User, target: LikeTarget) -> ReactionStatus:
        """
        Remove a like and decrement the target's counter in one transaction.
        Unliking something not liked is a successful no-op.
        """
        user_id = user.id
        async with atomic(self.db):
            entity = await self.load_target(target)

            like = await self._find_like(user_id, target)
            if like is None:
                return ReactionStatus(liked=False, changed=False)

            result = await self.db.execute(delete(Like).where(Like.id == like.id))
            if result.rowcount == 0:
                # removed by a concurrent unlike that committed first
                return ReactionStatus(liked=False, changed=False)

            entity.likes -= 1

        logger.info(
            f"User {user_id} unliked {target.kind.value}:{target.target_id} "
            f"(likes={entity.likes})"
        )
        return ReactionStatus(liked=False, changed=True)

    async def get_like_status(self, user: User, target: LikeTarget) -> bool:
        await self.load_target(target, lock=False)
        return await self._find_like(user.id, target) is not None
