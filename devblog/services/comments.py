# devblog/services/comments.py
import logging
from typing import Optional

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from devblog.core.config import settings
from devblog.core.database import atomic
from devblog.core.exceptions import ForbiddenError, NotFoundError
from devblog.models.comment import Comment
from devblog.models.enums import ReactionTarget, Sort
from devblog.models.like import Like
from devblog.models.post import Post
from devblog.models.reply import Reply
from devblog.models.user import User
from devblog.services.cursor import Page
from devblog.services.helpers import can_moderate, find_one, lock_one
from devblog.services.listing import ListQuery, clamp_limit

logger = logging.getLogger(__name__)


async def remove_comment(db: AsyncSession, post: Post, comment: Comment) -> int:
    """
    Delete a locked comment, its replies and every like on them, and drop
    ``post.comments`` accordingly. Returns the number of replies removed.
    """
    reply_ids = (
        await db.scalars(select(Reply.id).where(Reply.comment_id == comment.id))
    ).all()

    await db.execute(
        delete(Like).where(
            Like.post_id == post.id,
            or_(
                and_(
                    Like.target_type == ReactionTarget.COMMENT,
                    Like.target_id == comment.id,
                ),
                and_(
                    Like.target_type == ReactionTarget.REPLY,
                    Like.target_id.in_(reply_ids),
                ),
            ),
        )
    )
    await db.execute(delete(Reply).where(Reply.comment_id == comment.id))
    await db.execute(delete(Comment).where(Comment.id == comment.id))

    post.comments -= 1 + len(reply_ids)
    await db.flush()
    return len(reply_ids)


async def remove_reply(db: AsyncSession, post: Post, comment: Comment, reply_id: int) -> bool:
    """Delete one reply and its likes under a locked post and comment."""
    result = await db.execute(
        delete(Reply).where(Reply.id == reply_id, Reply.comment_id == comment.id)
    )
    if result.rowcount == 0:
        # deleted by a concurrent request that committed first
        return False

    await db.execute(
        delete(Like).where(
            Like.post_id == post.id,
            Like.target_type == ReactionTarget.REPLY,
            Like.target_id == reply_id,
        )
    )
    post.comments -= 1
    comment.replies -= 1
    await db.flush()
    return True


class CommentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_comments(
        self,
        post_id: int,
        sort: Sort = Sort.TOP,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page[Comment]:
        """Get one page of a post's comments"""
        if await find_one(self.db, Post, Post.id == post_id) is None:
            raise NotFoundError("Post not found")

        query = ListQuery(self.db, Comment, scope=[Comment.post_id == post_id])
        return await query.fetch(
            sort, cursor, clamp_limit(limit, settings.default_comment_page_size)
        )

    async def create_comment(self, post_id: int, author: User, body: str) -> Comment:
        """Create a comment and count it on the post"""
        async with atomic(self.db):
            post = await lock_one(self.db, Post, Post.id == post_id)
            if post is None:
                raise NotFoundError("Post not found")

            comment = Comment(post_id=post.id, author=author, body=body)
            self.db.add(comment)
            post.comments += 1
            await self.db.flush()

        logger.info(
            f"Comment {comment.id} created on post {post.id} by user {author.id} "
            f"(post comments={post.comments})"
        )
        return comment

    async def update_comment(
        self, post_id: int, comment_id: int, author: User, body: str
    ) -> Comment:
        """Update a comment body; only its author may do this"""
        async with atomic(self.db):
            comment = await find_one(
                self.db, Comment, Comment.id == comment_id, Comment.post_id == post_id
            )
            if comment is None:
                raise NotFoundError("Comment not found")

            if comment.author_id != author.id:
                raise ForbiddenError(
                    "Forbidden: You do not have the necessary permissions to update this comment."
                )

            comment.body = body

        return comment

    async def delete_comment(
        self, post_id: int, comment_id: int, requester: User
    ) -> bool:
        """
        Delete a comment together with its replies and every like on them.

        ``post.comments`` drops by one for the comment plus one per reply.
        Returns False when the comment is already gone.
        """
        async with atomic(self.db):
            comment = await find_one(
                self.db, Comment, Comment.id == comment_id, Comment.post_id == post_id
            )
            if comment is None:
                return False

            if not can_moderate(requester, comment.author_id):
                raise ForbiddenError(
                    "Forbidden: You do not have the necessary permissions to delete this comment"
                )

            # lock order: post, then comment
            post = await lock_one(self.db, Post, Post.id == post_id)
            comment = await lock_one(
                self.db, Comment, Comment.id == comment_id, Comment.post_id == post_id
            )
            if post is None or comment is None:
                return False

            removed = await remove_comment(self.db, post, comment)

        logger.info(
            f"Comment {comment_id} deleted from post {post_id} by user {requester.id} "
            f"with {removed} replies (post comments={post.comments})"
        )
        return True


class ReplyService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_comment(self, post_id: int, comment_id: int) -> Comment:
        comment = await find_one(
            self.db, Comment, Comment.id == comment_id, Comment.post_id == post_id
        )
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    async def list_replies(
        self,
        post_id: int,
        comment_id: int,
        sort: Sort = Sort.OLDEST,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page[Reply]:
        """Get one page of a comment's replies, oldest first by default"""
        await self._get_comment(post_id, comment_id)

        query = ListQuery(
            self.db,
            Reply,
            scope=[Reply.post_id == post_id, Reply.comment_id == comment_id],
        )
        return await query.fetch(
            sort, cursor, clamp_limit(limit, settings.default_reply_page_size)
        )

    async def create_reply(
        self,
        post_id: int,
        comment_id: int,
        author: User,
        body: str,
        reply_to_username: Optional[str] = None,
    ) -> Reply:
        """Create a reply, counting it on both the comment and the post"""
        async with atomic(self.db):
            post = await lock_one(self.db, Post, Post.id == post_id)
            if post is None:
                raise NotFoundError("Post not found")

            comment = await lock_one(
                self.db, Comment, Comment.id == comment_id, Comment.post_id == post.id
            )
            if comment is None:
                raise NotFoundError("Comment not found")

            reply = Reply(
                post_id=post.id,
                comment_id=comment.id,
                reply_to_username=reply_to_username,
                author=author,
                body=body,
            )
            self.db.add(reply)
            comment.replies += 1
            post.comments += 1
            await self.db.flush()

        logger.info(
            f"Reply {reply.id} created under comment {comment.id} by user {author.id} "
            f"(comment replies={comment.replies}, post comments={post.comments})"
        )
        return reply

    async def update_reply(
        self, post_id: int, comment_id: int, reply_id: int, author: User, body: str
    ) -> Reply:
        """Update a reply body; only its author may do this"""
        async with atomic(self.db):
            reply = await find_one(
                self.db,
                Reply,
                Reply.id == reply_id,
                Reply.post_id == post_id,
                Reply.comment_id == comment_id,
            )
            if reply is None:
                raise NotFoundError("Comment reply not found")

            if reply.author_id != author.id:
                raise ForbiddenError(
                    "Forbidden: You do not have the necessary permissions to update this reply."
                )

            reply.body = body

        return reply

    async def delete_reply(
        self, post_id: int, comment_id: int, reply_id: int, requester: User
    ) -> bool:
        """Delete a reply and its likes. Returns False when already gone."""
        async with atomic(self.db):
            reply = await find_one(
                self.db,
                Reply,
                Reply.id == reply_id,
                Reply.post_id == post_id,
                Reply.comment_id == comment_id,
            )
            if reply is None:
                return False

            if not can_moderate(requester, reply.author_id):
                raise ForbiddenError(
                    "Forbidden: You do not have the necessary permissions to delete this reply"
                )

            post = await lock_one(self.db, Post, Post.id == post_id)
            comment = await lock_one(
                self.db, Comment, Comment.id == comment_id, Comment.post_id == post_id
            )
            if post is None or comment is None:
                return False

            if not await remove_reply(self.db, post, comment, reply_id):
                return False

        logger.info(
            f"Reply {reply_id} deleted from comment {comment_id} by user {requester.id} "
            f"(comment replies={comment.replies}, post comments={post.comments})"
        )
        return True

