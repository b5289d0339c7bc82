# devblog/services/users.py
import logging
from typing import Optional, Tuple

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from devblog.core.config import settings
from devblog.core.database import atomic
from devblog.core.decorator import db_exception
from devblog.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from devblog.core.hasher import PasswordHelper
from devblog.models.comment import Comment
from devblog.models.enums import Role, Sort
from devblog.models.like import Like
from devblog.models.post import Post
from devblog.models.reply import Reply
from devblog.models.user import User
from devblog.schemas.user import UserProfileUpdate
from devblog.services.comments import remove_comment, remove_reply
from devblog.services.cursor import Page
from devblog.services.helpers import find_one, lock_one
from devblog.services.listing import ListQuery, clamp_limit
from devblog.services.posts import purge_posts
from devblog.services.reactions import LikeTarget, ReactionService

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    @db_exception
    async def create_user(
        self,
        full_name: str,
        username: str,
        email: str,
        password: str,
        role: Role = Role.USER,
    ) -> User:
        """Create a user with a bcrypt-hashed password"""
        async with atomic(self.db):
            existing = await find_one(
                self.db, User, or_(User.username == username, User.email == email)
            )
            if existing:
                field = "Username" if existing.username == username else "Email"
                raise ConflictError(f"{field} is already taken")

            user = User(
                full_name=full_name,
                username=username,
                email=email,
                password=PasswordHelper.hash_password(password),
                role=role,
            )
            self.db.add(user)
            await self.db.flush()

        logger.info(f"User {user.username} created with role {role.value}")
        return user

    async def get_by_username(self, username: str) -> User:
        user = await find_one(self.db, User, User.username == username)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_users(
        self,
        role: Role,
        sort: Sort = Sort.LATEST,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page[User]:
        """Users of one role, newest or oldest first"""
        if sort is Sort.TOP:
            raise ValidationFailedError("sort query param is not valid")

        query = ListQuery(self.db, User, scope=[User.role == role])
        return await query.fetch(
            sort, cursor, clamp_limit(limit, settings.default_user_page_size)
        )

    @db_exception
    async def update_profile(self, user: User, profile_in: UserProfileUpdate) -> User:
        """Update the caller's own profile fields"""
        data = profile_in.model_dump(exclude_unset=True, exclude_none=True)

        async with atomic(self.db):
            if "username" in data and data["username"] != user.username:
                taken = await find_one(
                    self.db, User, User.username == data["username"], User.id != user.id
                )
                if taken:
                    raise ConflictError("Username is already taken")
                user.username = data["username"]
            if "full_name" in data:
                user.full_name = data["full_name"]
            if "bio" in data:
                user.bio = data["bio"]
            if "profile_image" in data:
                user.profile_image = data["profile_image"]
            if "password" in data:
                user.password = PasswordHelper.hash_password(data["password"])
            self.db.add(user)

        logger.info(f"User {user.id} updated profile fields: {sorted(data)}")
        return user

    async def change_role(self, username: str, role: Role) -> Tuple[User, bool]:
        """
        Give a user a new role. Returns the user and whether anything changed;
        asking for the role the user already holds is a successful no-op.
        """
        async with atomic(self.db):
            user = await find_one(self.db, User, User.username == username)
            if user is None:
                raise NotFoundError("User not found")

            if user.role == role:
                return user, False

            previous = user.role
            user.role = role

        logger.info(f"User {user.username} role changed {previous.value} -> {role.value}")
        return user, True

    async def delete_user(self, username: str, requester: User) -> None:
        """
        Delete a user and everything that exists only because of them.

        Moderators and admins may delete accounts holding their own role.
        Posts the user wrote go with all their threads; the user's comments
        and replies elsewhere are removed the way their authors would remove
        them, and every like the user gave is taken back from its counter.
        """
        async with atomic(self.db):
            user = await find_one(self.db, User, User.username == username)
            if user is None:
                raise NotFoundError("User not found")

            if not (requester.role.is_elevated and user.role == requester.role):
                raise ForbiddenError("You are not authorized to delete this user")

            user_id = user.id
            await self._purge_content(user_id)
            await self.db.execute(delete(User).where(User.id == user_id))

        logger.info(f"User {username} ({user_id}) deleted by user {requester.id}")

    async def _purge_content(self, user_id: int) -> None:
        post_ids = (
            await self.db.scalars(select(Post.id).where(Post.author_id == user_id))
        ).all()
        if post_ids:
            await purge_posts(self.db, post_ids)

        comments = (
            await self.db.scalars(
                select(Comment).where(Comment.author_id == user_id).order_by(Comment.id)
            )
        ).all()
        for comment in comments:
            post = await lock_one(self.db, Post, Post.id == comment.post_id)
            comment = await lock_one(self.db, Comment, Comment.id == comment.id)
            await remove_comment(self.db, post, comment)

        # replies under the user's own comments are already gone
        replies = (
            await self.db.scalars(
                select(Reply).where(Reply.author_id == user_id).order_by(Reply.id)
            )
        ).all()
        for reply in replies:
            reply_id, comment_id = reply.id, reply.comment_id
            post = await lock_one(self.db, Post, Post.id == reply.post_id)
            comment = await lock_one(self.db, Comment, Comment.id == comment_id)
            await remove_reply(self.db, post, comment, reply_id)

        likes = (await self.db.scalars(select(Like).where(Like.user_id == user_id))).all()
        reactions = ReactionService(self.db)
        for like in likes:
            entity = await reactions.load_target(LikeTarget.of(like))
            entity.likes -= 1
            await self.db.flush()
        await self.db.execute(delete(Like).where(Like.user_id == user_id))

        logger.debug(
            f"Purged content of user {user_id}: {len(post_ids)} posts, "
            f"{len(comments)} comments, {len(replies)} replies, {len(likes)} likes"
        )
