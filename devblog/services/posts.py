# devblog/services/posts.py
import logging
from typing import List, Optional

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
from devblog.models.comment import Comment
from devblog.models.enums import Sort
from devblog.models.like import Like
from devblog.models.post import Post, PostTag
from devblog.models.reply import Reply
from devblog.models.user import User
from devblog.schemas.post import PostCreate, PostUpdate
from devblog.services.cursor import Page
from devblog.services.helpers import find_one, lock_one
from devblog.services.listing import ListQuery, clamp_limit
from devblog.utils.text import escape_like, normalize_tags, slugify, split_csv

logger = logging.getLogger(__name__)


async def purge_posts(db: AsyncSession, post_ids: List[int]) -> None:
    """Delete posts with their likes, replies, comments and tags."""
    await db.execute(delete(Like).where(Like.post_id.in_(post_ids)))
    await db.execute(delete(Reply).where(Reply.post_id.in_(post_ids)))
    await db.execute(delete(Comment).where(Comment.post_id.in_(post_ids)))
    await db.execute(delete(PostTag).where(PostTag.post_id.in_(post_ids)))
    await db.execute(delete(Post).where(Post.id.in_(post_ids)))


class PostService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _derive_slug(self, title: str, exclude_id: Optional[int] = None) -> str:
        """Slug for ``title``, refusing titles or slugs another post already uses."""
        slug = slugify(title)
        if not slug:
            raise ValidationFailedError("Post title must contain letters or digits")

        criteria = [or_(Post.title == title, Post.slug == slug)]
        if exclude_id is not None:
            criteria.append(Post.id != exclude_id)
        if await find_one(self.db, Post, *criteria):
            raise ConflictError("Post title must be unique")
        return slug

    @staticmethod
    def _set_tags(post: Post, tags: List[str]) -> None:
        # keep rows for surviving tags so the (post_id, tag) index never collides
        wanted = normalize_tags(tags)
        existing = {link.tag: link for link in post.tag_links}
        links = []
        for position, tag in enumerate(wanted):
            link = existing.get(tag) or PostTag(tag=tag)
            link.position = position
            links.append(link)
        post.tag_links = links

    async def list_posts(
        self,
        sort: Sort = Sort.LATEST,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        search: str = "",
        tags: str = "",
    ) -> Page[Post]:
        """
        Get one page of posts.

        ``search`` matches title or description case-insensitively;
        ``tags`` is a comma-separated list and a post matches when it carries
        any of them.
        """
        filters = []

        search = (search or "").strip()
        if search:
            pattern = f"%{escape_like(search)}%"
            filters.append(
                or_(
                    Post.title.ilike(pattern, escape="\\"),
                    Post.description.ilike(pattern, escape="\\"),
                )
            )

        wanted_tags = normalize_tags(split_csv(tags or ""))
        if wanted_tags:
            filters.append(
                Post.id.in_(
                    select(PostTag.post_id).where(PostTag.tag.in_(wanted_tags))
                )
            )

        query = ListQuery(self.db, Post)
        return await query.fetch(
            sort,
            cursor,
            clamp_limit(limit, settings.default_post_page_size),
            filters=filters,
        )

    async def get_post(self, slug: str) -> Post:
        """Get a full post by its slug"""
        slug = slug.strip()
        post = await find_one(self.db, Post, Post.slug == slug) if slug else None
        if post is None:
            raise NotFoundError("Post not found!")
        return post

    @db_exception
    async def create_post(self, author: User, post_in: PostCreate) -> Post:
        """Create a new post; the slug is derived from the title"""
        async with atomic(self.db):
            slug = await self._derive_slug(post_in.title)

            post = Post(
                author=author,
                title=post_in.title,
                slug=slug,
                description=post_in.description,
                cover=post_in.cover,
                headers=[h.model_dump(mode="json") for h in post_in.headers],
                content=[
                    b.model_dump(mode="json", exclude_none=True)
                    for b in post_in.content
                ],
            )
            self._set_tags(post, post_in.tags)
            self.db.add(post)
            await self.db.flush()

        logger.info(f"Post {post.id} '{post.slug}' created by user {author.id}")
        return post

    @db_exception
    async def update_post(self, post_id: int, post_in: PostUpdate) -> Post:
        """Update the provided fields of a post"""
        data = post_in.model_dump(exclude_unset=True, exclude_none=True)

        async with atomic(self.db):
            post = await find_one(self.db, Post, Post.id == post_id)
            if post is None:
                raise NotFoundError("Post not found")

            if "title" in data and data["title"] != post.title:
                post.slug = await self._derive_slug(data["title"], exclude_id=post.id)
                post.title = data["title"]
            if "description" in data:
                post.description = data["description"]
            if "cover" in data:
                post.cover = data["cover"]
            if "headers" in data:
                post.headers = [h.model_dump(mode="json") for h in post_in.headers]
            if "content" in data:
                post.content = [
                    b.model_dump(mode="json", exclude_none=True)
                    for b in post_in.content
                ]
            if "tags" in data:
                self._set_tags(post, data["tags"])

        logger.info(f"Post {post.id} updated: {sorted(data)}")
        return post

    async def delete_post(self, post_id: int, requester: User) -> bool:
        """
        Delete a post with all of its comments, replies, likes and tags.
        Returns False when the post is already gone.
        """
        if not requester.role.is_elevated:
            raise ForbiddenError(
                "Forbidden: You do not have the necessary permissions to delete this post"
            )

        async with atomic(self.db):
            post = await lock_one(self.db, Post, Post.id == post_id)
            if post is None:
                return False

            await purge_posts(self.db, [post_id])

        logger.info(f"Post {post_id} deleted by user {requester.id}")
        return True
