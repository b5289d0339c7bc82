"""
Shared fixtures: an in-memory SQLite database per test, a helper that drives
the services the way one request per call would, and an HTTP client bound to
the FastAPI app.
"""

import os

# Must be set before devblog.core.config builds its settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ADMIN_DEFAULT_PASSWORD"] = ""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from devblog.core.database import Base, build_engine, get_db
from devblog.core.hasher import PasswordHelper
from devblog.core.security import jwt_manager
from devblog.models import Comment, Post, Reply, Role, User
from devblog.schemas.post import PostCreate
from devblog.services.comments import CommentService, ReplyService
from devblog.services.posts import PostService
from devblog.services.reactions import LikeTarget, ReactionService

PASSWORD = "password123"
PASSWORD_HASH = PasswordHelper.hash_password(PASSWORD)


def post_payload(title: str, tags=("python",), **overrides) -> dict:
    payload = {
        "title": title,
        "description": f"All about {title}",
        "cover": "https://cdn.example.com/cover.png",
        "headers": [{"id": "intro", "type": "H2", "value": "Intro"}],
        "content": [
            {"type": "Editor", "value": "Some text"},
            {"type": "Code Snippet", "value": "print('hi')", "language": "python"},
        ],
        "tags": list(tags),
    }
    payload.update(overrides)
    return payload


class Blog:
    """Runs each service call in its own session, like one HTTP request."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def create_user(self, username: str, role: Role = Role.USER) -> int:
        async with self.session_factory() as db:
            user = User(
                full_name=username.title(),
                username=username,
                email=f"{username}@example.com",
                password=PASSWORD_HASH,
                role=role,
            )
            db.add(user)
            await db.commit()
            return user.id

    async def create_post(self, author_id: int, title: str, tags=("python",)) -> int:
        async with self.session_factory() as db:
            author = await db.get(User, author_id)
            post = await PostService(db).create_post(
                author, PostCreate(**post_payload(title, tags))
            )
            return post.id

    async def comment(self, post_id: int, user_id: int, body: str = "Nice post") -> int:
        async with self.session_factory() as db:
            user = await db.get(User, user_id)
            comment = await CommentService(db).create_comment(post_id, user, body)
            return comment.id

    async def reply(
        self, post_id: int, comment_id: int, user_id: int, body: str = "Agreed"
    ) -> int:
        async with self.session_factory() as db:
            user = await db.get(User, user_id)
            reply = await ReplyService(db).create_reply(post_id, comment_id, user, body)
            return reply.id

    async def delete_comment(self, post_id: int, comment_id: int, user_id: int) -> bool:
        async with self.session_factory() as db:
            user = await db.get(User, user_id)
            return await CommentService(db).delete_comment(post_id, comment_id, user)

    async def delete_reply(
        self, post_id: int, comment_id: int, reply_id: int, user_id: int
    ) -> bool:
        async with self.session_factory() as db:
            user = await db.get(User, user_id)
            return await ReplyService(db).delete_reply(
                post_id, comment_id, reply_id, user
            )

    async def like(self, user_id: int, target: LikeTarget):
        async with self.session_factory() as db:
            user = await db.get(User, user_id)
            return await ReactionService(db).like(user, target)

    async def unlike(self, user_id: int, target: LikeTarget):
        async with self.session_factory() as db:
            user = await db.get(User, user_id)
            return await ReactionService(db).unlike(user, target)

    async def get(self, model, item_id):
        async with self.session_factory() as db:
            return await db.get(model, item_id)

    async def count(self, model, *criteria) -> int:
        async with self.session_factory() as db:
            return await db.scalar(
                select(func.count()).select_from(model).where(*criteria)
            )

    async def assert_counters(self, post_id: int) -> None:
        """Stored counters must equal the live rows they summarize."""
        async with self.session_factory() as db:
            post = await db.get(Post, post_id)
            live = await db.scalar(
                select(func.count()).select_from(Comment).where(Comment.post_id == post_id)
            ) + await db.scalar(
                select(func.count()).select_from(Reply).where(Reply.post_id == post_id)
            )
            assert post.comments == live

            comments = (
                await db.scalars(select(Comment).where(Comment.post_id == post_id))
            ).all()
            for comment in comments:
                replies = await db.scalar(
                    select(func.count())
                    .select_from(Reply)
                    .where(Reply.comment_id == comment.id)
                )
                assert comment.replies == replies, f"comment {comment.id}"


@pytest.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
def blog(session_factory):
    return Blog(session_factory)


@pytest.fixture
async def client(session_factory):
    from main import app

    async def override_get_db():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(blog):
    async def make(user_id: int) -> dict:
        user = await blog.get(User, user_id)
        token = jwt_manager.create_access_token(user)
        return {"Authorization": f"Bearer {token}"}

    return make

