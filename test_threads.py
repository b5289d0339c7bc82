"""
Tests for comment and reply threads: counters, permissions and cascades
"""

import pytest
from sqlalchemy.exc import IntegrityError

from devblog.core.exceptions import ForbiddenError, NotFoundError
from devblog.models import Comment, Like, Post, Reply, Role, User
from devblog.services.comments import CommentService, ReplyService
from devblog.services.reactions import LikeTarget


@pytest.fixture
async def people(blog):
    return {
        "admin": await blog.create_user("admin", Role.ADMIN),
        "mod": await blog.create_user("mod", Role.MODERATOR),
        "alice": await blog.create_user("alice"),
        "bob": await blog.create_user("bob"),
    }


@pytest.fixture
async def post_id(blog, people):
    return await blog.create_post(people["admin"], "Threads in Depth")


async def test_post_comment_reply_like_delete_scenario(blog, people, post_id):
    assert (await blog.get(Post, post_id)).comments == 0

    c1 = await blog.comment(post_id, people["alice"])
    assert (await blog.get(Post, post_id)).comments == 1

    r1 = await blog.reply(post_id, c1, people["bob"])
    assert (await blog.get(Comment, c1)).replies == 1
    assert (await blog.get(Post, post_id)).comments == 2

    await blog.like(people["alice"], LikeTarget(post_id, comment_id=c1, reply_id=r1))
    assert (await blog.get(Reply, r1)).likes == 1

    assert await blog.delete_comment(post_id, c1, people["alice"]) is True

    assert (await blog.get(Post, post_id)).comments == 0
    assert await blog.count(Reply, Reply.comment_id == c1) == 0
    assert await blog.get(Reply, r1) is None
    assert await blog.count(Like, Like.post_id == post_id) == 0


async def test_counters_stay_consistent_through_mixed_operations(blog, people, post_id):
    c1 = await blog.comment(post_id, people["alice"])
    await blog.assert_counters(post_id)
    c2 = await blog.comment(post_id, people["bob"])
    await blog.assert_counters(post_id)

    r1 = await blog.reply(post_id, c1, people["bob"])
    await blog.assert_counters(post_id)
    r2 = await blog.reply(post_id, c1, people["alice"])
    await blog.assert_counters(post_id)
    await blog.reply(post_id, c2, people["alice"])
    await blog.assert_counters(post_id)

    await blog.delete_reply(post_id, c1, r1, people["bob"])
    await blog.assert_counters(post_id)
    await blog.delete_comment(post_id, c2, people["mod"])
    await blog.assert_counters(post_id)
    await blog.delete_reply(post_id, c1, r2, people["admin"])
    await blog.assert_counters(post_id)

    assert (await blog.get(Post, post_id)).comments == 1
    assert (await blog.get(Comment, c1)).replies == 0


async def test_delete_comment_cascades_replies_and_likes(blog, people, post_id):
    keep = await blog.comment(post_id, people["bob"])
    await blog.like(people["alice"], LikeTarget(post_id, comment_id=keep))

    doomed = await blog.comment(post_id, people["alice"])
    reply_ids = [await blog.reply(post_id, doomed, people["bob"]) for _ in range(3)]
    await blog.like(people["bob"], LikeTarget(post_id, comment_id=doomed))
    for reply_id in reply_ids:
        await blog.like(
            people["alice"], LikeTarget(post_id, comment_id=doomed, reply_id=reply_id)
        )
    await blog.like(people["alice"], LikeTarget(post_id))

    before = (await blog.get(Post, post_id)).comments
    assert before == 5

    await blog.delete_comment(post_id, doomed, people["alice"])

    post = await blog.get(Post, post_id)
    assert post.comments == before - (len(reply_ids) + 1)
    assert post.likes == 1
    assert await blog.count(Reply, Reply.comment_id == doomed) == 0
    # only the post like and the like on the surviving comment remain
    assert await blog.count(Like, Like.post_id == post_id) == 2
    assert (await blog.get(Comment, keep)).likes == 1
    await blog.assert_counters(post_id)


async def test_delete_comment_permissions(blog, people, post_id):
    comment_id = await blog.comment(post_id, people["alice"])

    with pytest.raises(ForbiddenError):
        await blog.delete_comment(post_id, comment_id, people["bob"])
    assert (await blog.get(Post, post_id)).comments == 1

    assert await blog.delete_comment(post_id, comment_id, people["mod"]) is True


async def test_repeat_delete_is_noop(blog, people, post_id):
    comment_id = await blog.comment(post_id, people["alice"])
    reply_id = await blog.reply(post_id, comment_id, people["bob"])

    assert await blog.delete_reply(post_id, comment_id, reply_id, people["bob"]) is True
    assert await blog.delete_reply(post_id, comment_id, reply_id, people["bob"]) is False

    assert await blog.delete_comment(post_id, comment_id, people["alice"]) is True
    assert await blog.delete_comment(post_id, comment_id, people["alice"]) is False

    await blog.assert_counters(post_id)
    assert (await blog.get(Post, post_id)).comments == 0


async def test_delete_reply_permissions(blog, people, post_id):
    comment_id = await blog.comment(post_id, people["alice"])
    reply_id = await blog.reply(post_id, comment_id, people["bob"])

    # the comment author does not own replies under it
    with pytest.raises(ForbiddenError):
        await blog.delete_reply(post_id, comment_id, reply_id, people["alice"])

    await blog.assert_counters(post_id)
    assert await blog.delete_reply(post_id, comment_id, reply_id, people["admin"]) is True


async def test_create_on_missing_parent_changes_nothing(blog, people, post_id):
    comment_id = await blog.comment(post_id, people["alice"])

    with pytest.raises(NotFoundError, match="Post not found"):
        await blog.comment(999, people["alice"])

    with pytest.raises(NotFoundError, match="Comment not found"):
        await blog.reply(post_id, 999, people["bob"])

    # a comment of another post is not a valid parent
    other_post = await blog.create_post(people["admin"], "Another Post")
    with pytest.raises(NotFoundError):
        await blog.reply(other_post, comment_id, people["bob"])

    assert (await blog.get(Post, post_id)).comments == 1
    assert (await blog.get(Post, other_post)).comments == 0
    await blog.assert_counters(post_id)


async def test_failed_insert_rolls_back_counter(blog, people, post_id):
    comment_id = await blog.comment(post_id, people["alice"])
    ghost = await blog.create_user("ghost")

    # body is NOT NULL, so the flush fails after the counters were bumped
    async with blog.session_factory() as db:
        user = await db.get(User, ghost)
        with pytest.raises(IntegrityError):
            await CommentService(db).create_comment(post_id, user, None)

    async with blog.session_factory() as db:
        user = await db.get(User, ghost)
        with pytest.raises(IntegrityError):
            await ReplyService(db).create_reply(post_id, comment_id, user, None)

    assert (await blog.get(Post, post_id)).comments == 1
    assert (await blog.get(Comment, comment_id)).replies == 0
    await blog.assert_counters(post_id)


async def test_update_comment_only_by_author(blog, people, post_id):
    comment_id = await blog.comment(post_id, people["alice"], "First draft")

    async with blog.session_factory() as db:
        bob = await db.get(User, people["bob"])
        with pytest.raises(ForbiddenError):
            await CommentService(db).update_comment(post_id, comment_id, bob, "Hijacked")

    async with blog.session_factory() as db:
        alice = await db.get(User, people["alice"])
        comment = await CommentService(db).update_comment(
            post_id, comment_id, alice, "Second draft"
        )
        assert comment.body == "Second draft"

    async with blog.session_factory() as db:
        alice = await db.get(User, people["alice"])
        with pytest.raises(NotFoundError):
            await CommentService(db).update_comment(post_id, 999, alice, "Nope")


async def test_update_reply_only_by_author(blog, people, post_id):
    comment_id = await blog.comment(post_id, people["alice"])
    reply_id = await blog.reply(post_id, comment_id, people["bob"], "Hello")

    async with blog.session_factory() as db:
        admin = await db.get(User, people["admin"])
        with pytest.raises(ForbiddenError):
            await ReplyService(db).update_reply(
                post_id, comment_id, reply_id, admin, "Edited"
            )

    async with blog.session_factory() as db:
        bob = await db.get(User, people["bob"])
        reply = await ReplyService(db).update_reply(
            post_id, comment_id, reply_id, bob, "Hello again"
        )
        assert reply.body == "Hello again"

    async with blog.session_factory() as db:
        bob = await db.get(User, people["bob"])
        with pytest.raises(NotFoundError, match="Comment reply not found"):
            await ReplyService(db).update_reply(post_id, comment_id, 999, bob, "x")


async def test_reply_keeps_reply_to_username(blog, people, post_id):
    comment_id = await blog.comment(post_id, people["alice"])

    async with blog.session_factory() as db:
        bob = await db.get(User, people["bob"])
        reply = await ReplyService(db).create_reply(
            post_id, comment_id, bob, "@alice agreed", reply_to_username="alice"
        )
        assert reply.reply_to_username == "alice"
        assert reply.author.username == "bob"
