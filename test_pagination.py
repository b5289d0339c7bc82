"""
Tests for cursor pagination over posts, comments, replies and users
"""

import pytest

from devblog.core.exceptions import InvalidCursorError, NotFoundError, ValidationFailedError
from devblog.models import Role, Sort
from devblog.services.comments import CommentService, ReplyService
from devblog.services.posts import PostService
from devblog.services.reactions import LikeTarget
from devblog.services.users import UserService


async def all_pages(fetch, limit):
    """Follow next cursors until the last page; returns the pages' id lists."""
    pages, cursor = [], None
    while True:
        page = await fetch(cursor, limit)
        pages.append([item.id for item in page.items])
        if page.next_cursor is None:
            return pages
        cursor = page.next_cursor


@pytest.fixture
async def author(blog):
    return await blog.create_user("admin", Role.ADMIN)


async def test_three_posts_limit_two(blog, author):
    ids = [await blog.create_post(author, f"Post number {n}") for n in range(1, 4)]

    async with blog.session_factory() as db:
        first = await PostService(db).list_posts(limit=2)
    assert [p.id for p in first.items] == [ids[2], ids[1]]
    assert first.next_cursor == str(ids[0])

    async with blog.session_factory() as db:
        second = await PostService(db).list_posts(cursor=first.next_cursor, limit=2)
    assert [p.id for p in second.items] == [ids[0]]
    assert second.next_cursor is None


async def test_latest_pages_cover_every_live_comment_once(blog, author):
    post_id = await blog.create_post(author, "Busy Thread")
    comment_ids = [await blog.comment(post_id, author, f"c{n}") for n in range(7)]
    for removed in (comment_ids[1], comment_ids[4]):
        await blog.delete_comment(post_id, removed, author)
    live = [cid for cid in comment_ids if cid not in (comment_ids[1], comment_ids[4])]

    async def fetch(cursor, limit):
        async with blog.session_factory() as db:
            return await CommentService(db).list_comments(
                post_id, Sort.LATEST, cursor, limit
            )

    pages = await all_pages(fetch, limit=2)
    seen = [cid for page in pages for cid in page]

    assert seen == sorted(live, reverse=True)
    assert all(len(page) == 2 for page in pages[:-1])


async def test_oldest_replies_in_creation_order(blog, author):
    post_id = await blog.create_post(author, "Reply Order")
    comment_id = await blog.comment(post_id, author)
    reply_ids = [await blog.reply(post_id, comment_id, author, f"r{n}") for n in range(5)]

    async def fetch(cursor, limit):
        async with blog.session_factory() as db:
            return await ReplyService(db).list_replies(post_id, comment_id, cursor=cursor, limit=limit)

    pages = await all_pages(fetch, limit=2)
    assert pages == [reply_ids[0:2], reply_ids[2:4], reply_ids[4:5]]


@pytest.fixture
async def ranked(blog, author):
    """
    Comments A..E on one post liked 3, 2, 1, 1, 0 times.
    TOP order is A, B, D, C, E (ties broken by newest id first).
    """
    readers = [await blog.create_user(f"reader{n}") for n in range(3)]
    post_id = await blog.create_post(author, "Ranked Comments")
    names = "ABCDE"
    ids = {name: await blog.comment(post_id, author, name) for name in names}
    for name, count in zip(names, (3, 2, 1, 1, 0)):
        for reader in readers[:count]:
            await blog.like(reader, LikeTarget(post_id, comment_id=ids[name]))
    return post_id, ids, readers


async def fetch_top(blog, post_id, cursor=None, limit=2):
    async with blog.session_factory() as db:
        return await CommentService(db).list_comments(post_id, Sort.TOP, cursor, limit)


async def test_top_order_breaks_ties_by_newest(blog, ranked):
    post_id, ids, _ = ranked

    page = await fetch_top(blog, post_id, limit=10)

    assert [c.id for c in page.items] == [ids[n] for n in "ABDCE"]
    assert page.next_cursor is None


async def test_top_next_page_follows_live_likes(blog, ranked):
    post_id, ids, readers = ranked

    first = await fetch_top(blog, post_id)
    assert [c.id for c in first.items] == [ids["A"], ids["B"]]
    assert first.next_cursor == str(ids["D"])

    # a delivered item gains a like and an undelivered one loses its like
    await blog.like(readers[1], LikeTarget(post_id, comment_id=ids["B"]))
    await blog.like(readers[2], LikeTarget(post_id, comment_id=ids["B"]))
    await blog.unlike(readers[0], LikeTarget(post_id, comment_id=ids["C"]))

    second = await fetch_top(blog, post_id, first.next_cursor)
    third = await fetch_top(blog, post_id, second.next_cursor)

    assert [c.id for c in second.items] == [ids["D"], ids["E"]]
    assert [c.id for c in third.items] == [ids["C"]]
    assert third.next_cursor is None

    seen = [c.id for page in (first, second, third) for c in page.items]
    assert sorted(seen) == sorted(ids.values())


async def test_top_cursor_of_deleted_comment_is_rejected(blog, ranked, author):
    post_id, ids, _ = ranked
    first = await fetch_top(blog, post_id)

    await blog.delete_comment(post_id, ids["D"], author)

    with pytest.raises(InvalidCursorError):
        await fetch_top(blog, post_id, first.next_cursor)


async def test_top_cursor_from_another_post_is_rejected(blog, ranked, author):
    post_id, ids, _ = ranked
    other_post = await blog.create_post(author, "Quiet Post")

    with pytest.raises(InvalidCursorError):
        await fetch_top(blog, other_post, str(ids["A"]))


async def test_list_comments_of_missing_post(blog):
    async with blog.session_factory() as db:
        with pytest.raises(NotFoundError):
            await CommentService(db).list_comments(999)


async def test_list_replies_of_missing_comment(blog, author):
    post_id = await blog.create_post(author, "No Replies Here")

    async with blog.session_factory() as db:
        with pytest.raises(NotFoundError):
            await ReplyService(db).list_replies(post_id, 999)


async def test_list_users_by_role(blog, author):
    mods = [await blog.create_user(f"mod{n}", Role.MODERATOR) for n in range(3)]
    await blog.create_user("reader")

    async def fetch(cursor, limit):
        async with blog.session_factory() as db:
            return await UserService(db).list_users(Role.MODERATOR, Sort.OLDEST, cursor, limit)

    assert await all_pages(fetch, limit=2) == [mods[0:2], mods[2:3]]

    async with blog.session_factory() as db:
        with pytest.raises(ValidationFailedError):
            await UserService(db).list_users(Role.MODERATOR, Sort.TOP)
