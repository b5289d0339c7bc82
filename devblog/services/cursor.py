"""
Cursor codec for keyset pagination.

A cursor is the identity of the first item of the next page. Identities are
creation-ordered, so LATEST and OLDEST pages are plain id ranges. TOP orders
by the mutable ``likes`` counter with the id as tiebreaker; the cursor still
carries only the id and its current like count is looked up when the next
page is requested, so a page boundary always reflects live data.
"""

from dataclasses import dataclass, field
from typing import Generic, List, Optional, Sequence, TypeVar

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from devblog.core.exceptions import InvalidCursorError
from devblog.models.enums import Sort

T = TypeVar("T")

# largest value a BIGINT id column can hold
MAX_CURSOR_ID = 2**63 - 1


@dataclass
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    next_cursor: Optional[str] = None


def encode_cursor(item_id: int) -> str:
    return str(item_id)


def decode_cursor(raw: Optional[str]) -> Optional[int]:
    """Return the anchor id, or None for the first page."""
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidCursorError("Cursor is not valid")
    if value < 1 or value > MAX_CURSOR_ID:
        raise InvalidCursorError("Cursor is not valid")
    return value


def order_by(model, sort: Sort) -> list:
    if sort is Sort.LATEST:
        return [model.id.desc()]
    if sort is Sort.OLDEST:
        return [model.id.asc()]
    if sort is Sort.TOP:
        return [model.likes.desc(), model.id.desc()]
    raise ValueError(f"Unsupported sort: {sort}")


async def cursor_predicate(
    db: AsyncSession, model, sort: Sort, cursor_id: int, scope: Sequence = ()
):
    """
    Range predicate selecting the anchor item and everything after it.

    The anchor is inclusive: it was over-fetched as the extra item of the
    previous page and trimmed from it.
    """
    if sort is Sort.LATEST:
        return model.id <= cursor_id
    if sort is Sort.OLDEST:
        return model.id >= cursor_id
    if sort is Sort.TOP:
        cursor_likes = await db.scalar(
            select(model.likes).where(model.id == cursor_id, *scope)
        )
        if cursor_likes is None:
            raise InvalidCursorError("Cursor does not exist")
        return or_(
            model.likes < cursor_likes,
            and_(model.likes == cursor_likes, model.id <= cursor_id),
        )
    raise ValueError(f"Unsupported sort: {sort}")


def build_page(rows: Sequence[T], limit: int) -> Page[T]:
    """Trim the over-fetched row of a ``limit + 1`` query into the next cursor."""
    items = list(rows)
    next_cursor = None
    if len(items) == limit + 1:
        next_cursor = encode_cursor(items.pop().id)
    return Page(items=items, next_cursor=next_cursor)
