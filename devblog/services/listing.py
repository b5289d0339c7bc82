import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devblog.core.config import settings
from devblog.models.enums import Sort
from devblog.services.cursor import (
    Page,
    build_page,
    cursor_predicate,
    decode_cursor,
    order_by,
)

logger = logging.getLogger(__name__)


def clamp_limit(limit: Optional[int], default: int) -> int:
    if not limit or limit < 1:
        return default
    return min(limit, settings.max_page_size)


class ListQuery:
    """
    Cursor-paginated listing over one model.

    ``scope`` restricts both the page and the TOP cursor lookup (for example
    comments of one post); ``filters`` restrict only the page.
    """

    def __init__(self, db: AsyncSession, model, scope: Sequence = (), options: Sequence = ()):
        self.db = db
        self.model = model
        self.scope = list(scope)
        self.options = list(options)

    async def fetch(
        self,
        sort: Sort,
        cursor: Optional[str],
        limit: int,
        filters: Sequence = (),
    ) -> Page:
        cursor_id = decode_cursor(cursor)

        conditions = [*self.scope, *filters]
        if cursor_id is not None:
            conditions.append(
                await cursor_predicate(
                    self.db, self.model, sort, cursor_id, self.scope
                )
            )

        query = (
            select(self.model)
            .where(*conditions)
            .order_by(*order_by(self.model, sort))
            .limit(limit + 1)
        )
        if self.options:
            query = query.options(*self.options)

        rows = (await self.db.scalars(query)).all()
        page = build_page(rows, limit)

        logger.debug(
            f"Listed {len(page.items)} {self.model.__tablename__} "
            f"(sort={sort.value}, cursor={cursor}, next={page.next_cursor})"
        )
        return page
