from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devblog.models.user import User


async def lock_one(db: AsyncSession, model, *criteria):
    """
    Load one row with ``SELECT ... FOR UPDATE`` and fresh attribute values.

    Counter mutations go through this so that concurrent transactions on the
    same row serialize in the database instead of losing increments.
    """
    return await db.scalar(
        select(model)
        .where(*criteria)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


async def find_one(db: AsyncSession, model, *criteria) -> Optional[object]:
    return await db.scalar(select(model).where(*criteria))


def can_moderate(user: User, author_id: int) -> bool:
    """Authors may remove their own content, moderators and admins anyone's."""
    return user.id == author_id or user.role.is_elevated
