import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import Column, DateTime
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, declared_attr, sessionmaker

from devblog.core.config import settings

logger = logging.getLogger(__name__)

# -----------------------
# Database URL
# -----------------------
DATABASE_URL = settings.database_url

# Hide password in logs
safe_db_url = make_url(DATABASE_URL).render_as_string(hide_password=True)
logger.info(f"Using database: {safe_db_url}")


def build_engine(url: str = DATABASE_URL, **overrides):
    """Create the async engine; SQLite gets no pool sizing arguments."""
    options = {"echo": settings.db_echo, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
        )
    options.update(overrides)
    return create_async_engine(url, **options)


# -----------------------
# SQLAlchemy engine
# -----------------------
engine = build_engine()

# -----------------------
# Session and Base
# -----------------------
SessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)
Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    # Python-side defaults keep the values loaded on the instance after flush,
    # so async code never needs a lazy refresh to read them.
    @declared_attr
    def created_at(cls):
        return Column(DateTime(timezone=True), default=utcnow, nullable=False)

    @declared_attr
    def updated_at(cls):
        return Column(
            DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
        )


# -----------------------
# Transaction scope
# -----------------------
@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Run a unit of work as one transaction.

    Commits exactly once when the block exits normally. Any exception,
    cancellation included, rolls back every read lock and write made in the
    block and is re-raised to the caller.
    """
    try:
        yield db
        await db.commit()
    except BaseException:
        await db.rollback()
        raise


# -----------------------
# Dependency for FastAPI
# -----------------------
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as db:
        try:
            yield db
        except Exception as e:
            logger.error(f"Database error occurred: {str(e)}")
            await db.rollback()
            raise


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
