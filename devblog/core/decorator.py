import logging
from functools import wraps

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from devblog.core.exceptions import ConflictError, DomainException

logger = logging.getLogger(__name__)


def db_exception(func):
    """Translate storage errors escaping an async service method."""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except IntegrityError as e:
            # mostly a unique index (slug, title, username, email)
            logger.warning(f"Integrity error in {func.__qualname__}: {e.orig}")
            raise ConflictError("Duplicate entry: already exists")
        except SQLAlchemyError as e:
            logger.error(f"Database error in {func.__qualname__}: {e}")
            raise DomainException("Database error occurred", 500)

    return wrapper
