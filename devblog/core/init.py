"""
Application initialization module
Handles initial setup tasks like creating the default admin
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devblog.core.config import settings
from devblog.models.enums import Role
from devblog.models.user import User
from devblog.services.users import UserService

logger = logging.getLogger(__name__)


async def init_default_admin(db: AsyncSession) -> None:
    """
    Create the default admin user if no admin exists yet.

    Credentials come from settings. Nothing is created while
    ``ADMIN_DEFAULT_PASSWORD`` is empty.

    Args:
        db: Database session
    """
    existing_admin = await db.scalar(select(User).where(User.role == Role.ADMIN))

    if existing_admin:
        logger.info(
            f"✅ Admin user already exists (ID: {existing_admin.id}, Username: {existing_admin.username})"
        )
        return

    if not settings.admin_default_password:
        logger.warning(
            "⚠️  No admin user and ADMIN_DEFAULT_PASSWORD is not set, skipping admin creation"
        )
        return

    admin = await UserService(db).create_user(
        full_name=settings.admin_default_full_name,
        username=settings.admin_default_username,
        email=settings.admin_default_email,
        password=settings.admin_default_password,
        role=Role.ADMIN,
    )

    logger.info("=" * 60)
    logger.info("🎉 DEFAULT ADMIN CREATED SUCCESSFULLY!")
    logger.info("=" * 60)
    logger.info(f"Username: {admin.username}")
    logger.info(f"Email: {admin.email}")
    logger.info("=" * 60)
    logger.warning("⚠️  IMPORTANT: Change the default password immediately!")
    logger.info("=" * 60)


async def initialize_application(db: AsyncSession) -> None:
    """
    Run all application initialization tasks.

    Args:
        db: Database session
    """
    logger.info("🚀 Starting application initialization...")

    await init_default_admin(db)

    logger.info("✅ Application initialization completed!")
