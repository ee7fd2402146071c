"""
User Repository

Database operations for accounts and the admin allow-list.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bursary.modules.users.models import AdminUser, User

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        full_name: str,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            email: User's email address (unique)
            password_hash: Hashed password
            full_name: Display name

        Returns:
            Created User instance
        """
        user = User(email=email, password_hash=password_hash, full_name=full_name)

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.email}")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        """Get a user by ID."""
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by email address (case-insensitive)."""
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        """Check if an email address is already registered."""
        user = await UserRepository.get_by_email(db, email)
        return user is not None


class AdminAllowListRepository:
    """Lookups against the ``admin_users`` allow-list."""

    @staticmethod
    async def has_admin_row(db: AsyncSession, user_id: UUID) -> bool:
        """True if the user has an allow-list row."""
        result = await db.execute(select(AdminUser.id).where(AdminUser.user_id == user_id))
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def grant(db: AsyncSession, user_id: UUID, role: str = "admin") -> AdminUser:
        """Add a user to the allow-list."""
        entry = AdminUser(user_id=user_id, role=role)
        db.add(entry)
        await db.flush()
        logger.info(f"Granted admin role '{role}' to user {user_id}")
        return entry
