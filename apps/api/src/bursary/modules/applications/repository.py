"""
Bursary Applications Repository

Database operations for applications. Only database access lives here;
visibility rules and review workflow are enforced by the callers.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Application, ApplicationStatus, ApplicationType
from .schemas import ApplicationCreate

# The only columns an admin review may change (updated_at is maintained by the store)
REVIEW_FIELDS = ("status", "admin_comments", "reviewed_by", "reviewed_at")


async def create(db: AsyncSession, data: ApplicationCreate) -> Application:
    """Insert a new application."""
    new_application = Application(**data.model_dump())

    db.add(new_application)
    await db.commit()
    await db.refresh(new_application)

    return new_application


async def get_by_id(db: AsyncSession, id: UUID) -> Application | None:
    """Get application by ID."""
    return await db.get(Application, id)


async def list_by_owner(db: AsyncSession, user_id: UUID) -> list[Application]:
    """All applications owned by ``user_id``, newest first."""
    result = await db.execute(
        select(Application)
        .where(Application.user_id == user_id)
        .order_by(Application.created_at.desc())
    )
    return list(result.scalars().all())


async def list_all(
    db: AsyncSession,
    application_type: ApplicationType | None = None,
    status: ApplicationStatus | None = None,
    school_name: str | None = None,
) -> list[Application]:
    """
    All applications, newest first.

    Filters:
        application_type: exact match
        status: exact match
        school_name: case-insensitive substring match
    """
    query = select(Application)

    if application_type is not None:
        query = query.where(Application.application_type == application_type)
    if status is not None:
        query = query.where(Application.status == status)
    if school_name:
        query = query.where(Application.school_name.ilike(f"%{school_name}%"))

    result = await db.execute(query.order_by(Application.created_at.desc()))
    return list(result.scalars().all())


async def update_review(
    db: AsyncSession,
    id: UUID,
    status: ApplicationStatus,
    admin_comments: str | None,
    reviewed_by: UUID,
    reviewed_at: datetime,
) -> Application | None:
    """
    Record an admin decision in a single UPDATE.

    Returns:
        The refreshed application, or None if the id does not exist
    """
    values = dict(
        zip(
            REVIEW_FIELDS,
            (status, admin_comments, reviewed_by, reviewed_at),
            strict=True,
        )
    )
    result = await db.execute(
        update(Application)
        .where(Application.id == id)
        .values(**values)
        .returning(Application.id)
    )
    if result.scalar_one_or_none() is None:
        await db.rollback()
        return None

    await db.commit()
    application = await db.get(Application, id, populate_existing=True)
    return application
