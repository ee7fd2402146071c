"""Contact submission repository."""

from sqlalchemy.ext.asyncio import AsyncSession

from .models import ContactSubmission
from .schemas import ContactCreate


async def create(db: AsyncSession, data: ContactCreate) -> ContactSubmission:
    """Insert a contact form submission."""
    submission = ContactSubmission(**data.model_dump())

    db.add(submission)
    await db.commit()
    await db.refresh(submission)

    return submission
