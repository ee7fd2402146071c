"""
Remote Data Gateway

Typed wrapper around every remote call the portal makes: the relational
store, document storage and the admin allow-list. Each operation returns
``Ok(value)`` or ``Err(kind, detail)``; no exception escapes, and every
call is bounded by ``REMOTE_CALL_TIMEOUT_SECONDS``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bursary.core.config import settings
from bursary.core.database import get_db
from bursary.core.result import Err, ErrorKind, Ok, Result
from bursary.core.storage import LocalStorage, get_storage
from bursary.modules.applications import repository
from bursary.modules.applications.models import Application, ApplicationStatus
from bursary.modules.applications.schemas import ApplicationCreate, ApplicationFilters
from bursary.modules.contact import repository as contact_repository
from bursary.modules.contact.models import ContactSubmission
from bursary.modules.contact.schemas import ContactCreate
from bursary.modules.users.repository import AdminAllowListRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _store_message(error: SQLAlchemyError) -> str:
    """The driver's own message when there is one."""
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


class DataGateway:
    """
    Awaitable remote operations with explicit results.

    Args:
        db: Database session for this request
        storage: Document storage backend
        timeout: Per-call timeout in seconds (defaults to settings)
    """

    def __init__(self, db: AsyncSession, storage: LocalStorage, timeout: float | None = None):
        self.db = db
        self.storage = storage
        self.timeout = timeout if timeout is not None else settings.remote_call_timeout_seconds

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback failed: {e}")

    async def _call(
        self,
        operation: str,
        func: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> Result[T]:
        try:
            async with asyncio.timeout(self.timeout):
                value = await func(*args)
        # TimeoutError is an OSError subclass, so it has to be handled first
        except TimeoutError:
            logger.error(f"{operation} timed out after {self.timeout}s")
            await self._rollback()
            return Err(ErrorKind.TIMEOUT, f"{operation} timed out. Please try again.")
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed: {e}")
            await self._rollback()
            return Err(ErrorKind.PERSISTENCE, _store_message(e))
        except OSError as e:
            logger.error(f"{operation} failed: {e}")
            return Err(ErrorKind.STORAGE, str(e))
        return Ok(value)

    # ============================================
    # Applications
    # ============================================

    async def insert_application(self, payload: ApplicationCreate) -> Result[Application]:
        return await self._call("Insert application", repository.create, self.db, payload)

    async def select_own(self, owner_id: UUID) -> Result[list[Application]]:
        return await self._call("Select own applications", repository.list_by_owner, self.db, owner_id)

    async def select_all(self, filters: ApplicationFilters | None = None) -> Result[list[Application]]:
        filters = filters or ApplicationFilters()
        return await self._call(
            "Select all applications",
            repository.list_all,
            self.db,
            filters.application_type,
            filters.status,
            filters.school_name,
        )

    async def get_application(self, application_id: UUID) -> Result[Application]:
        result = await self._call("Get application", repository.get_by_id, self.db, application_id)
        if isinstance(result, Ok) and result.value is None:
            return Err(ErrorKind.NOT_FOUND, f"Application {application_id} not found")
        return result

    async def update_review(
        self,
        application_id: UUID,
        status: ApplicationStatus,
        admin_comments: str | None,
        reviewed_by: UUID,
        reviewed_at: datetime,
    ) -> Result[Application]:
        result = await self._call(
            "Update application review",
            repository.update_review,
            self.db,
            application_id,
            status,
            admin_comments,
            reviewed_by,
            reviewed_at,
        )
        if isinstance(result, Ok) and result.value is None:
            return Err(ErrorKind.NOT_FOUND, f"Application {application_id} not found")
        return result

    # ============================================
    # Documents
    # ============================================

    async def upload_document(self, key: str, content: bytes) -> Result[str]:
        """Store ``content`` under ``key`` and return its public URL."""
        result = await self._call("Upload document", self.storage.upload, key, content)
        if isinstance(result, Ok):
            return Ok(self.storage.public_url(result.value))
        return result

    # ============================================
    # Allow-list and contact
    # ============================================

    async def is_admin(self, user_id: UUID) -> Result[bool]:
        return await self._call(
            "Admin allow-list lookup",
            AdminAllowListRepository.has_admin_row,
            self.db,
            user_id,
        )

    async def insert_contact(self, data: ContactCreate) -> Result[ContactSubmission]:
        return await self._call("Insert contact submission", contact_repository.create, self.db, data)


def get_gateway(
    db: AsyncSession = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
) -> DataGateway:
    """FastAPI dependency building a gateway for the request."""
    return DataGateway(db, storage)
