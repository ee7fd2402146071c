"""
Unit tests for the remote data gateway.

Every failure mode must come back as an Err value, never an exception.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from bursary.core.result import Err, ErrorKind, Ok
from bursary.core.storage import LocalStorage, StorageError
from bursary.modules.applications.gateway import DataGateway
from bursary.modules.applications.models import ApplicationStatus


@pytest.fixture
def mock_storage():
    storage = MagicMock(spec=LocalStorage)
    storage.upload = AsyncMock(side_effect=lambda key, content: key)
    storage.public_url.side_effect = lambda key: f"http://localhost:8000/uploads/{key}"
    return storage


@pytest.fixture
def gateway(mock_db, mock_storage):
    return DataGateway(mock_db, mock_storage, timeout=1)


class TestApplications:
    @pytest.mark.asyncio
    async def test_insert_success(self, gateway, make_application):
        application = make_application()

        with patch(
            "bursary.modules.applications.repository.create",
            new_callable=AsyncMock,
            return_value=application,
        ):
            result = await gateway.insert_application(MagicMock())

        assert result == Ok(application)

    @pytest.mark.asyncio
    async def test_constraint_violation_becomes_persistence_error(self, gateway, mock_db):
        error = IntegrityError(
            "INSERT INTO applications ...",
            {},
            Exception('null value in column "village" violates not-null constraint'),
        )

        with patch(
            "bursary.modules.applications.repository.create",
            new_callable=AsyncMock,
            side_effect=error,
        ):
            result = await gateway.insert_application(MagicMock())

        assert isinstance(result, Err)
        assert result.kind == ErrorKind.PERSISTENCE
        assert result.detail == 'null value in column "village" violates not-null constraint'
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_timeout(self, mock_db, mock_storage):
        gateway = DataGateway(mock_db, mock_storage, timeout=0.01)

        async def slow_select(db, owner_id):
            await asyncio.sleep(1)

        with patch("bursary.modules.applications.repository.list_by_owner", new=slow_select):
            result = await gateway.select_own(uuid4())

        assert isinstance(result, Err)
        assert result.kind == ErrorKind.TIMEOUT
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_missing_application(self, gateway, mock_db):
        mock_db.get.return_value = None

        result = await gateway.get_application(uuid4())

        assert isinstance(result, Err)
        assert result.kind == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_review_missing_application(self, gateway):
        with patch(
            "bursary.modules.applications.repository.update_review",
            new_callable=AsyncMock,
            return_value=None,
        ):
            result = await gateway.update_review(
                uuid4(), ApplicationStatus.APPROVED, None, uuid4(), MagicMock()
            )

        assert result.kind == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_select_all_passes_filters(self, gateway):
        with patch(
            "bursary.modules.applications.repository.list_all",
            new_callable=AsyncMock,
            return_value=[],
        ) as mock_list:
            result = await gateway.select_all()

        assert result == Ok([])
        args = mock_list.await_args.args
        assert args[1:] == (None, None, None)


class TestDocuments:
    @pytest.mark.asyncio
    async def test_upload_returns_public_url(self, gateway, mock_storage):
        result = await gateway.upload_document("owner/id_document-1.pdf", b"%PDF")

        assert result == Ok("http://localhost:8000/uploads/owner/id_document-1.pdf")
        mock_storage.upload.assert_awaited_once_with("owner/id_document-1.pdf", b"%PDF")

    @pytest.mark.asyncio
    async def test_storage_failure(self, gateway, mock_storage, mock_db):
        mock_storage.upload.side_effect = StorageError("No space left on device")

        result = await gateway.upload_document("owner/id_document-1.pdf", b"%PDF")

        assert result == Err(ErrorKind.STORAGE, "No space left on device")
        mock_db.rollback.assert_not_awaited()


class TestAllowList:
    @pytest.mark.asyncio
    async def test_lookup_failure_is_err(self, gateway):
        with patch(
            "bursary.modules.users.repository.AdminAllowListRepository.has_admin_row",
            new_callable=AsyncMock,
            side_effect=OperationalError("SELECT", {}, Exception("connection lost")),
        ):
            result = await gateway.is_admin(uuid4())

        assert result == Err(ErrorKind.PERSISTENCE, "connection lost")
