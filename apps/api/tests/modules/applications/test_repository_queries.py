"""
Unit tests for the applications repository queries.

Statements are captured from a mocked session and compiled with the
PostgreSQL dialect.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from bursary.modules.applications import repository
from bursary.modules.applications.models import ApplicationStatus, ApplicationType


def _compiled(mock_db):
    statement = mock_db.execute.await_args.args[0]
    return statement.compile(dialect=postgresql.dialect())


@pytest.fixture
def empty_result(mock_db):
    result = MagicMock()
    result.scalars.return_value.all.return_value = []
    mock_db.execute.return_value = result
    return result


class TestListAll:
    @pytest.mark.asyncio
    async def test_school_name_is_case_insensitive_substring(self, mock_db, empty_result):
        await repository.list_all(mock_db, school_name="Cen")

        compiled = _compiled(mock_db)
        sql = str(compiled)
        assert "ILIKE" in sql
        assert "%Cen%" in compiled.params.values()
        assert "ORDER BY applications.created_at DESC" in sql

    @pytest.mark.asyncio
    async def test_no_filters(self, mock_db, empty_result):
        result = await repository.list_all(mock_db)

        assert result == []
        assert "WHERE" not in str(_compiled(mock_db))

    @pytest.mark.asyncio
    async def test_type_and_status_filters(self, mock_db, empty_result):
        await repository.list_all(
            mock_db,
            application_type=ApplicationType.HEALTH,
            status=ApplicationStatus.UNDER_REVIEW,
        )

        sql = str(_compiled(mock_db))
        assert "applications.application_type =" in sql
        assert "applications.status =" in sql
        assert "ILIKE" not in sql


@pytest.mark.asyncio
async def test_list_by_owner_orders_newest_first(mock_db, empty_result):
    await repository.list_by_owner(mock_db, uuid4())

    sql = str(_compiled(mock_db))
    assert "applications.user_id =" in sql
    assert "ORDER BY applications.created_at DESC" in sql


class TestUpdateReview:
    @pytest.mark.asyncio
    async def test_sets_only_review_fields(self, mock_db, make_application):
        row = MagicMock()
        row.scalar_one_or_none.return_value = uuid4()
        mock_db.execute.return_value = row
        application = make_application()
        mock_db.get.return_value = application

        result = await repository.update_review(
            mock_db,
            application.id,
            ApplicationStatus.APPROVED,
            "Meets the criteria",
            uuid4(),
            datetime(2024, 6, 1, tzinfo=UTC),
        )

        compiled = _compiled(mock_db)
        set_params = {name for name in compiled.params if not name.startswith("id_")}
        assert set_params == set(repository.REVIEW_FIELDS)
        assert result is application
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_id_returns_none(self, mock_db):
        row = MagicMock()
        row.scalar_one_or_none.return_value = None
        mock_db.execute.return_value = row

        result = await repository.update_review(
            mock_db, uuid4(), ApplicationStatus.REJECTED, None, uuid4(), datetime.now(UTC)
        )

        assert result is None
        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()
