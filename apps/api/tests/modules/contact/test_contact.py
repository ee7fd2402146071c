"""
Tests for contact form storage.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from bursary.core.result import Err, ErrorKind, Ok
from bursary.core.storage import LocalStorage
from bursary.modules.applications.gateway import DataGateway
from bursary.modules.contact import repository
from bursary.modules.contact.models import ContactSubmission
from bursary.modules.contact.schemas import ContactCreate


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def contact_data():
    return ContactCreate(
        name="Faith Njeri",
        email="faith@example.com",
        subject="Deadline",
        message="When does the next intake close?",
    )


@pytest.mark.asyncio
async def test_create_stores_submission(mock_db, contact_data):
    submission = await repository.create(mock_db, contact_data)

    assert isinstance(submission, ContactSubmission)
    assert submission.subject == "Deadline"
    mock_db.add.assert_called_once_with(submission)
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_gateway_insert_contact(mock_db, contact_data):
    gateway = DataGateway(mock_db, MagicMock(spec=LocalStorage), timeout=1)

    result = await gateway.insert_contact(contact_data)

    assert isinstance(result, Ok)
    assert result.value.email == "faith@example.com"


@pytest.mark.asyncio
async def test_gateway_insert_contact_failure(mock_db, contact_data):
    mock_db.commit.side_effect = OperationalError("INSERT", {}, Exception("server closed"))
    gateway = DataGateway(mock_db, MagicMock(spec=LocalStorage), timeout=1)

    result = await gateway.insert_contact(contact_data)

    assert result == Err(ErrorKind.PERSISTENCE, "server closed")
    mock_db.rollback.assert_awaited_once()


def test_message_required():
    with pytest.raises(ValidationError):
        ContactCreate(name="Faith", email="faith@example.com", subject="Hi", message="")
