"""
Tests for applicant notification emails.
"""

from unittest.mock import patch

import pytest

from bursary.core import email


@pytest.fixture
def no_api_key():
    with patch.object(email.resend, "api_key", None):
        yield


@pytest.mark.asyncio
async def test_without_api_key_logs_instead_of_sending(no_api_key):
    with patch.object(email.resend.Emails, "send") as mock_send:
        assert await email.send_email("a@example.com", "Hello", "<p>Hi</p>") is True

    mock_send.assert_not_called()


@pytest.mark.asyncio
async def test_receipt_contains_reference_and_escapes_name():
    with patch("bursary.core.email.send_email", return_value=True) as mock_send:
        await email.send_application_received(
            to_email="a@example.com",
            applicant_name="<b>Amina</b>",
            application_type="health",
            reference_id="5f0c2a4e-1111-2222-3333-444455556666",
        )

    html = mock_send.call_args.kwargs["html_content"]
    assert "5f0c2a4e-1111-2222-3333-444455556666" in html
    assert "&lt;b&gt;Amina&lt;/b&gt;" in html
    assert "5f0c2a4e" in mock_send.call_args.kwargs["subject"]


@pytest.mark.asyncio
async def test_status_update_includes_comments():
    with patch("bursary.core.email.send_email", return_value=True) as mock_send:
        await email.send_status_update(
            to_email="a@example.com",
            applicant_name="Amina",
            reference_id="ref-1",
            status="under_review",
            admin_comments="Fees structure is unreadable",
        )

    kwargs = mock_send.call_args.kwargs
    assert kwargs["subject"] == "Application ref-1: Under Review"
    assert "Fees structure is unreadable" in kwargs["html_content"]


@pytest.mark.asyncio
async def test_provider_failure_returns_false():
    with (
        patch.object(email.resend, "api_key", "re_test"),
        patch.object(email.resend.Emails, "send", side_effect=RuntimeError("quota")),
    ):
        assert await email.send_email("a@example.com", "Hello", "<p>Hi</p>") is False
