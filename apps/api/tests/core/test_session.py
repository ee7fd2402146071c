"""
Tests for the session / identity provider.
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from bursary.core.session import Principal, Session


@pytest.fixture
def principal():
    return Principal(id=uuid4(), email="applicant@example.com", full_name="Achieng Otieno")


class TestSignIn:
    @pytest.mark.asyncio
    async def test_sign_in_resolves_admin_and_notifies(self, principal):
        lookup = AsyncMock(return_value=True)
        session = Session(admin_lookup=lookup)
        listener = AsyncMock()
        session.subscribe(listener)

        await session.sign_in(principal)

        assert session.principal == principal
        assert session.is_admin is True
        lookup.assert_awaited_once_with(principal.id)
        listener.assert_awaited_once_with(session)

    @pytest.mark.asyncio
    async def test_lookup_failure_means_not_admin(self, principal):
        session = Session(admin_lookup=AsyncMock(side_effect=RuntimeError("db down")))

        await session.sign_in(principal)

        assert session.is_authenticated
        assert session.is_admin is False

    @pytest.mark.asyncio
    async def test_no_lookup_means_not_admin(self, principal):
        session = Session()

        await session.sign_in(principal)

        assert session.is_admin is False

    @pytest.mark.asyncio
    async def test_restore_does_not_notify(self, principal):
        session = Session(admin_lookup=AsyncMock(return_value=True))
        listener = AsyncMock()
        session.subscribe(listener)

        await session.restore(principal)

        assert session.is_admin is True
        listener.assert_not_awaited()


class TestSignOut:
    @pytest.mark.asyncio
    async def test_sign_out_clears_and_notifies(self, principal):
        session = Session(admin_lookup=AsyncMock(return_value=True))
        await session.sign_in(principal)
        listener = AsyncMock()
        session.subscribe(listener)

        await session.sign_out()

        assert session.principal is None
        assert session.is_admin is False
        listener.assert_awaited_once_with(session)


class TestSubscriptions:
    @pytest.mark.asyncio
    async def test_unsubscribe_stops_notifications(self, principal):
        session = Session()
        listener = AsyncMock()
        unsubscribe = session.subscribe(listener)

        unsubscribe()
        unsubscribe()
        await session.sign_in(principal)

        listener.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stop_others(self, principal):
        session = Session()
        broken = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        session.subscribe(broken)
        session.subscribe(healthy)

        await session.sign_in(principal)

        healthy.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_listener_may_unsubscribe_itself(self, principal):
        session = Session()
        calls = []

        async def once(s):
            calls.append(s.principal)
            unsubscribe()

        unsubscribe = session.subscribe(once)

        await session.sign_in(principal)
        await session.sign_in(principal)

        assert calls == [principal]
