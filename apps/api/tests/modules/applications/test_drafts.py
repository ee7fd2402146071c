"""
Tests for draft persistence.
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from bursary.modules.applications.drafts import (
    DRAFT_KEY_PREFIX,
    SUBMIT_LOCK_PREFIX,
    SUBMIT_LOCK_SECONDS,
    Draft,
    DraftStore,
    _memory_claims,
    _memory_drafts,
)
from bursary.modules.applications.models import DocumentType


class TestMemoryStore:
    @pytest.mark.asyncio
    async def test_round_trip_keeps_documents(self, draft_store, complete_draft):
        await draft_store.save(complete_draft)

        loaded = await draft_store.get(complete_draft.id)

        assert loaded == complete_draft
        assert loaded.documents[DocumentType.SCHOOL_FEES_STRUCTURE].content == b"\x89PNG fees"

    @pytest.mark.asyncio
    async def test_create_starts_at_step_one(self, draft_store):
        draft = await draft_store.create()

        assert draft.current_step == 1
        assert draft.fields == {}
        assert await draft_store.get(draft.id) == draft

    @pytest.mark.asyncio
    async def test_missing_draft(self, draft_store, empty_draft):
        assert await draft_store.get(empty_draft.id) is None

    @pytest.mark.asyncio
    async def test_delete(self, draft_store, empty_draft):
        await draft_store.save(empty_draft)
        await draft_store.delete(empty_draft.id)

        assert await draft_store.get(empty_draft.id) is None

    @pytest.mark.asyncio
    async def test_expired_draft_is_gone(self, empty_draft):
        store = DraftStore(None, ttl_seconds=1)

        with patch("bursary.modules.applications.drafts.time.time", return_value=1000.0):
            await store.save(empty_draft)
        with patch("bursary.modules.applications.drafts.time.time", return_value=1002.0):
            loaded = await store.get(empty_draft.id)

        assert loaded is None
        assert str(empty_draft.id) not in _memory_drafts

    @pytest.mark.asyncio
    async def test_save_refreshes_ttl(self, empty_draft):
        store = DraftStore(None, ttl_seconds=10)

        with patch("bursary.modules.applications.drafts.time.time", return_value=1000.0):
            await store.save(empty_draft)
        with patch("bursary.modules.applications.drafts.time.time", return_value=1008.0):
            await store.save(empty_draft)
        with patch("bursary.modules.applications.drafts.time.time", return_value=1015.0):
            loaded = await store.get(empty_draft.id)

        assert loaded == empty_draft

    @pytest.mark.asyncio
    async def test_save_purges_expired_drafts(self):
        store = DraftStore(None, ttl_seconds=1)
        old, new = Draft(), Draft()

        with patch("bursary.modules.applications.drafts.time.time", return_value=1000.0):
            await store.save(old)
        with patch("bursary.modules.applications.drafts.time.time", return_value=1005.0):
            await store.save(new)

        assert set(_memory_drafts) == {str(new.id)}


class TestOwnership:
    @pytest.mark.asyncio
    async def test_owner_can_load(self, draft_store):
        owner_id = uuid4()
        draft = await draft_store.create(owner_id=owner_id)

        assert await draft_store.load_for(draft.id, owner_id) == draft

    @pytest.mark.asyncio
    async def test_other_principal_gets_nothing(self, draft_store):
        draft = await draft_store.create(owner_id=uuid4())

        assert await draft_store.load_for(draft.id, uuid4()) is None
        assert await draft_store.load_for(draft.id, None) is None

    @pytest.mark.asyncio
    async def test_signed_in_caller_claims_unowned_draft(self, draft_store):
        draft = await draft_store.create()
        principal_id = uuid4()

        loaded = await draft_store.load_for(draft.id, principal_id)

        assert loaded.owner_id == principal_id
        assert (await draft_store.get(draft.id)).owner_id == principal_id
        assert await draft_store.load_for(draft.id, uuid4()) is None

    @pytest.mark.asyncio
    async def test_anonymous_caller_leaves_draft_unowned(self, draft_store):
        draft = await draft_store.create()

        loaded = await draft_store.load_for(draft.id)

        assert loaded.owner_id is None


class TestSubmissionClaim:
    @pytest.mark.asyncio
    async def test_second_claim_fails_until_released(self, draft_store, empty_draft):
        assert await draft_store.claim_submission(empty_draft.id) is True
        assert await draft_store.claim_submission(empty_draft.id) is False

        await draft_store.release_submission(empty_draft.id)

        assert await draft_store.claim_submission(empty_draft.id) is True

    @pytest.mark.asyncio
    async def test_stale_claim_can_be_retaken(self, draft_store, empty_draft):
        with patch("bursary.modules.applications.drafts.time.time", return_value=1000.0):
            await draft_store.claim_submission(empty_draft.id)
        with patch(
            "bursary.modules.applications.drafts.time.time",
            return_value=1000.0 + SUBMIT_LOCK_SECONDS + 1,
        ):
            assert await draft_store.claim_submission(empty_draft.id) is True

    @pytest.mark.asyncio
    async def test_redis_claim_uses_set_nx(self, empty_draft):
        client = AsyncMock()
        client.set.return_value = None
        store = DraftStore(client, ttl_seconds=60)

        assert await store.claim_submission(empty_draft.id) is False

        client.set.assert_awaited_once_with(
            f"{SUBMIT_LOCK_PREFIX}{empty_draft.id}", "1", nx=True, ex=SUBMIT_LOCK_SECONDS
        )
        assert _memory_claims == {}

    @pytest.mark.asyncio
    async def test_redis_release_deletes_key(self, empty_draft):
        client = AsyncMock()
        store = DraftStore(client, ttl_seconds=60)

        await store.release_submission(empty_draft.id)

        client.delete.assert_awaited_once_with(f"{SUBMIT_LOCK_PREFIX}{empty_draft.id}")

    @pytest.mark.asyncio
    async def test_redis_failure_claims_in_memory(self, empty_draft):
        client = AsyncMock()
        client.set.side_effect = RedisConnectionError("down")
        store = DraftStore(client, ttl_seconds=60)

        assert await store.claim_submission(empty_draft.id) is True
        assert await store.claim_submission(empty_draft.id) is False


class TestRedisStore:
    @pytest.mark.asyncio
    async def test_save_sets_ttl(self, empty_draft):
        client = AsyncMock()
        store = DraftStore(client, ttl_seconds=86400)

        await store.save(empty_draft)

        client.set.assert_awaited_once()
        key, raw = client.set.await_args.args
        assert key == f"{DRAFT_KEY_PREFIX}{empty_draft.id}"
        assert client.set.await_args.kwargs == {"ex": 86400}
        assert str(empty_draft.id) in raw
        assert _memory_drafts == {}

    @pytest.mark.asyncio
    async def test_get_reads_redis(self, complete_draft):
        client = AsyncMock()
        client.get.return_value = complete_draft.model_dump_json()
        store = DraftStore(client, ttl_seconds=60)

        loaded = await store.get(complete_draft.id)

        assert loaded.fields == complete_draft.fields
        client.get.assert_awaited_once_with(f"{DRAFT_KEY_PREFIX}{complete_draft.id}")

    @pytest.mark.asyncio
    async def test_redis_failure_falls_back_to_memory(self, complete_draft):
        client = AsyncMock()
        client.set.side_effect = RedisConnectionError("down")
        client.get.side_effect = RedisConnectionError("down")
        store = DraftStore(client, ttl_seconds=60)

        await store.save(complete_draft)
        loaded = await store.get(complete_draft.id)

        assert loaded == complete_draft
