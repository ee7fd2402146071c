"""
Wizard Draft Storage

A draft is the applicant's in-progress application: current step, the
field values entered so far and the attached files. Drafts live in Redis
with a TTL (in-memory with the same TTL when Redis is unavailable) and are
never written to the relational store; an expired draft is simply gone.

Submitting a draft first claims it here, so only one request at a time can
turn a given draft into an application.
"""

import logging
import time
from pathlib import PurePath
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from redis.asyncio import Redis

from bursary.core import redis as redis_module
from bursary.core.config import settings
from bursary.modules.applications.models import DocumentType

logger = logging.getLogger(__name__)

DRAFT_KEY_PREFIX = "application_draft:"
DRAFT_NOT_FOUND_MESSAGE = "Application draft not found. It may have expired."
SUBMIT_LOCK_PREFIX = "application_draft_lock:"

# Upper bound on one submission (uploads plus insert)
SUBMIT_LOCK_SECONDS = 120

# In-memory draft storage (fallback when Redis unavailable)
# Format: {draft_id: (expires_at, draft_json)}
_memory_drafts: dict[str, tuple[float, str]] = {}

# In-memory submission claims (fallback when Redis unavailable)
# Format: {draft_id: expires_at}
_memory_claims: dict[str, float] = {}


def _memory_get(key: str) -> str | None:
    entry = _memory_drafts.get(key)
    if entry is None:
        return None
    expires_at, raw = entry
    if expires_at <= time.time():
        del _memory_drafts[key]
        return None
    return raw


def _memory_set(key: str, raw: str, ttl_seconds: int) -> None:
    now = time.time()
    for stale in [k for k, (expires_at, _) in _memory_drafts.items() if expires_at <= now]:
        del _memory_drafts[stale]
    _memory_drafts[key] = (now + ttl_seconds, raw)


class DocumentAttachment(BaseModel):
    """A file attached to the documents step."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    filename: str
    content_type: str = "application/octet-stream"
    content: bytes

    @property
    def extension(self) -> str:
        """Lower-case extension without the dot ("" when missing)."""
        return PurePath(self.filename).suffix.lower().lstrip(".")

    @property
    def size(self) -> int:
        return len(self.content)


class Draft(BaseModel):
    """In-progress wizard state."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    id: UUID = Field(default_factory=uuid4)
    owner_id: UUID | None = None
    current_step: int = Field(1, ge=1, le=5)
    fields: dict[str, Any] = Field(default_factory=dict)
    documents: dict[DocumentType, DocumentAttachment] = Field(default_factory=dict)
    awaiting_auth: bool = False
    submitted_application_id: UUID | None = None

    @property
    def is_submitted(self) -> bool:
        return self.submitted_application_id is not None

    def is_accessible_by(self, principal_id: UUID | None) -> bool:
        """Unowned drafts are open to whoever holds the id; owned ones only to the owner."""
        return self.owner_id is None or self.owner_id == principal_id


class DraftStore:
    """
    Keeps drafts between requests.

    Args:
        client: Redis client, or None to keep drafts in process memory
        ttl_seconds: Lifetime of a draft since its last save
    """

    def __init__(self, client: Redis | None, ttl_seconds: int):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(draft_id: UUID) -> str:
        return f"{DRAFT_KEY_PREFIX}{draft_id}"

    async def create(self, owner_id: UUID | None = None) -> Draft:
        """Start an empty draft at step 1."""
        draft = Draft(owner_id=owner_id)
        await self.save(draft)
        logger.info(f"Created application draft {draft.id}")
        return draft

    async def get(self, draft_id: UUID) -> Draft | None:
        """Load a draft; None when it never existed or has expired."""
        raw: str | None = None
        if self.client is not None:
            try:
                raw = await self.client.get(self._key(draft_id))
            except Exception as e:
                logger.warning(f"Redis draft read failed, using memory: {e}")
                raw = _memory_get(str(draft_id))
        else:
            raw = _memory_get(str(draft_id))

        if raw is None:
            return None
        return Draft.model_validate_json(raw)

    async def load_for(self, draft_id: UUID, principal_id: UUID | None = None) -> Draft | None:
        """
        Load a draft on behalf of a caller.

        Returns None when the draft is missing or owned by somebody else. A
        signed-in caller opening an unowned draft becomes its owner.
        """
        draft = await self.get(draft_id)
        if draft is None:
            return None
        if not draft.is_accessible_by(principal_id):
            logger.warning(f"Draft {draft_id} requested by a principal that does not own it")
            return None
        if principal_id is not None and draft.owner_id is None:
            draft.owner_id = principal_id
            await self.save(draft)
        return draft

    async def save(self, draft: Draft) -> None:
        """Persist the draft and refresh its TTL."""
        raw = draft.model_dump_json()
        if self.client is not None:
            try:
                await self.client.set(self._key(draft.id), raw, ex=self.ttl_seconds)
                return
            except Exception as e:
                logger.warning(f"Redis draft write failed, using memory: {e}")
        _memory_set(str(draft.id), raw, self.ttl_seconds)

    async def delete(self, draft_id: UUID) -> None:
        if self.client is not None:
            try:
                await self.client.delete(self._key(draft_id))
            except Exception as e:
                logger.warning(f"Redis draft delete failed: {e}")
        _memory_drafts.pop(str(draft_id), None)

    # ============================================
    # Submission claims
    # ============================================

    async def claim_submission(self, draft_id: UUID) -> bool:
        """
        Atomically claim ``draft_id`` for submission.

        Returns:
            True if this caller holds the claim, False if another one does
        """
        key = f"{SUBMIT_LOCK_PREFIX}{draft_id}"
        if self.client is not None:
            try:
                return bool(await self.client.set(key, "1", nx=True, ex=SUBMIT_LOCK_SECONDS))
            except Exception as e:
                logger.warning(f"Redis submission claim failed, using memory: {e}")

        now = time.time()
        expires_at = _memory_claims.get(str(draft_id))
        if expires_at is not None and expires_at > now:
            return False
        _memory_claims[str(draft_id)] = now + SUBMIT_LOCK_SECONDS
        return True

    async def release_submission(self, draft_id: UUID) -> None:
        if self.client is not None:
            try:
                await self.client.delete(f"{SUBMIT_LOCK_PREFIX}{draft_id}")
            except Exception as e:
                logger.warning(f"Redis submission release failed: {e}")
        _memory_claims.pop(str(draft_id), None)


def get_draft_store() -> DraftStore:
    """FastAPI dependency returning a store bound to the current Redis client."""
    return DraftStore(redis_module.redis_client, settings.draft_ttl_hours * 3600)
