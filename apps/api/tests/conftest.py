"""
Shared test fixtures.
"""

import pytest

from bursary.core import rate_limit
from bursary.modules.applications import drafts


@pytest.fixture(autouse=True)
def reset_memory_stores():
    """Clear the in-memory fallbacks so tests do not leak state."""
    rate_limit._memory_store.clear()
    drafts._memory_drafts.clear()
    drafts._memory_claims.clear()
    yield
    rate_limit._memory_store.clear()
    drafts._memory_drafts.clear()
    drafts._memory_claims.clear()
