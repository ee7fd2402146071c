"""
Document Storage

Stores uploaded application documents on the local filesystem and exposes
them under a public base URL (the API mounts the upload directory at
``/uploads``). Object keys follow ``{principal_id}/{document_type}-{token}.{ext}``.
"""

import asyncio
import logging
from pathlib import Path, PurePosixPath

from bursary.core.config import settings

logger = logging.getLogger(__name__)


class StorageError(OSError):
    """Raised when a document cannot be written."""


class LocalStorage:
    """Filesystem-backed object storage with public URLs."""

    def __init__(self, root: str | Path, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _resolve(self, key: str) -> Path:
        # Keys are relative POSIX paths; refuse anything that escapes the root
        relative = PurePosixPath(key)
        if relative.is_absolute() or ".." in relative.parts:
            raise StorageError(f"Invalid storage key: {key}")
        return self.root.joinpath(*relative.parts)

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def upload(self, key: str, content: bytes) -> str:
        """
        Write ``content`` under ``key``.

        Returns:
            The storage key that was written

        Raises:
            StorageError / OSError: If the file cannot be written
        """
        path = self._resolve(key)
        # Run blocking file I/O in the thread pool to keep the event loop free
        await asyncio.to_thread(self._write, path, content)
        logger.info(f"Stored document {key} ({len(content)} bytes)")
        return key

    def public_url(self, key: str) -> str:
        """Public URL for a stored key."""
        return f"{self.public_base_url}/{key}"

    def ensure_root(self) -> None:
        """Create the storage root directory if needed."""
        self.root.mkdir(parents=True, exist_ok=True)


storage = LocalStorage(settings.upload_dir, settings.public_upload_base_url)


def get_storage() -> LocalStorage:
    """FastAPI dependency returning the configured storage backend."""
    return storage
