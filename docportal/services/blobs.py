"""Filesystem blob store holding uploaded document bytes."""

from __future__ import annotations

import logging
import re
import secrets
import uuid
from pathlib import Path
from typing import AsyncIterable, AsyncIterator

import aiofiles
import aiofiles.os

from ..utils.errors import StoreError

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB
INCOMING_DIR = "_incoming"


class BlobMissing(LookupError):
    """Raised when no blob exists under the requested key."""


class SizeLimitExceeded(Exception):
    """Raised mid-write when a blob grows past the caller's limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(limit)
        self.limit = limit


def _secure_filename(filename: str) -> str:
    """Return a filesystem-safe version of the provided filename."""

    if not filename:
        return f"document-{secrets.token_hex(8)}.pdf"
    name = Path(filename.replace("\\", "/")).name
    cleaned = re.sub(r"[^A-Za-z0-9._-]", "_", name).lstrip(".")
    return cleaned or f"document-{secrets.token_hex(8)}.pdf"


class BlobStream:
    """An open blob that yields its bytes chunk by chunk and then closes."""

    def __init__(self, handle, size: int, chunk_size: int = CHUNK_SIZE) -> None:
        self._handle = handle
        self.size = size
        self._chunk_size = chunk_size

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await self._handle.read(self._chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await self.aclose()

    async def read_all(self) -> bytes:
        parts = [chunk async for chunk in self]
        return b"".join(parts)

    async def aclose(self) -> None:
        if self._handle is not None:
            handle, self._handle = self._handle, None
            await handle.close()


class BlobStore:
    """Stores each blob as a single file named by its storage key."""

    def __init__(self, root: Path, chunk_size: int = CHUNK_SIZE) -> None:
        self.root = Path(root)
        self.chunk_size = chunk_size

    @staticmethod
    def new_key(original_name: str) -> str:
        """Return a fresh key of the form ``<token>-<original name>``."""

        return f"{uuid.uuid4().hex}-{_secure_filename(original_name)}"

    def path_for(self, storage_key: str) -> Path:
        path = (self.root / storage_key).resolve()
        if path.parent != self.root.resolve():
            raise StoreError(f"Invalid storage key: {storage_key!r}")
        return path

    def ensure_root(self) -> None:
        (self.root / INCOMING_DIR).mkdir(parents=True, exist_ok=True)

    def is_writable(self) -> bool:
        probe = self.root / INCOMING_DIR / f".probe-{secrets.token_hex(4)}"
        try:
            self.ensure_root()
            probe.write_bytes(b"")
            probe.unlink()
        except OSError:
            return False
        return True

    async def exists(self, storage_key: str) -> bool:
        return await aiofiles.os.path.isfile(self.path_for(storage_key))

    async def write(
        self,
        storage_key: str,
        chunks: AsyncIterable[bytes],
        *,
        max_bytes: int | None = None,
    ) -> int:
        """Stream ``chunks`` into a new blob and return the number of bytes written.

        Bytes land in a staging file first and are moved into place only once
        complete, so an aborted write never leaves a blob under ``storage_key``.
        """

        final_path = self.path_for(storage_key)
        if await aiofiles.os.path.exists(final_path):
            raise StoreError(f"Blob already exists: {storage_key}")

        self.ensure_root()
        temp_path = self.root / INCOMING_DIR / f"{secrets.token_hex(16)}.tmp"
        total_bytes = 0

        try:
            async with aiofiles.open(temp_path, "wb") as buffer:
                async for chunk in chunks:
                    total_bytes += len(chunk)
                    if max_bytes is not None and total_bytes > max_bytes:
                        raise SizeLimitExceeded(max_bytes)
                    await buffer.write(chunk)
            await aiofiles.os.replace(temp_path, final_path)
        except Exception as exc:
            try:
                await aiofiles.os.remove(temp_path)
            except FileNotFoundError:
                pass
            if isinstance(exc, OSError):
                raise StoreError("Failed to save file") from exc
            raise

        LOGGER.debug("Stored blob %s (%d bytes)", storage_key, total_bytes)
        return total_bytes

    async def open(self, storage_key: str) -> BlobStream:
        """Open a blob for streaming; raises ``BlobMissing`` when it is absent."""

        path = self.path_for(storage_key)
        try:
            size = (await aiofiles.os.stat(path)).st_size
            handle = await aiofiles.open(path, "rb")
        except (FileNotFoundError, IsADirectoryError) as exc:
            raise BlobMissing(storage_key) from exc
        except OSError as exc:
            raise StoreError("Failed to read file") from exc
        return BlobStream(handle, size=size, chunk_size=self.chunk_size)

    async def delete(self, storage_key: str) -> None:
        """Remove a blob; a blob that is already gone is not an error."""

        try:
            await aiofiles.os.remove(self.path_for(storage_key))
        except FileNotFoundError:
            LOGGER.debug("Blob %s already absent", storage_key)


__all__ = [
    "BlobMissing",
    "BlobStore",
    "BlobStream",
    "CHUNK_SIZE",
    "SizeLimitExceeded",
]
