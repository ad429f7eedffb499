"""Document lifecycle coordinating the metadata store and the blob store."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import AsyncIterable, AsyncIterator

from ..config import Settings
from ..database import MetadataStore
from ..models import Document
from ..utils.errors import NotFound, StoreError, TooLarge, UnsupportedType
from .blobs import BlobMissing, BlobStore, BlobStream, SizeLimitExceeded

LOGGER = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
PDF_SIGNATURE = b"%PDF-"


@dataclass
class DocumentContent:
    """A document record together with an open stream over its bytes."""

    document: Document
    stream: BlobStream

    @property
    def filename(self) -> str:
        return self.document.original_name

    @property
    def media_type(self) -> str:
        return PDF_MEDIA_TYPE


def _display_name(filename: str | None) -> str:
    """Strip any client-side directory components from an uploaded filename."""

    if not filename:
        return "document.pdf"
    name = Path(filename.replace("\\", "/")).name.strip()
    return name or "document.pdf"


def _normalise_content_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


async def _require_pdf_signature(
    chunks: AsyncIterable[bytes], content_type: str | None
) -> AsyncIterator[bytes]:
    """Pass chunks through, rejecting content that does not start like a PDF."""

    head = b""
    checked = False
    async for chunk in chunks:
        if not checked:
            head += chunk
            if len(head) < len(PDF_SIGNATURE):
                continue
            if not head.startswith(PDF_SIGNATURE):
                raise UnsupportedType(content_type)
            checked = True
            chunk, head = head, b""
        yield chunk
    if not checked and head:
        raise UnsupportedType(content_type)


class DocumentService:
    """Create, list, fetch and delete documents.

    Each operation awaits its steps in a fixed order. Create writes the blob
    before inserting the record; Delete removes the record before the blob. The
    record is authoritative: an orphaned blob is tolerated, a record without a
    blob is reported as missing content when it is fetched.
    """

    def __init__(
        self, *, metadata: MetadataStore, blobs: BlobStore, settings: Settings
    ) -> None:
        self.metadata = metadata
        self.blobs = blobs
        self.settings = settings

    async def create(
        self,
        *,
        original_name: str | None,
        content_type: str | None,
        chunks: AsyncIterable[bytes],
    ) -> Document:
        """Validate and persist an uploaded file, returning its new record."""

        if _normalise_content_type(content_type) not in self.settings.allowed_mimetypes:
            raise UnsupportedType(content_type)
        if self.settings.verify_pdf_signature:
            chunks = _require_pdf_signature(chunks, content_type)

        name = _display_name(original_name)
        storage_key = self.blobs.new_key(name)
        limit = self.settings.max_upload_size

        try:
            size_bytes = await self.blobs.write(storage_key, chunks, max_bytes=limit)
        except SizeLimitExceeded:
            LOGGER.info("Rejected %s: larger than %d bytes", name, limit)
            raise TooLarge(limit) from None

        try:
            document = await asyncio.to_thread(
                partial(
                    self.metadata.insert,
                    original_name=name,
                    storage_key=storage_key,
                    size_bytes=size_bytes,
                )
            )
        except StoreError:
            LOGGER.error("Blob %s is orphaned after a failed metadata insert", storage_key)
            raise

        LOGGER.info(
            "Stored document %s: %s (%d bytes)", document.id, name, size_bytes
        )
        return document

    async def list_all(self) -> list[Document]:
        return await asyncio.to_thread(self.metadata.list_all)

    async def get(self, document_id: int) -> Document:
        document = await asyncio.to_thread(self.metadata.get, document_id)
        if document is None:
            raise NotFound.record(document_id)
        return document

    async def fetch_content(self, document_id: int) -> DocumentContent:
        """Return the record and an open stream over its blob."""

        document = await self.get(document_id)
        try:
            stream = await self.blobs.open(document.storage_key)
        except BlobMissing:
            LOGGER.warning(
                "Document %s has no blob at %s", document_id, document.storage_key
            )
            raise NotFound.blob(document_id) from None
        return DocumentContent(document=document, stream=stream)

    async def delete(self, document_id: int) -> Document:
        """Remove the record, then make a best-effort attempt to remove its blob."""

        document = await self.get(document_id)
        removed = await asyncio.to_thread(self.metadata.delete, document_id)
        if not removed:
            raise NotFound.record(document_id)

        try:
            await self.blobs.delete(document.storage_key)
        except (OSError, StoreError) as exc:
            LOGGER.warning(
                "Document %s deleted but blob %s could not be removed: %s",
                document_id,
                document.storage_key,
                exc,
            )
        LOGGER.info("Deleted document %s (%s)", document_id, document.original_name)
        return document


__all__ = ["DocumentContent", "DocumentService", "PDF_MEDIA_TYPE"]
