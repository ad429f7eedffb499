"""Upload, listing, download and delete endpoints for documents."""

from __future__ import annotations

import unicodedata
from typing import AsyncIterator
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from starlette.background import BackgroundTask

from ..dependencies import get_document_service
from ..models import DocumentRead
from ..observability import metrics_registry
from ..services import DocumentService
from ..services.blobs import CHUNK_SIZE
from ..utils.errors import MissingFile

router = APIRouter(tags=["documents"])


class UploadResponse(BaseModel):
    message: str
    document: DocumentRead


class DocumentListResponse(BaseModel):
    documents: list[DocumentRead] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    message: str


async def _iter_upload(upload: UploadFile) -> AsyncIterator[bytes]:
    try:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        await upload.close()


def content_disposition(filename: str) -> str:
    """Build an ``attachment`` header with an ASCII ``filename`` and, for
    non-ASCII names, an RFC 5987 ``filename*`` alongside it."""

    fallback = (
        unicodedata.normalize("NFKD", filename)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    fallback = "".join(ch for ch in fallback if ch.isprintable())
    fallback = fallback.replace("\\", "\\\\").replace('"', '\\"') or "document.pdf"
    header = f'attachment; filename="{fallback}"'
    if not filename.isascii():
        header += f"; filename*=utf-8''{quote(filename, safe='')}"
    return header


@router.post(
    "/documents/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    *,
    file: UploadFile | None = File(None),
    service: DocumentService = Depends(get_document_service),
) -> UploadResponse:
    """Store an uploaded PDF and return its metadata."""

    if file is None:
        raise MissingFile()

    document = await service.create(
        original_name=file.filename,
        content_type=file.content_type,
        chunks=_iter_upload(file),
    )
    metrics_registry.document_event("uploaded")
    return UploadResponse(
        message="File uploaded successfully",
        document=DocumentRead.from_record(document),
    )


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(
    *, service: DocumentService = Depends(get_document_service)
) -> DocumentListResponse:
    """Return every stored document, newest first."""

    documents = await service.list_all()
    return DocumentListResponse(
        documents=[DocumentRead.from_record(document) for document in documents]
    )


@router.get(
    "/documents/{document_id}",
    response_class=StreamingResponse,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_document(
    document_id: int,
    *,
    service: DocumentService = Depends(get_document_service),
) -> StreamingResponse:
    """Stream the stored PDF as an attachment."""

    content = await service.fetch_content(document_id)
    metrics_registry.document_event("downloaded")
    return StreamingResponse(
        content.stream,
        media_type=content.media_type,
        headers={
            "Content-Disposition": content_disposition(content.filename),
            "Content-Length": str(content.stream.size),
        },
        background=BackgroundTask(content.stream.aclose),
    )


@router.delete("/documents/{document_id}", response_model=DeleteResponse)
async def delete_document(
    document_id: int,
    *,
    service: DocumentService = Depends(get_document_service),
) -> DeleteResponse:
    """Delete a document record and its stored file."""

    await service.delete(document_id)
    metrics_registry.document_event("deleted")
    return DeleteResponse(message="Document deleted successfully")


__all__ = ["router", "content_disposition"]
