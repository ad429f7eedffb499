"""FastAPI dependencies resolving objects created during application startup."""

from __future__ import annotations

from fastapi import Request

from .database import MetadataStore
from .services import BlobStore, DocumentService
from .utils.errors import StoreError


def get_document_service(request: Request) -> DocumentService:
    """Return the service wired up by the application lifespan."""

    service = getattr(request.app.state, "document_service", None)
    if service is None:
        raise StoreError("Document service is not initialised")
    return service


def get_metadata_store(request: Request) -> MetadataStore:
    return get_document_service(request).metadata


def get_blob_store(request: Request) -> BlobStore:
    return get_document_service(request).blobs


__all__ = ["get_blob_store", "get_document_service", "get_metadata_store"]
