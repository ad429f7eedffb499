"""Storage and lifecycle services for uploaded documents."""

from .blobs import BlobMissing, BlobStore, BlobStream, SizeLimitExceeded
from .documents import DocumentContent, DocumentService

__all__ = [
    "BlobMissing",
    "BlobStore",
    "BlobStream",
    "DocumentContent",
    "DocumentService",
    "SizeLimitExceeded",
]
