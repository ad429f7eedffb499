"""ASGI middleware utilities for the DocPortal backend."""

from .request_context import RequestIdMiddleware, get_request_id
from .security import SecurityHeadersMiddleware
from .upload_limit import UploadSizeLimitMiddleware

__all__ = [
    "RequestIdMiddleware",
    "SecurityHeadersMiddleware",
    "UploadSizeLimitMiddleware",
    "get_request_id",
]
