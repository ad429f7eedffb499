"""Reject uploads whose declared size is already over the configured limit."""

from __future__ import annotations

from typing import Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..config import get_settings
from ..utils.errors import TooLarge

# Room for multipart boundaries and part headers around the file itself.
MULTIPART_OVERHEAD = 64 * 1024


class UploadSizeLimitMiddleware(BaseHTTPMiddleware):
    """Answer ``TOO_LARGE`` before the body is read when ``Content-Length`` is too big.

    Bodies without a usable ``Content-Length`` pass through; the blob store
    still enforces the limit while streaming.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        path: str = "/documents/upload",
        limit_provider: Callable[[], int] | None = None,
    ) -> None:
        super().__init__(app)
        self.path = path
        self._limit_provider = limit_provider or (lambda: get_settings().max_upload_size)

    async def dispatch(self, request: Request, call_next):
        if request.method == "POST" and request.url.path == self.path:
            limit = self._limit_provider()
            declared = request.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > limit + MULTIPART_OVERHEAD:
                error = TooLarge(limit)
                return JSONResponse(status_code=error.status_code, content=error.to_payload())
        return await call_next(request)


__all__ = ["MULTIPART_OVERHEAD", "UploadSizeLimitMiddleware"]
