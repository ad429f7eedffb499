"""DocPortal backend entrypoint."""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import get_settings
from .database import MetadataStore
from .middleware import (
    RequestIdMiddleware,
    SecurityHeadersMiddleware,
    UploadSizeLimitMiddleware,
)
from .observability import RequestMetricsMiddleware
from .paths import FRONTEND_DIR
from .routers import api_router
from .services import BlobStore, DocumentService
from .utils.errors import DocumentError


settings = get_settings()
logger = logging.getLogger("uvicorn.error")

cors_allow_origins = list(settings.cors_allow_origins)
allow_credentials = True
if "*" in cors_allow_origins:
    cors_allow_origins = ["*"]
    allow_credentials = False
if not cors_allow_origins:
    cors_allow_origins = ["http://localhost:5173", "http://127.0.0.1:5173"]

_cors_origin_pattern = (
    re.compile(settings.cors_allow_origin_regex)
    if settings.cors_allow_origin_regex
    else None
)

ENDPOINTS = (
    ("POST", "/documents/upload", "Upload a PDF"),
    ("GET", "/documents", "List all documents"),
    ("GET", "/documents/{id}", "Download a document"),
    ("DELETE", "/documents/{id}", "Delete a document"),
)


def _announce_endpoints() -> None:
    logger.info("Available endpoints:")
    for method, path, summary in ENDPOINTS:
        logger.info("  %-6s %-18s - %s", method, path, summary)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the stores for the lifetime of the application and close them after."""

    current = get_settings()
    metadata = MetadataStore(current.database_url).open()
    blobs = BlobStore(current.upload_dir)
    blobs.ensure_root()
    app.state.document_service = DocumentService(
        metadata=metadata, blobs=blobs, settings=current
    )
    logger.info("Storing uploads in %s", blobs.root)
    _announce_endpoints()
    try:
        yield
    finally:
        app.state.document_service = None
        metadata.close()


app = FastAPI(title="DocPortal", version=__version__, lifespan=lifespan)
app.add_middleware(UploadSizeLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_origin_regex=settings.cors_allow_origin_regex,
)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(RequestMetricsMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

app.include_router(api_router)


@app.exception_handler(DocumentError)
async def handle_document_error(request: Request, exc: DocumentError) -> JSONResponse:
    """Render the document error taxonomy as ``{"detail", "code"}`` payloads."""

    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc,
            exc_info=exc.__cause__,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(Exception)
async def handle_unexpected_exception(
    request: Request, exc: Exception
) -> JSONResponse:
    """Ensure unexpected exceptions return a JSON payload."""

    logger.exception(
        "Unhandled exception while processing %s %s", request.method, request.url.path
    )
    origin = request.headers.get("origin")
    headers: dict[str, str] = {}

    if origin:
        allowed_origin: str | None = None

        if cors_allow_origins == ["*"]:
            allowed_origin = "*"
        elif origin in cors_allow_origins:
            allowed_origin = origin
        elif _cors_origin_pattern and _cors_origin_pattern.fullmatch(origin):
            allowed_origin = origin

        if allowed_origin:
            headers["Access-Control-Allow-Origin"] = allowed_origin
            headers.setdefault("Vary", "Origin")
            if allow_credentials and allowed_origin != "*":
                headers["Access-Control-Allow-Credentials"] = "true"

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"},
        headers=headers or None,
    )


if FRONTEND_DIR.exists():
    app.mount(
        "/static",
        StaticFiles(directory=str(FRONTEND_DIR), html=False),
        name="frontend-static",
    )

    @app.get("/", include_in_schema=False)
    async def serve_frontend() -> FileResponse:
        """Return the frontend HTML shell."""

        return FileResponse(FRONTEND_DIR / "index.html")


__all__ = ["app", "FRONTEND_DIR"]
