"""Routes that expose operational observability data."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends

from docportal import __version__
from ..database import MetadataStore
from ..dependencies import get_blob_store, get_metadata_store
from ..observability import metrics_registry
from ..services import BlobStore

router = APIRouter(tags=["observability"])


@router.get("/metrics")
def read_metrics() -> dict[str, object]:
    """Return the current request metrics snapshot."""

    return metrics_registry.snapshot()


@router.get("/status")
async def read_status(
    metadata: MetadataStore = Depends(get_metadata_store),
    blobs: BlobStore = Depends(get_blob_store),
) -> dict[str, object]:
    """Return an aggregated operational status payload."""

    database_ok, storage_ok = await asyncio.gather(
        asyncio.to_thread(metadata.ping),
        asyncio.to_thread(blobs.is_writable),
    )
    return {
        "app": {"version": __version__},
        "database": {"ok": database_ok},
        "storage": {"ok": storage_ok, "path": str(blobs.root)},
        "metrics": metrics_registry.snapshot(),
    }


__all__ = ["router"]
