"""Test configuration for DocPortal."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import AsyncIterator, Generator

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from docportal.config import Settings, reset_settings_cache  # noqa: E402
from docportal.database import MetadataStore  # noqa: E402
from docportal.observability import metrics_registry  # noqa: E402
from docportal.services import BlobStore, DocumentService  # noqa: E402

MAX_UPLOAD_SIZE = 4096

PDF_BYTES = (
    b"%PDF-1.4\n"
    b"1 0 obj\n<< /Type /Catalog >>\nendobj\n"
    b"trailer\n<< /Root 1 0 R >>\n%%EOF\n"
)


def make_pdf(size: int) -> bytes:
    """Return PDF-looking content padded to exactly ``size`` bytes."""

    return (PDF_BYTES + b"0" * size)[:size]


async def iter_chunks(data: bytes, chunk_size: int = 16) -> AsyncIterator[bytes]:
    for start in range(0, len(data), chunk_size):
        yield data[start : start + chunk_size]


def stored_files(root: Path) -> list[Path]:
    """Return every file under ``root``, staging area included."""

    return sorted(path for path in root.rglob("*") if path.is_file())


@pytest.fixture(autouse=True)
def _isolate_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    """Provide isolated configuration for each test."""

    db_path = tmp_path / "test.db"
    upload_dir = tmp_path / "uploads"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("UPLOAD_DIR", str(upload_dir))
    monkeypatch.setenv("MAX_UPLOAD_SIZE", str(MAX_UPLOAD_SIZE))
    monkeypatch.delenv("ALLOWED_MIMETYPES", raising=False)
    monkeypatch.delenv("VERIFY_PDF_SIGNATURE", raising=False)
    reset_settings_cache()
    metrics_registry.reset()
    yield
    reset_settings_cache()
    metrics_registry.reset()


@pytest.fixture()
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    """Return a test client for the FastAPI application."""

    from docportal.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'service.db'}",
        upload_dir=tmp_path / "blobs",
        max_upload_size=256,
    )


@pytest.fixture()
def metadata_store(settings: Settings) -> Generator[MetadataStore, None, None]:
    store = MetadataStore(settings.database_url).open()
    yield store
    store.close()


@pytest.fixture()
def blob_store(settings: Settings) -> BlobStore:
    store = BlobStore(settings.upload_dir)
    store.ensure_root()
    return store


@pytest.fixture()
def service(
    settings: Settings, metadata_store: MetadataStore, blob_store: BlobStore
) -> DocumentService:
    return DocumentService(metadata=metadata_store, blobs=blob_store, settings=settings)
