"""Tests covering the document upload, listing, download and delete routes."""

from __future__ import annotations

import io
from pathlib import Path

from fastapi.testclient import TestClient

from conftest import MAX_UPLOAD_SIZE, PDF_BYTES, make_pdf, stored_files
from docportal.utils.errors import StoreError


def _post_pdf(
    client: TestClient,
    content: bytes,
    filename: str = "sample.pdf",
    content_type: str = "application/pdf",
):
    return client.post(
        "/documents/upload",
        files={"file": (filename, io.BytesIO(content), content_type)},
    )


def test_upload_list_download_delete_round_trip(client: TestClient) -> None:
    """A 2 KB report goes through the whole lifecycle and then reads as missing."""

    content = make_pdf(2048)

    response = _post_pdf(client, content, filename="report.pdf")
    assert response.status_code == 201
    payload = response.json()
    assert payload["message"] == "File uploaded successfully"
    document = payload["document"]
    assert document["id"] == 1
    assert document["filename"] == "report.pdf"
    assert document["filesize"] == 2048
    assert "created_at" in document

    listing = client.get("/documents")
    assert listing.status_code == 200
    documents = listing.json()["documents"]
    assert len(documents) == 1
    assert documents[0]["filename"] == "report.pdf"
    assert documents[0]["filesize"] == 2048

    download = client.get("/documents/1")
    assert download.status_code == 200
    assert download.content == content
    assert download.headers["content-type"] == "application/pdf"
    assert (
        download.headers["content-disposition"] == 'attachment; filename="report.pdf"'
    )

    deleted = client.delete("/documents/1")
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Document deleted successfully"}

    missing = client.get("/documents/1")
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"
    assert client.get("/documents").json() == {"documents": []}


def test_upload_persists_blob_under_generated_key(
    client: TestClient, upload_dir: Path
) -> None:
    """The stored blob is named ``<token>-<filename>`` and holds the uploaded bytes."""

    response = _post_pdf(client, PDF_BYTES, filename="scan.pdf")
    assert response.status_code == 201

    files = stored_files(upload_dir)
    assert len(files) == 1
    token, _, name = files[0].name.partition("-")
    assert name == "scan.pdf"
    assert len(token) == 32
    assert files[0].read_bytes() == PDF_BYTES


def test_same_filename_twice_creates_two_documents(client: TestClient) -> None:
    first = _post_pdf(client, PDF_BYTES, filename="same.pdf")
    second = _post_pdf(client, PDF_BYTES, filename="same.pdf")

    assert first.status_code == second.status_code == 201
    assert first.json()["document"]["id"] != second.json()["document"]["id"]
    assert len(client.get("/documents").json()["documents"]) == 2


def test_listing_is_newest_first(client: TestClient) -> None:
    for name in ("a.pdf", "b.pdf", "c.pdf"):
        assert _post_pdf(client, PDF_BYTES, filename=name).status_code == 201

    names = [doc["filename"] for doc in client.get("/documents").json()["documents"]]
    assert names == ["c.pdf", "b.pdf", "a.pdf"]


def test_non_pdf_upload_is_rejected_without_side_effects(
    client: TestClient, upload_dir: Path
) -> None:
    response = _post_pdf(
        client, b"plain text", filename="notes.txt", content_type="text/plain"
    )

    assert response.status_code == 400
    payload = response.json()
    assert payload["code"] == "UNSUPPORTED_TYPE"
    assert payload["detail"] == "Only PDF files are allowed!"
    assert client.get("/documents").json() == {"documents": []}
    assert stored_files(upload_dir) == []


def test_oversized_upload_is_rejected_without_side_effects(
    client: TestClient, upload_dir: Path
) -> None:
    response = _post_pdf(client, make_pdf(MAX_UPLOAD_SIZE + 1), filename="large.pdf")

    assert response.status_code == 400
    assert response.json()["code"] == "TOO_LARGE"
    assert client.get("/documents").json() == {"documents": []}
    assert stored_files(upload_dir) == []


def test_upload_at_exact_limit_is_accepted(client: TestClient) -> None:
    response = _post_pdf(client, make_pdf(MAX_UPLOAD_SIZE), filename="edge.pdf")

    assert response.status_code == 201
    assert response.json()["document"]["filesize"] == MAX_UPLOAD_SIZE


def test_upload_without_file_field_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/documents/upload",
        files={"attachment": ("x.pdf", io.BytesIO(PDF_BYTES), "application/pdf")},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "MISSING_FILE"


def test_unknown_document_returns_not_found(client: TestClient) -> None:
    download = client.get("/documents/999")
    assert download.status_code == 404
    assert download.json()["detail"] == "Document not found"

    delete = client.delete("/documents/999")
    assert delete.status_code == 404
    assert delete.json()["code"] == "NOT_FOUND"


def test_missing_blob_is_reported_and_delete_still_succeeds(
    client: TestClient, upload_dir: Path
) -> None:
    document_id = _post_pdf(client, PDF_BYTES, filename="gone.pdf").json()["document"]["id"]
    for path in stored_files(upload_dir):
        path.unlink()

    download = client.get(f"/documents/{document_id}")
    assert download.status_code == 404
    assert download.json()["code"] == "BLOB_MISSING"
    assert download.json()["detail"] == "File not found on server"

    listing = client.get("/documents").json()["documents"]
    assert [doc["id"] for doc in listing] == [document_id]

    assert client.delete(f"/documents/{document_id}").status_code == 200
    assert client.get("/documents").json() == {"documents": []}


def test_delete_removes_blob(client: TestClient, upload_dir: Path) -> None:
    document_id = _post_pdf(client, PDF_BYTES).json()["document"]["id"]
    assert len(stored_files(upload_dir)) == 1

    assert client.delete(f"/documents/{document_id}").status_code == 200
    assert stored_files(upload_dir) == []

    second = client.delete(f"/documents/{document_id}")
    assert second.status_code == 404


def test_metadata_failure_returns_500_and_leaves_orphaned_blob(
    client: TestClient, upload_dir: Path, monkeypatch
) -> None:
    service = client.app.state.document_service

    def boom(**_kwargs):
        raise StoreError("Failed to save document metadata")

    monkeypatch.setattr(service.metadata, "insert", boom)

    response = _post_pdf(client, PDF_BYTES, filename="orphan.pdf")

    assert response.status_code == 500
    assert response.json() == {
        "detail": "Failed to save document metadata",
        "code": "STORE_ERROR",
    }
    orphans = [path.name for path in stored_files(upload_dir)]
    assert len(orphans) == 1 and orphans[0].endswith("-orphan.pdf")


def test_download_header_keeps_spaces_in_filename(client: TestClient) -> None:
    document_id = _post_pdf(client, PDF_BYTES, filename="my report.pdf").json()[
        "document"
    ]["id"]

    download = client.get(f"/documents/{document_id}")

    assert download.status_code == 200
    assert (
        download.headers["content-disposition"]
        == 'attachment; filename="my report.pdf"'
    )


def test_declared_oversize_upload_is_rejected_before_parsing(
    client: TestClient, upload_dir: Path, monkeypatch
) -> None:
    from docportal.middleware.upload_limit import MULTIPART_OVERHEAD

    async def never_called(self, **_kwargs):
        raise AssertionError("upload handler should not run")

    monkeypatch.setattr(
        "docportal.services.documents.DocumentService.create", never_called
    )

    response = _post_pdf(
        client, make_pdf(MAX_UPLOAD_SIZE + MULTIPART_OVERHEAD + 1), filename="huge.pdf"
    )

    assert response.status_code == 400
    assert response.json()["code"] == "TOO_LARGE"
    assert response.headers["X-Request-ID"]
    assert stored_files(upload_dir) == []
