"""Ensure security middleware applies hardened headers."""

from __future__ import annotations

import io

from conftest import PDF_BYTES


def test_security_headers_present(client):
    response = client.get("/health")
    assert response.status_code == 200
    headers = response.headers

    assert headers["X-Content-Type-Options"] == "nosniff"
    assert headers["X-Frame-Options"] == "DENY"
    assert headers["Referrer-Policy"] == "no-referrer"
    assert "geolocation=()" in headers["Permissions-Policy"]
    assert "Content-Security-Policy" in headers


def test_downloads_are_not_sniffed(client):
    client.post(
        "/documents/upload",
        files={"file": ("a.pdf", io.BytesIO(PDF_BYTES), "application/pdf")},
    )
    response = client.get("/documents/1")

    assert response.status_code == 200
    assert response.headers["X-Content-Type-Options"] == "nosniff"
