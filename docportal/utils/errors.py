"""Error taxonomy shared by the stores, the service and the HTTP layer."""

from __future__ import annotations

from typing import Any, Dict


class DocumentError(Exception):
    """Base class for every failure a document operation can report."""

    status_code = 500
    default_code = "DOCUMENT_ERROR"

    def __init__(
        self, message: str, code: str | None = None, extra: Dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.extra = extra or {}

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.extra:
            payload.update(self.extra)
        return payload


class ValidationError(DocumentError):
    """Raised when an upload is rejected before anything is persisted."""

    status_code = 400
    default_code = "VALIDATION_ERROR"


class UnsupportedType(ValidationError):
    default_code = "UNSUPPORTED_TYPE"

    def __init__(self, content_type: str | None = None) -> None:
        super().__init__(
            "Only PDF files are allowed!",
            extra={"content_type": content_type} if content_type else None,
        )


class TooLarge(ValidationError):
    default_code = "TOO_LARGE"

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"File size exceeds {_format_limit(limit)} limit",
            extra={"max_upload_size": limit},
        )


class MissingFile(ValidationError):
    default_code = "MISSING_FILE"

    def __init__(self) -> None:
        super().__init__("No file uploaded or invalid file type")


class NotFound(DocumentError):
    """Raised when a record, or the blob behind an existing record, is absent."""

    status_code = 404
    default_code = "NOT_FOUND"

    @classmethod
    def record(cls, document_id: int) -> "NotFound":
        return cls("Document not found", extra={"id": document_id})

    @classmethod
    def blob(cls, document_id: int) -> "NotFound":
        return cls("File not found on server", code="BLOB_MISSING", extra={"id": document_id})


class StoreError(DocumentError):
    """Raised when the database or the blob directory cannot be used."""

    status_code = 500
    default_code = "STORE_ERROR"


def _format_limit(limit: int) -> str:
    mib = limit / (1024 * 1024)
    if mib >= 1 and mib == int(mib):
        return f"{int(mib)}MB"
    return f"{limit} bytes"


__all__ = [
    "DocumentError",
    "MissingFile",
    "NotFound",
    "StoreError",
    "TooLarge",
    "UnsupportedType",
    "ValidationError",
]
