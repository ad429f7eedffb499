"""Database models for the DocPortal backend."""

from .document import Document, DocumentRead

__all__ = ["Document", "DocumentRead"]
