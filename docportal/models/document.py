"""Document model definition."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional

from pydantic import BaseModel
from sqlmodel import Field, SQLModel


class Document(SQLModel, table=True):
    """One uploaded file: its display name and where its bytes live."""

    __tablename__ = "documents"

    id: Optional[int] = Field(default=None, primary_key=True)
    original_name: str = Field(description="Filename supplied by the uploader.")
    storage_key: str = Field(
        unique=True, description="Name of the blob holding the file bytes."
    )
    size_bytes: int = Field(description="Size of the uploaded file in bytes.")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        index=True,
        description="UTC timestamp indicating when the file was uploaded.",
    )


class DocumentRead(BaseModel):
    """Public JSON shape of a document as consumed by the client UI."""

    id: int
    filename: str
    filesize: int
    created_at: datetime

    @classmethod
    def from_record(cls, document: Document) -> "DocumentRead":
        return cls(
            id=document.id,
            filename=document.original_name,
            filesize=document.size_bytes,
            created_at=document.created_at,
        )
