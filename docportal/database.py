"""Metadata store for document records, backed by SQLModel."""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import desc
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select

from .config import PROJECT_ROOT
from .migrations import run_migrations
from .models import Document
from .utils.errors import StoreError

LOGGER = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    """Return a SQLModel engine, anchoring relative SQLite paths at the project root."""

    url = make_url(database_url)
    connect_args = {"check_same_thread": False} if url.get_backend_name() == "sqlite" else {}

    if url.get_backend_name() == "sqlite":
        database = url.database
        if database and database != ":memory:":
            db_path = Path(database)
            if not db_path.is_absolute():
                db_path = (PROJECT_ROOT / db_path).resolve()
            db_path.parent.mkdir(parents=True, exist_ok=True)
            url = url.set(database=str(db_path))
            database_url = url.render_as_string(hide_password=False)

    return create_engine(database_url, connect_args=connect_args)


class MetadataStore:
    """Persists one row per uploaded document.

    The store is opened once at process start and closed at shutdown. Every
    method runs a single statement in its own session, so row-level atomicity
    comes from the database rather than from application locks.
    """

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self._engine: Engine | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StoreError("Metadata store is not open")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "MetadataStore":
        """Create the engine, the ``documents`` table and apply migrations."""

        if self._engine is not None:
            return self
        try:
            engine = build_engine(self.database_url)
            SQLModel.metadata.create_all(engine, tables=[Document.__table__])
            run_migrations(engine)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to open metadata store") from exc
        self._engine = engine
        LOGGER.info("Metadata store opened at %s", engine.url.render_as_string())
        return self

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        LOGGER.info("Metadata store closed")

    def ping(self) -> bool:
        """Run a lightweight connectivity check."""

        try:
            with Session(self.engine) as session:
                session.exec(select(1)).one()
        except (SQLAlchemyError, StoreError):
            return False
        return True

    def insert(self, *, original_name: str, storage_key: str, size_bytes: int) -> Document:
        document = Document(
            original_name=original_name,
            storage_key=storage_key,
            size_bytes=size_bytes,
        )
        try:
            with Session(self.engine) as session:
                session.add(document)
                session.commit()
                session.refresh(document)
        except SQLAlchemyError as exc:
            LOGGER.error("Database error while saving %s: %s", original_name, exc)
            raise StoreError("Failed to save document metadata") from exc
        return document

    def list_all(self) -> list[Document]:
        """Return every record, newest first."""

        statement = select(Document).order_by(
            desc(Document.__table__.c.created_at),  # type: ignore[attr-defined]
            desc(Document.__table__.c.id),  # type: ignore[attr-defined]
        )
        try:
            with Session(self.engine) as session:
                return list(session.exec(statement))
        except SQLAlchemyError as exc:
            LOGGER.error("Database error while listing documents: %s", exc)
            raise StoreError("Failed to fetch documents") from exc

    def get(self, document_id: int) -> Document | None:
        try:
            with Session(self.engine) as session:
                return session.get(Document, document_id)
        except SQLAlchemyError as exc:
            LOGGER.error("Database error while fetching document %s: %s", document_id, exc)
            raise StoreError("Failed to fetch document") from exc

    def delete(self, document_id: int) -> bool:
        """Remove a record.

        Returns ``True`` if the record existed and was removed, otherwise ``False``.
        """

        try:
            with Session(self.engine) as session:
                document = session.get(Document, document_id)
                if document is None:
                    return False
                session.delete(document)
                session.commit()
        except SQLAlchemyError as exc:
            LOGGER.error("Database error while deleting document %s: %s", document_id, exc)
            raise StoreError("Failed to delete document") from exc
        return True


__all__ = ["MetadataStore", "build_engine"]
