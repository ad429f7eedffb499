"""Lightweight schema migration helpers for the DocPortal backend."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import NoSuchTableError


MigrationFunc = Callable[[Engine], None]


def _ensure_index(engine: Engine, name: str, ddl: str) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        try:
            indexes = inspector.get_indexes("documents")
        except NoSuchTableError:
            return

        if any(index["name"] == name for index in indexes):
            return

        connection.execute(text(ddl))


def _ensure_documents_created_at_index(engine: Engine) -> None:
    """Index ``created_at`` on tables created before listings were ordered by it."""

    _ensure_index(
        engine,
        "ix_documents_created_at",
        "CREATE INDEX IF NOT EXISTS ix_documents_created_at ON documents (created_at)",
    )


def _ensure_documents_storage_key_unique(engine: Engine) -> None:
    """Enforce one record per storage key on tables that predate the constraint."""

    with engine.begin() as connection:
        inspector = inspect(connection)
        try:
            constraints = inspector.get_unique_constraints("documents")
        except NoSuchTableError:
            return
        if any(c["column_names"] == ["storage_key"] for c in constraints):
            return

    _ensure_index(
        engine,
        "ux_documents_storage_key",
        "CREATE UNIQUE INDEX IF NOT EXISTS ux_documents_storage_key "
        "ON documents (storage_key)",
    )


_MIGRATIONS: tuple[MigrationFunc, ...] = (
    _ensure_documents_created_at_index,
    _ensure_documents_storage_key_unique,
)


def run_migrations(engine: Engine, migrations: Iterable[MigrationFunc] | None = None) -> None:
    """Execute idempotent schema migrations for the provided engine."""

    for migration in migrations or _MIGRATIONS:
        migration(engine)
