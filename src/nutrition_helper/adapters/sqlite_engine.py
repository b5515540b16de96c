"""Async SQLite engine and connection helpers."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from nutrition_helper.config import Settings
from nutrition_helper.domain.errors import (
    ConflictError,
    ForeignKeyViolationError,
    InvalidInputError,
    StorageError,
)

_logger = logging.getLogger(__name__)

MEMORY_DATABASES = {None, "", ":memory:"}

Connectable = AsyncEngine | AsyncConnection


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the engine for the configured SQLite database.

    Foreign keys are enforced on every connection and every transaction
    starts with ``BEGIN IMMEDIATE``, so writers are serialised by SQLite.
    """
    url = make_url(settings.resolved_database_url())
    options: dict[str, object] = {"echo": settings.database_echo}
    if url.database not in MEMORY_DATABASES:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        options["pool_size"] = settings.database_pool_size
    engine = create_async_engine(url, **options)

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record) -> None:  # type: ignore[no-untyped-def]
        # Let the "begin" listener below emit BEGIN instead of the driver.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn) -> None:  # type: ignore[no-untyped-def]
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


@asynccontextmanager
async def connect(connectable: Connectable, action: str) -> AsyncIterator[AsyncConnection]:
    """Yield a connection and translate driver errors into domain errors.

    An engine opens and commits its own transaction; an open connection is
    reused as is, leaving commit to whoever opened it.
    """
    try:
        if isinstance(connectable, AsyncConnection):
            yield connectable
        else:
            async with connectable.begin() as conn:
                yield conn
    except IntegrityError as exc:
        raise _classify_integrity_error(exc, action) from exc
    except SQLAlchemyError as exc:
        _logger.warning("Storage failure during %s: %s", action, exc)
        raise StorageError(f"Database error: {exc}", details={"action": action}) from exc


def _classify_integrity_error(
    exc: IntegrityError, action: str
) -> ConflictError | ForeignKeyViolationError | InvalidInputError | StorageError:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    details = {"action": action}
    if "UNIQUE constraint" in message:
        return ConflictError(f"Resource already exists: {message}", details=details)
    if "FOREIGN KEY constraint" in message:
        return ForeignKeyViolationError(
            f"Referenced resource not found: {message}", details=details
        )
    if "CHECK constraint" in message or "NOT NULL constraint" in message:
        return InvalidInputError(f"Invalid value: {message}", details=details)
    _logger.warning("Unclassified integrity error during %s: %s", action, message)
    return StorageError(f"Database error: {message}", details=details)
