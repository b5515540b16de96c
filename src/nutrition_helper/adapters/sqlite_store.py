"""SQLite store bundling the repositories behind one engine."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from nutrition_helper.adapters.sqlite_engine import Connectable, connect
from nutrition_helper.adapters.sqlite_entry_repository import SqliteMealEntryRepository
from nutrition_helper.adapters.sqlite_option_repository import (
    SqliteMealOptionRepository,
)
from nutrition_helper.adapters.sqlite_schema import initialize_database
from nutrition_helper.adapters.sqlite_tag_repository import SqliteTagRepository
from nutrition_helper.adapters.sqlite_template_repository import (
    SqliteMealTemplateRepository,
)
from nutrition_helper.services.planner import Repositories, TransactionalStore

_logger = logging.getLogger(__name__)


@dataclass
class SqliteStore(TransactionalStore):
    """Owns the engine and hands out repositories bound to it."""

    engine: AsyncEngine

    def repositories(self, connectable: Connectable | None = None) -> Repositories:
        """Return repositories bound to a connection, or to the engine."""
        target = connectable if connectable is not None else self.engine
        return Repositories(
            templates=SqliteMealTemplateRepository(target),
            options=SqliteMealOptionRepository(target),
            tags=SqliteTagRepository(target),
            entries=SqliteMealEntryRepository(target),
        )

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Repositories]:
        """Yield repositories sharing one write transaction.

        The transaction commits when the block exits normally and rolls back
        when it raises.
        """
        async with connect(self.engine, "transaction") as conn:
            yield self.repositories(conn)

    async def initialize(self) -> None:
        await initialize_database(self.engine)

    async def close(self) -> None:
        await self.engine.dispose()
        _logger.info("Database engine disposed")
