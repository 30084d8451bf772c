"""Embedded local store (read-only).

``AsyncSqliteLocalStore`` reads the pre-migration data kept in a local
SQLite file.  Each collection lives in a table of the same name with two
columns: ``id`` and ``data`` (the JSON-encoded record).  A collection
without a table reads as empty.

Usage:
    from printops.adapters.local import AsyncSqliteLocalStore

    local = AsyncSqliteLocalStore("printops-local.db")
    printers = await local.get_all("printers")
    await local.close()
"""

import json
import logging
from pathlib import Path

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from printops.adapters.mapping import check_identifier

logger = logging.getLogger(__name__)


class AsyncSqliteLocalStore:
    """Async SQLite implementation of the ``LocalStore`` protocol.

    Args:
        path: Path to the SQLite database file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._engine: AsyncEngine = create_async_engine(
            f"sqlite+aiosqlite:///{self._path}"
        )
        self._tables: set[str] | None = None

    async def init(self) -> None:
        """Load the list of existing tables.

        Raises:
            FileNotFoundError: If the database file does not exist.
        """
        if not self._path.exists():
            raise FileNotFoundError(f"Local store not found: {self._path}")
        async with self._engine.connect() as conn:
            names = await conn.run_sync(lambda sync_conn: sa_inspect(sync_conn).get_table_names())
        self._tables = set(names)

    async def get_all(self, collection: str) -> list[dict]:
        """Return the decoded records of ``collection`` in insertion order."""
        if self._tables is None:
            await self.init()
        if collection not in self._tables:
            logger.debug("Local store has no table for %s", collection)
            return []

        query = text(f"SELECT data FROM {check_identifier(collection)} ORDER BY rowid")
        async with self._engine.connect() as conn:
            result = await conn.execute(query)
            return [json.loads(row[0]) for row in result.fetchall()]

    async def close(self) -> None:
        await self._engine.dispose()
