"""Async Supabase backing store.

Provides ``AsyncSupabaseStore``, an async implementation of the
``BackingStore`` protocol using the supabase-py async client.  Snapshot
collection and field names are mapped to the hosted snake_case tables on
the way in and back on the way out.

The client is initialized lazily on first use with an ``asyncio.Lock``
to ensure thread-safe initialization.

Usage:
    from printops.adapters.supabase import AsyncSupabaseStore

    store = AsyncSupabaseStore(
        url="https://xyzproject.supabase.co",
        key="eyJ...",
    )

    printers = await store.get_all("printers")
    await store.close()
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from printops.adapters.mapping import SETTINGS_TABLE, table_for, to_record, to_row
from printops.errors import CollectionError

logger = logging.getLogger(__name__)

# PostgREST / PostgreSQL codes for "relation does not exist"
_MISSING_TABLE_CODES = frozenset({"42P01", "PGRST205"})

# Sentinel id used to express "delete every row" through PostgREST,
# which refuses an unfiltered DELETE.
_NIL_UUID = "00000000-0000-0000-0000-000000000000"


class AsyncSupabaseStore:
    """Async Supabase implementation of the ``BackingStore`` protocol.

    Wraps the Supabase Python async client.  The client is initialized
    lazily on first call using ``acreate_client`` protected by an
    ``asyncio.Lock``.  ``get_all`` pages through the table so results are
    not truncated by the server's row limit.

    Args:
        url: Supabase project URL.
        key: Supabase API key (anon or service key).
        page_size: Rows fetched per request in ``get_all``.

    Example:
        store = AsyncSupabaseStore(
            url="https://xyzproject.supabase.co",
            key="eyJhbGciOiJIUzI1NiIs...",
        )
        await store.add("printers", {"id": "p1", "model": "M404"})
        await store.close()
    """

    def __init__(self, url: str, key: str, page_size: int = 1000) -> None:
        self._url: str = url
        self._key: str = key
        self._page_size: int = page_size
        self._client: AsyncClient | None = None
        self._lock: asyncio.Lock = asyncio.Lock()

    async def _get_client(self) -> AsyncClient:
        """Get or create the async Supabase client.

        Uses an ``asyncio.Lock`` to ensure the client is created exactly
        once, even under concurrent access.

        Returns:
            Initialized ``AsyncClient``.
        """
        if self._client is None:
            async with self._lock:
                # Double-check after acquiring lock
                if self._client is None:
                    self._client = await acreate_client(self._url, self._key)
        return self._client

    async def _execute(self, collection: str, query: Any) -> Any:
        """Run a query builder, mapping missing-table errors to ``CollectionError``."""
        try:
            return await query.execute()
        except APIError as e:
            if e.code in _MISSING_TABLE_CODES:
                raise CollectionError(collection, e.message or str(e)) from e
            raise

    async def init(self) -> None:
        await self._get_client()

    # ------------------------------------------------------------------
    # Record Methods
    # ------------------------------------------------------------------

    async def get(self, collection: str, record_id: str) -> dict | None:
        """Fetch one record by id, or ``None`` when it does not exist."""
        client = await self._get_client()
        query = (
            client.table(table_for(collection)).select("*").eq("id", record_id).limit(1)
        )
        result = await self._execute(collection, query)
        if not result.data:
            return None
        return to_record(collection, result.data[0])

    async def get_all(self, collection: str) -> list[dict]:
        """Fetch every record, newest first, one page at a time."""
        client = await self._get_client()
        table = table_for(collection)
        records: list[dict] = []
        start = 0
        while True:
            query = (
                client.table(table)
                .select("*")
                .order("created_at", desc=True)
                .range(start, start + self._page_size - 1)
            )
            result = await self._execute(collection, query)
            page = result.data or []
            records.extend(to_record(collection, row) for row in page)
            if len(page) < self._page_size:
                return records
            start += self._page_size

    async def add(self, collection: str, record: dict) -> None:
        client = await self._get_client()
        query = client.table(table_for(collection)).insert(to_row(collection, record))
        await self._execute(collection, query)

    async def add_batch(self, collection: str, records: list[dict]) -> None:
        """Insert ``records`` in a single request.  No-op for an empty list."""
        if not records:
            return
        client = await self._get_client()
        rows = [to_row(collection, r) for r in records]
        await self._execute(collection, client.table(table_for(collection)).insert(rows))

    async def update(self, collection: str, record: dict) -> None:
        """Update the row matching ``record["id"]``; stamps ``updated_at`` if absent."""
        client = await self._get_client()
        row = to_row(collection, record)
        record_id = row.pop("id")
        if not row.get("updated_at"):
            row["updated_at"] = datetime.now(timezone.utc).isoformat()
        query = client.table(table_for(collection)).update(row).eq("id", record_id)
        await self._execute(collection, query)

    async def upsert(self, collection: str, record: dict) -> None:
        """Insert or update by ``id`` in one round trip."""
        client = await self._get_client()
        query = client.table(table_for(collection)).upsert(
            to_row(collection, record), on_conflict="id"
        )
        await self._execute(collection, query)

    async def delete(self, collection: str, record_id: str) -> None:
        client = await self._get_client()
        query = client.table(table_for(collection)).delete().eq("id", record_id)
        await self._execute(collection, query)

    async def clear(self, collection: str) -> None:
        """Delete every row of the collection's table."""
        client = await self._get_client()
        query = client.table(table_for(collection)).delete().neq("id", _NIL_UUID)
        await self._execute(collection, query)
        logger.debug("Cleared %s", collection)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def get_setting(self, key: str) -> str | None:
        client = await self._get_client()
        query = client.table(SETTINGS_TABLE).select("value").eq("key", key).limit(1)
        result = await self._execute(SETTINGS_TABLE, query)
        if not result.data:
            return None
        return result.data[0].get("value")

    async def set_setting(self, key: str, value: str) -> None:
        client = await self._get_client()
        query = client.table(SETTINGS_TABLE).upsert(
            {
                "key": key,
                "value": value,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            },
            on_conflict="key",
        )
        await self._execute(SETTINGS_TABLE, query)

    async def close(self) -> None:
        """Close the Supabase async client.

        If the client was never initialized (no calls were made),
        this is a no-op.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
