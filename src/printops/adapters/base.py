"""Store protocol definitions.

Defines the ``BackingStore`` Protocol that hosted adapters implement, the
``SupportsUpsert`` Protocol for the optional single round-trip upsert, and
the read-only ``LocalStore`` Protocol for the embedded store.
All methods are ``async def`` -- the library is async-first.

Collections are addressed by their snapshot name (``"printers"``,
``"emptyToners"``, ...); records are plain dicts with an ``id`` key.

Usage:
    from printops.adapters.base import BackingStore

    async def copy_printer(store: BackingStore, record: dict) -> None:
        if await store.get("printers", record["id"]):
            await store.update("printers", record)
        else:
            await store.add("printers", record)
"""

from typing import Any, Protocol, runtime_checkable


class BackingStore(Protocol):
    """Hosted store interface that the snapshot pipeline writes to.

    Every method may raise an adapter-specific exception.  Adapters raise
    ``CollectionError`` when the collection itself cannot be reached.
    """

    async def init(self) -> None:
        """Prepare the store for use (connect, warm up the client)."""
        ...

    async def get(self, collection: str, record_id: str) -> dict | None:
        """Return the record with ``record_id`` or ``None`` if absent."""
        ...

    async def get_all(self, collection: str) -> list[dict]:
        """Return every record of ``collection``.  Empty list if none."""
        ...

    async def add(self, collection: str, record: dict) -> None:
        """Insert a single record.

        Raises:
            Exception: If duplicate key or constraint violation.
        """
        ...

    async def add_batch(self, collection: str, records: list[dict]) -> None:
        """Insert ``records`` in one bulk call.

        The call is all-or-nothing from the caller's point of view: on
        failure, no assumption is made about which records were written.
        """
        ...

    async def update(self, collection: str, record: dict) -> None:
        """Update the record matching ``record["id"]``."""
        ...

    async def delete(self, collection: str, record_id: str) -> None:
        """Delete the record with ``record_id``."""
        ...

    async def clear(self, collection: str) -> None:
        """Delete every record of ``collection``."""
        ...

    async def get_setting(self, key: str) -> str | None:
        """Read a value from the key/value settings facility."""
        ...

    async def set_setting(self, key: str, value: str) -> None:
        """Write a value to the key/value settings facility."""
        ...

    async def close(self) -> None:
        """Release connections.  Safe to call on an unused store."""
        ...


@runtime_checkable
class SupportsUpsert(Protocol):
    """Optional capability: insert-or-update by ``id`` in one round trip."""

    async def upsert(self, collection: str, record: dict) -> None:
        ...


class LocalStore(Protocol):
    """Embedded store the one-time migration reads from."""

    async def init(self) -> None:
        ...

    async def get_all(self, collection: str) -> list[dict]:
        ...

    async def close(self) -> None:
        ...


class PreferenceStore(Protocol):
    """Local key/value store for user preferences."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...
