"""Shared fakes for the snapshot pipeline tests.

``InMemoryStore`` implements the ``BackingStore`` Protocol without an
``upsert`` method; ``InMemoryUpsertStore`` adds it.  Both can be told to
fail specific records, batches or collections.
"""

import copy
from typing import Any

import pytest

from printops.errors import CollectionError


class InMemoryStore:
    """Dict-backed ``BackingStore`` with failure injection.

    Attributes:
        data: collection -> {id: record}
        fail_ids: record ids whose ``add``/``update`` raise
        fail_batches: collections whose ``add_batch`` raises
        missing: collections that raise ``CollectionError`` on every call
        fail_reads: collections whose ``get_all`` raises a plain error
    """

    def __init__(self, data: dict[str, list[dict]] | None = None) -> None:
        self.data: dict[str, dict[str, dict]] = {}
        for name, records in (data or {}).items():
            self.data[name] = {r["id"]: copy.deepcopy(r) for r in records}
        self.settings: dict[str, str] = {}
        self.fail_ids: set[str] = set()
        self.fail_batches: set[str] = set()
        self.missing: set[str] = set()
        self.fail_reads: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self.init_count = 0
        self.closed = False

    def _check(self, collection: str) -> dict[str, dict]:
        if collection in self.missing:
            raise CollectionError(collection, "relation does not exist")
        return self.data.setdefault(collection, {})

    @property
    def write_count(self) -> int:
        return sum(1 for op, _ in self.calls if op in ("add", "add_batch", "update", "upsert", "clear", "delete"))

    async def init(self) -> None:
        self.init_count += 1

    async def get(self, collection: str, record_id: str) -> dict | None:
        self.calls.append(("get", collection))
        record = self._check(collection).get(record_id)
        return copy.deepcopy(record) if record else None

    async def get_all(self, collection: str) -> list[dict]:
        self.calls.append(("get_all", collection))
        if collection in self.fail_reads:
            raise RuntimeError(f"read failed for {collection}")
        return [copy.deepcopy(r) for r in self._check(collection).values()]

    async def add(self, collection: str, record: dict) -> None:
        self.calls.append(("add", collection))
        table = self._check(collection)
        if record.get("id") in self.fail_ids:
            raise ValueError(f"constraint violation on {record.get('id')}")
        if record["id"] in table:
            raise ValueError(f"duplicate key {record['id']}")
        table[record["id"]] = copy.deepcopy(record)

    async def add_batch(self, collection: str, records: list[dict]) -> None:
        self.calls.append(("add_batch", collection))
        table = self._check(collection)
        if collection in self.fail_batches:
            raise ValueError("batch insert failed")
        if any(r.get("id") in self.fail_ids for r in records):
            raise ValueError("batch insert failed")
        for record in records:
            table[record["id"]] = copy.deepcopy(record)

    async def update(self, collection: str, record: dict) -> None:
        self.calls.append(("update", collection))
        table = self._check(collection)
        if record.get("id") in self.fail_ids:
            raise ValueError(f"constraint violation on {record.get('id')}")
        if record["id"] not in table:
            raise ValueError(f"no row with id {record['id']}")
        table[record["id"]] = {**table[record["id"]], **copy.deepcopy(record)}

    async def delete(self, collection: str, record_id: str) -> None:
        self.calls.append(("delete", collection))
        self._check(collection).pop(record_id, None)

    async def clear(self, collection: str) -> None:
        self.calls.append(("clear", collection))
        self._check(collection).clear()

    async def get_setting(self, key: str) -> str | None:
        return self.settings.get(key)

    async def set_setting(self, key: str, value: str) -> None:
        self.settings[key] = value

    async def close(self) -> None:
        self.closed = True

    def records(self, collection: str) -> list[dict]:
        return list(self.data.get(collection, {}).values())


class InMemoryUpsertStore(InMemoryStore):
    """``InMemoryStore`` with the optional ``upsert`` capability."""

    async def upsert(self, collection: str, record: dict) -> None:
        self.calls.append(("upsert", collection))
        table = self._check(collection)
        if record.get("id") in self.fail_ids:
            raise ValueError(f"constraint violation on {record.get('id')}")
        table[record["id"]] = copy.deepcopy(record)


class FakeLocalStore:
    """In-memory ``LocalStore``."""

    def __init__(self, data: dict[str, list[dict]] | None = None) -> None:
        self.data = data or {}
        self.fail_reads: set[str] = set()
        self.closed = False

    async def init(self) -> None:
        pass

    async def get_all(self, collection: str) -> list[dict]:
        if collection in self.fail_reads:
            raise RuntimeError(f"cannot read {collection}")
        return [copy.deepcopy(r) for r in self.data.get(collection, [])]

    async def close(self) -> None:
        self.closed = True


class DictPreferenceStore:
    """In-memory ``PreferenceStore``."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self.values = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value


def sample_data() -> dict[str, list[dict]]:
    """A small dashboard with a record in most collections."""
    return {
        "printers": [
            {
                "id": "p1",
                "model": "HP E60155",
                "location": "Floor 2",
                "type": "mono",
                "tonerModel": "W9004mc",
                "currentTonerLevel": 80,
                "tonerCapacity": 20000,
                "dailyUsage": 400,
                "updatedAt": "2026-01-10T08:00:00+00:00",
            },
            {
                "id": "p2",
                "model": "HP E78625",
                "location": "Floor 3",
                "type": "color",
                "colorToners": {"cyan": 40, "magenta": 55},
            },
        ],
        "inventory": [{"id": "i1", "model": "W9004mc", "quantity": 3, "onLoan": False}],
        "orders": [{"id": "o1", "model": "W9004mc", "quantity": 5}],
        "changes": [{"id": "c1", "printerId": "p1", "changeDate": "2026-01-05"}],
        "users": [{"id": "u1", "name": "Ana"}],
        "operators": [{"id": "op1", "name": "Operator"}],
        "tickets": [{"id": "t1", "title": "Paper jam"}],
    }


@pytest.fixture
def store() -> InMemoryUpsertStore:
    return InMemoryUpsertStore(sample_data())


@pytest.fixture
def prefs() -> DictPreferenceStore:
    return DictPreferenceStore(
        {"dailyReportPrinters": ["p1"], "defaultPrintersTab": "mono"}
    )
