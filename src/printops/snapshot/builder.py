"""Snapshot export.

Reads every collection from the backing store plus the user preferences,
assembles a ``Snapshot`` and stamps its checksum.  Building is read-only
and all-or-nothing: a failed read of any collection fails the build.

Usage:
    from printops.snapshot.builder import build_export_artifact

    path = await build_export_artifact(store, prefs)
    path = await build_export_artifact(store, prefs, output_path="out.json")
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from printops.adapters.base import BackingStore, PreferenceStore
from printops.errors import AdapterError, CollectionError, StructuralError
from printops.snapshot.checksum import compute_checksum
from printops.snapshot.models import (
    COLLECTIONS,
    CURRENT_VERSION,
    EXPORTED_BY,
    PREFERENCE_DEFAULTS,
    PRODUCER_NAME,
    Snapshot,
    SnapshotMetadata,
    default_preferences,
    is_empty_value,
)

logger = logging.getLogger(__name__)


def read_preferences(preferences: PreferenceStore | None) -> dict[str, Any]:
    """Read the exported preference keys, falling back to their defaults.

    ``dailyReportData`` mirrors ``dailyReportPrinters``.
    """
    prefs = default_preferences()
    if preferences is None:
        return prefs

    for key, default in PREFERENCE_DEFAULTS.items():
        if key == "dailyReportData":
            continue
        try:
            value = preferences.get(key, default)
        except Exception as e:
            logger.warning("Could not read preference %r: %s", key, e)
            continue
        if value is not None:
            prefs[key] = value

    prefs["dailyReportData"] = prefs["dailyReportPrinters"]
    return prefs


def count_preferences(prefs: dict[str, Any]) -> int:
    """Number of non-empty, non-null preference entries."""
    return sum(1 for value in prefs.values() if not is_empty_value(value))


async def _read_collection(store: BackingStore, name: str) -> list[dict]:
    try:
        return await store.get_all(name)
    except CollectionError:
        raise
    except Exception as e:
        raise AdapterError(f"Failed to read {name}: {e}") from e


async def build_snapshot(
    store: BackingStore,
    preferences: PreferenceStore | None = None,
) -> Snapshot:
    """Assemble a checksummed snapshot of the whole backing store.

    Collections are read concurrently.

    Args:
        store: Backing store to read from (never written).
        preferences: Local preference store; ``None`` exports defaults.

    Returns:
        A ``Snapshot`` at ``CURRENT_VERSION`` with its checksum set.

    Raises:
        CollectionError: If a collection is unreachable.
        AdapterError: If the store cannot be reached, any other read fails,
            or the data read cannot be encoded as JSON.
    """
    try:
        await store.init()
    except Exception as e:
        raise AdapterError(f"Failed to connect to the backing store: {e}") from e

    logger.info("Reading %d collections", len(COLLECTIONS))
    results = await asyncio.gather(
        *(_read_collection(store, name) for name in COLLECTIONS)
    )
    collections = dict(zip(COLLECTIONS, results))

    prefs = read_preferences(preferences)
    total = sum(len(r) for r in results) + count_preferences(prefs)

    snapshot = Snapshot(
        version=CURRENT_VERSION,
        exported_at=datetime.now(timezone.utc).isoformat(),
        metadata=SnapshotMetadata(
            producer_name=PRODUCER_NAME,
            producer_version=CURRENT_VERSION,
            total_record_count=total,
            exported_by=EXPORTED_BY,
        ),
        collections=collections,
        preferences=prefs,
    )
    try:
        snapshot.checksum = compute_checksum(snapshot)
    except StructuralError as e:
        raise AdapterError(f"Backing store returned data that cannot be exported: {e}") from e

    logger.info(
        "Snapshot built: %d records, checksum %s...",
        total,
        snapshot.checksum[:16],
    )
    return snapshot


def write_artifact(snapshot: Snapshot, output_path: str | None = None) -> str:
    """Write the snapshot as a JSON artifact.

    Args:
        snapshot: Snapshot to serialize.
        output_path: Destination file.  When ``None``, generates a
            timestamped path under ``./backups/``.

    Returns:
        Path of the written file.
    """
    if output_path is None:
        backups_dir = Path.cwd() / "backups"
        backups_dir.mkdir(exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d-%H%M")
        output_path = str(backups_dir / f"printops-backup-{timestamp}.json")

    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(snapshot.to_wire(), f, indent=2, ensure_ascii=False)

    return output_path


async def build_export_artifact(
    store: BackingStore,
    preferences: PreferenceStore | None = None,
    output_path: str | None = None,
) -> str:
    """Build a snapshot and write it to disk.  Returns the artifact path."""
    snapshot = await build_snapshot(store, preferences)
    return write_artifact(snapshot, output_path)
