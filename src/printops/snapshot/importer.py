"""Artifact import: validation, migration and write-back.

``import_artifact`` runs the whole pipeline for an artifact file:

1. Parse and check the minimal structure.
2. Verify the checksum (unless ``skip_validation``).
3. Reject unsupported versions; migrate older ones.
4. Replace mode: clear every collection.  Merge mode: keep existing data.
5. Write each collection in a fixed order.  Merge mode upserts record by
   record; replace mode inserts in batches and falls back to
   record-at-a-time inserts for a failed batch.
6. Restore the user preferences the artifact carries.

Steps 1-3 fail before any write.  Individual record failures are counted
as skipped and reported as warnings; they do not fail the import.  The
import is not transactional across collections: an unexpected error
returns a failed result carrying the counts reached so far.

Usage:
    from printops.snapshot.importer import import_artifact
    from printops.snapshot.models import ImportOptions

    result = await import_artifact(
        store,
        "backups/printops-backup-2026-01-15-0930.json",
        ImportOptions(merge_mode=True),
        preferences=prefs,
    )
    if not result.success:
        print(result.error)
"""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from printops.adapters.base import BackingStore, PreferenceStore, SupportsUpsert
from printops.errors import (
    CollectionError,
    CompatibilityError,
    IntegrityError,
    RecordError,
    SnapshotError,
    StructuralError,
)
from printops.snapshot.checksum import verify_checksum
from printops.snapshot.migrator import migrate_snapshot
from printops.snapshot.models import (
    COLLECTIONS,
    PREFERENCE_DEFAULTS,
    DeleteResult,
    ImportOptions,
    MigrationResult,
    Snapshot,
    is_empty_value,
)
from printops.snapshot.toner import refresh_printers
from printops.snapshot.validator import (
    classify_version,
    parse_artifact,
    validate_structure,
)

logger = logging.getLogger(__name__)

# Derived from dailyReportPrinters at export time; never restored.
_DERIVED_PREFERENCES = frozenset({"dailyReportData"})


# ============================================================================
# Record writes
# ============================================================================


def _record_id(record: Any) -> str:
    if isinstance(record, Mapping):
        return str(record.get("id", "<no id>"))
    return "<invalid record>"


def _require_id(collection: str, record: Any) -> None:
    if not isinstance(record, Mapping):
        raise RecordError(collection, None, TypeError("record is not an object"))
    if not record.get("id"):
        raise RecordError(collection, None, ValueError("record has no id"))


async def upsert_record(store: BackingStore, collection: str, record: Any) -> None:
    """Insert or update ``record`` by id.

    Uses the store's native ``upsert`` when it has one, otherwise reads
    the existing record and updates or inserts accordingly.

    Raises:
        RecordError: If the record is not an object or has no id.
    """
    _require_id(collection, record)

    if isinstance(store, SupportsUpsert):
        await store.upsert(collection, record)
        return

    existing = await store.get(collection, record["id"])
    if existing:
        await store.update(collection, record)
    else:
        await store.add(collection, record)


def _skip(result: MigrationResult, collection: str, record: Any, error: Exception) -> None:
    result.skipped_records += 1
    message = f"Skipped {collection} record {_record_id(record)}: {error}"
    result.warnings.append(message)
    logger.warning(message)


async def _merge_collection(
    store: BackingStore,
    collection: str,
    records: list[Any],
    result: MigrationResult,
) -> None:
    for record in records:
        try:
            await upsert_record(store, collection, record)
        except CollectionError:
            raise
        except Exception as e:
            _skip(result, collection, record, e)
        else:
            result.migrated_records += 1


async def _replace_collection(
    store: BackingStore,
    collection: str,
    records: list[Any],
    batch_size: int,
    result: MigrationResult,
) -> None:
    total_batches = (len(records) + batch_size - 1) // batch_size
    for index, start in enumerate(range(0, len(records), batch_size), start=1):
        batch = []
        for record in records[start:start + batch_size]:
            try:
                _require_id(collection, record)
            except RecordError as e:
                _skip(result, collection, record, e)
            else:
                batch.append(record)
        if not batch:
            continue
        try:
            await store.add_batch(collection, batch)
        except CollectionError:
            raise
        except Exception as e:
            logger.warning(
                "Batch %d/%d of %s failed (%s); retrying record by record",
                index,
                total_batches,
                collection,
                e,
            )
            for record in batch:
                try:
                    await store.add(collection, record)
                except CollectionError:
                    raise
                except Exception as record_error:
                    _skip(result, collection, record, record_error)
                else:
                    result.migrated_records += 1
        else:
            result.migrated_records += len(batch)


async def _import_collection(
    store: BackingStore,
    collection: str,
    records: list[Any],
    options: ImportOptions,
    result: MigrationResult,
) -> None:
    """Write one collection; a ``CollectionError`` skips what is left of it."""
    migrated_before = result.migrated_records
    skipped_before = result.skipped_records
    try:
        if options.merge_mode:
            await _merge_collection(store, collection, records, result)
        else:
            await _replace_collection(
                store, collection, records, options.batch_size, result
            )
    except CollectionError as e:
        handled = (result.migrated_records - migrated_before) + (
            result.skipped_records - skipped_before
        )
        remaining = len(records) - handled
        result.skipped_records += remaining
        message = f"Collection {collection} skipped ({remaining} record(s)): {e}"
        result.warnings.append(message)
        logger.error(message)
        return

    logger.info(
        "%s: %d imported, %d skipped",
        collection,
        result.migrated_records - migrated_before,
        result.skipped_records - skipped_before,
    )


# ============================================================================
# Preferences
# ============================================================================


def restore_preferences(
    preferences: PreferenceStore,
    values: dict[str, Any],
    warnings: list[str],
) -> int:
    """Write non-empty artifact preferences to the local store.

    Empty or absent values are skipped so a merge import never wipes a
    preference the artifact did not carry.

    Returns:
        Number of preference keys restored.
    """
    restored = 0
    for key in PREFERENCE_DEFAULTS:
        if key in _DERIVED_PREFERENCES:
            continue
        value = values.get(key)
        if is_empty_value(value):
            continue
        preferences.set(key, value)
        restored += 1
        if isinstance(value, list):
            warnings.append(f"Restored {len(value)} item(s) in preference {key}")
    return restored


# ============================================================================
# Entry points
# ============================================================================


def _failure(error: str, version: str, result: MigrationResult | None = None) -> MigrationResult:
    if result is None:
        return MigrationResult(success=False, error=error, version=version)
    result.success = False
    result.error = error
    return result


def _prepare(
    raw: Mapping[str, Any], options: ImportOptions
) -> tuple[Snapshot, list[str], str]:
    """Validate, verify and migrate.  Raises fatal ``SnapshotError``s."""
    if not validate_structure(raw):
        raise StructuralError("Artifact does not have a valid structure")

    if options.skip_validation:
        logger.warning("Checksum validation skipped")
    elif not verify_checksum(raw):
        raise IntegrityError(
            "Artifact is corrupt or was modified (checksum mismatch)"
        )

    info = classify_version(raw)
    if not info.is_compatible:
        raise CompatibilityError(
            f"Version {info.version} is not compatible with this system"
        )

    warnings: list[str] = []
    data = dict(raw)
    if info.needs_migration:
        data, warnings = migrate_snapshot(data)

    try:
        snapshot = Snapshot.model_validate(data)
    except ValidationError as e:
        raise StructuralError(f"Artifact does not match the snapshot schema: {e}") from e
    return snapshot, warnings, info.version


async def import_snapshot(
    store: BackingStore,
    snapshot: Snapshot | Mapping[str, Any],
    options: ImportOptions | None = None,
    preferences: PreferenceStore | None = None,
) -> MigrationResult:
    """Validate, migrate and write a snapshot into the backing store.

    Args:
        store: Destination backing store.
        snapshot: ``Snapshot`` or raw artifact dict.
        options: Import mode and tuning; defaults to replace mode with
            checksum validation.
        preferences: Local preference store to restore into.  ``None``
            skips preference restore.

    Returns:
        ``MigrationResult``.  Never raises for store or artifact errors.
    """
    options = options or ImportOptions()
    raw = snapshot.to_wire() if isinstance(snapshot, Snapshot) else snapshot

    try:
        prepared, warnings, version = _prepare(raw, options)
    except SnapshotError as e:
        logger.error("Import rejected: %s", e)
        version = raw.get("version") if isinstance(raw, Mapping) else None
        return _failure(str(e), version or "unknown")

    result = MigrationResult(success=True, warnings=warnings, version=version)
    try:
        await _apply(store, prepared, options, preferences, result)
    except Exception as e:
        logger.exception("Import failed after %d record(s)", result.migrated_records)
        return _failure(f"Error while importing data: {e}", version, result)

    logger.info(
        "Import complete: %d imported, %d skipped",
        result.migrated_records,
        result.skipped_records,
    )
    return result


async def _apply(
    store: BackingStore,
    snapshot: Snapshot,
    options: ImportOptions,
    preferences: PreferenceStore | None,
    result: MigrationResult,
) -> None:
    await store.init()

    unreachable: dict[str, CollectionError] = {}
    if not options.merge_mode:
        logger.info("Replace mode: clearing existing data")
        for collection in COLLECTIONS:
            try:
                await store.clear(collection)
            except CollectionError as e:
                unreachable[collection] = e
        result.warnings.append("Existing data removed (replace mode)")

    if options.refresh_toner_levels and snapshot.collections["printers"]:
        printers, adjusted = refresh_printers(snapshot.collections["printers"])
        snapshot.collections["printers"] = printers
        if adjusted:
            result.warnings.append(
                f"{adjusted} printer(s) had toner levels updated automatically during import"
            )

    for collection in COLLECTIONS:
        records = snapshot.collections.get(collection) or []
        if not records:
            continue
        if collection in unreachable:
            result.skipped_records += len(records)
            result.warnings.append(
                f"Collection {collection} skipped ({len(records)} record(s)): "
                f"{unreachable[collection]}"
            )
            continue
        await _import_collection(store, collection, records, options, result)

    if preferences is not None:
        restore_preferences(preferences, snapshot.preferences, result.warnings)


async def import_artifact(
    store: BackingStore,
    source: str | bytes | Path,
    options: ImportOptions | None = None,
    preferences: PreferenceStore | None = None,
) -> MigrationResult:
    """Parse an artifact (path, JSON text or bytes) and import it.

    See ``import_snapshot``.  Unreadable input yields a failed result.
    """
    try:
        raw = parse_artifact(source)
    except StructuralError as e:
        logger.error("Import rejected: %s", e)
        return MigrationResult(success=False, error=str(e))
    return await import_snapshot(store, raw, options, preferences)


async def delete_all_data(store: BackingStore) -> DeleteResult:
    """Clear every known collection.  Stops at the first failure."""
    result = DeleteResult(success=True)
    try:
        await store.init()
        for collection in COLLECTIONS:
            await store.clear(collection)
            result.cleared.append(collection)
    except Exception as e:
        logger.exception("Delete all data failed")
        result.success = False
        result.error = str(e)
    return result
