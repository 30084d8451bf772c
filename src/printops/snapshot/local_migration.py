"""One-time migration of the embedded local store into the backing store.

Reads every local collection up front, then upserts record by record
(the same strategy as a merge-mode import) so it can be re-run safely.
Parents are written before children.

Usage:
    from printops.snapshot.local_migration import migrate_local_to_remote

    result = await migrate_local_to_remote(local, remote, prefs, on_progress=print)
"""

import json
import logging
from collections.abc import Callable

from printops.adapters.base import BackingStore, LocalStore, PreferenceStore
from printops.snapshot.importer import upsert_record
from printops.snapshot.models import LocalMigrationResult, MigrationProgress

logger = logging.getLogger(__name__)

# Parents before children.
MIGRATION_ORDER: tuple[str, ...] = (
    "users",
    "operators",
    "tonerModels",
    "fuserModels",
    "printers",
    "inventory",
    "orders",
    "changes",
    "loans",
    "emptyToners",
    "printerFusers",
    "tickets",
    "ticketTemplates",
)

# Scalar local preferences copied to the backing store's settings.
MIGRATED_SETTINGS: tuple[str, ...] = ("defaultUser", "defaultOperator", "activeTab")

ProgressCallback = Callable[[MigrationProgress], None]


async def check_local_data_exists(local: LocalStore) -> bool:
    """True when the local store holds at least one printer."""
    try:
        await local.init()
        printers = await local.get_all("printers")
    except Exception as e:
        logger.warning("Could not read local printers: %s", e)
        return False
    return len(printers) > 0


async def _read_local(
    local: LocalStore, errors: list[str]
) -> dict[str, list[dict]]:
    collections: dict[str, list[dict]] = {}
    for name in MIGRATION_ORDER:
        try:
            collections[name] = await local.get_all(name)
        except Exception as e:
            logger.error("Failed to read local %s: %s", name, e)
            errors.append(f"Failed to read local {name}: {e}")
            collections[name] = []
    return collections


async def _copy_settings(
    remote: BackingStore, preferences: PreferenceStore | None, errors: list[str]
) -> None:
    if preferences is None:
        return
    for key in MIGRATED_SETTINGS:
        value = preferences.get(key)
        if value is None or value == "":
            continue
        if not isinstance(value, str):
            value = json.dumps(value)
        try:
            await remote.set_setting(key, value)
        except Exception as e:
            logger.error("Failed to copy setting %s: %s", key, e)
            errors.append(f"Error copying setting {key}: {e}")


async def migrate_local_to_remote(
    local: LocalStore,
    remote: BackingStore,
    preferences: PreferenceStore | None = None,
    on_progress: ProgressCallback | None = None,
    progress_interval: int = 10,
) -> LocalMigrationResult:
    """Copy every local record into ``remote``.

    Args:
        local: Embedded source store.
        remote: Destination backing store.
        preferences: Local preferences; ``defaultUser``, ``defaultOperator``
            and ``activeTab`` are copied to the remote settings.
        on_progress: Called at the start of each collection, every
            ``progress_interval`` migrated records, and once at the end.
        progress_interval: Records between progress events.

    Returns:
        ``LocalMigrationResult``; ``success`` iff at least one record migrated.
    """
    errors: list[str] = []

    def emit(current: int, total: int, collection: str, status: str, message: str) -> None:
        if on_progress is None:
            return
        on_progress(
            MigrationProgress(
                total=total,
                current=current,
                collection=collection,
                status=status,
                message=message,
            )
        )

    try:
        await local.init()
        local_data = await _read_local(local, errors)
        total = sum(len(records) for records in local_data.values())
        if total == 0:
            logger.info("No local data to migrate")
            return LocalMigrationResult(
                success=False, message="No local data to migrate", errors=errors
            )

        logger.info("Migrating %d local record(s)", total)
        await remote.init()

        migrated = 0
        for name in MIGRATION_ORDER:
            records = local_data[name]
            if not records:
                continue
            emit(migrated, total, name, "in_progress", f"Migrating {name}...")
            for record in records:
                try:
                    await upsert_record(remote, name, record)
                except Exception as e:
                    record_id = record.get("id") if isinstance(record, dict) else None
                    logger.warning("Error in %s: %s (%s)", name, record_id, e)
                    errors.append(f"Error in {name}: {record_id}")
                    continue
                migrated += 1
                if migrated % progress_interval == 0:
                    emit(
                        migrated,
                        total,
                        name,
                        "in_progress",
                        f"Migrated {migrated} of {total} records",
                    )

        await _copy_settings(remote, preferences, errors)

        emit(migrated, total, "all", "completed", "Migration completed")
        logger.info("Local migration complete: %d/%d record(s)", migrated, total)

        return LocalMigrationResult(
            success=migrated > 0,
            message=f"Migrated {migrated} of {total} records successfully",
            errors=errors,
            migrated_records=migrated,
            total_records=total,
        )
    except Exception as e:
        logger.exception("Local migration failed")
        emit(0, 0, "error", "error", f"Migration error: {e}")
        return LocalMigrationResult(
            success=False,
            message=f"Migration error: {e}",
            errors=[*errors, str(e)],
        )
