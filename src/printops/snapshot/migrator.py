"""Schema migration of older artifacts to the current version.

Exactly one migration function exists per supported source version and
each maps straight to ``CURRENT_VERSION``; the differences between any
old version and the current one are purely additive.  Every function:

- adds missing record fields with safe defaults (never overwrites or
  removes a field that is present),
- initializes collections and preference keys the old version lacked,
- appends human-readable warnings describing what was defaulted.

``migrate_snapshot`` works on a deep copy; the caller's dict is untouched.

Usage:
    from printops.snapshot.migrator import migrate_snapshot

    migrated, warnings = migrate_snapshot(raw)
"""

import copy
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from printops.errors import CompatibilityError
from printops.snapshot.models import (
    COLLECTIONS,
    CURRENT_VERSION,
    OLDEST_VERSION,
    SUPPORTED_VERSIONS,
    default_preferences,
)

logger = logging.getLogger(__name__)

# Toner model assumed for printers exported before the field existed.
DEFAULT_TONER_MODEL = "W9004mc"

MigrationStep = Callable[[dict[str, Any], list[str], str], dict[str, Any]]


# ============================================================================
# Shared helpers
# ============================================================================


def _default_fields(
    data: dict[str, Any],
    collection: str,
    defaults: dict[str, Any],
    warnings: list[str],
) -> None:
    """Fill absent (or null) fields of every record in ``collection``.

    A default may be a callable taking the record.
    """
    records = data.get(collection) or []
    filled: dict[str, int] = {}
    for record in records:
        if not isinstance(record, dict):
            continue
        for field, default in defaults.items():
            if record.get(field) is not None:
                continue
            record[field] = default(record) if callable(default) else default
            filled[field] = filled.get(field, 0) + 1

    for field, count in filled.items():
        warnings.append(f"{collection}: defaulted '{field}' on {count} record(s)")


def _ensure_collections(data: dict[str, Any], warnings: list[str]) -> None:
    added = [name for name in COLLECTIONS if not isinstance(data.get(name), list)]
    for name in added:
        data[name] = []
    if added:
        warnings.append(f"Initialized missing collections: {', '.join(added)}")


def _ensure_preferences(snapshot: dict[str, Any], warnings: list[str]) -> None:
    prefs = snapshot.get("userPreferences")
    if not isinstance(prefs, dict):
        snapshot["userPreferences"] = default_preferences()
        warnings.append("Initialized user preferences with default values")
        return

    added = []
    for key, default in default_preferences().items():
        if key not in prefs:
            prefs[key] = default
            added.append(key)
    if added:
        warnings.append(f"Initialized missing preferences: {', '.join(added)}")


# ============================================================================
# Per-version migrations
# ============================================================================


def migrate_from_v1_0(
    snapshot: dict[str, Any], warnings: list[str], now: str
) -> dict[str, Any]:
    """1.0 predates backup toners, loans, fusers, tickets and most timestamps."""
    data = snapshot["data"]
    _ensure_preferences(snapshot, warnings)
    _ensure_collections(data, warnings)

    _default_fields(
        data,
        "printers",
        {
            "hasBackupToner": False,
            "motorCyclePending": False,
            "tonerModel": DEFAULT_TONER_MODEL,
            "updatedAt": now,
            "createdAt": now,
        },
        warnings,
    )
    _default_fields(
        data,
        "inventory",
        {"onLoan": False, "loanMessage": "", "updatedAt": now, "createdAt": now},
        warnings,
    )
    _default_fields(
        data,
        "changes",
        {
            "isBackup": False,
            "motorCyclePending": False,
            "createdAt": lambda r: r.get("changeDate") or now,
        },
        warnings,
    )
    _default_fields(
        data,
        "orders",
        {"emailSent": False, "updatedAt": now},
        warnings,
    )

    warnings.insert(0, "Data migrated from v1.0 - new fields added with default values")
    return snapshot


def migrate_from_v1_1(
    snapshot: dict[str, Any], warnings: list[str], now: str
) -> dict[str, Any]:
    """1.1 lacks the pending motor-cycle flag on printers."""
    data = snapshot["data"]
    _ensure_preferences(snapshot, warnings)
    _ensure_collections(data, warnings)

    _default_fields(
        data,
        "printers",
        {"motorCyclePending": False, "updatedAt": now},
        warnings,
    )

    warnings.insert(0, "Data migrated from v1.1 - minor updates applied")
    return snapshot


def migrate_from_v1_2(
    snapshot: dict[str, Any], warnings: list[str], now: str
) -> dict[str, Any]:
    """1.2 records already match; only containers may be missing."""
    _ensure_preferences(snapshot, warnings)
    _ensure_collections(snapshot["data"], warnings)

    warnings.insert(0, "Data migrated from v1.2 - minimal migration required")
    return snapshot


MIGRATIONS: dict[str, MigrationStep] = {
    "1.0": migrate_from_v1_0,
    "1.1": migrate_from_v1_1,
    "1.2": migrate_from_v1_2,
}


# ============================================================================
# Entry point
# ============================================================================


def migrate_snapshot(raw: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Bring an artifact dict to ``CURRENT_VERSION``.

    Args:
        raw: Structurally valid artifact dict (see ``validate_structure``).

    Returns:
        Tuple of (migrated copy, advisory warnings).  An artifact already at
        the current version comes back as an unchanged copy with no
        warnings.

    Raises:
        CompatibilityError: If the version is not supported.
    """
    version = raw.get("version") or OLDEST_VERSION
    if version not in SUPPORTED_VERSIONS:
        raise CompatibilityError(
            f"Version {version} is not compatible with this system"
        )

    snapshot = copy.deepcopy(raw)
    if version == CURRENT_VERSION:
        return snapshot, []

    if not isinstance(snapshot.get("data"), dict):
        snapshot["data"] = {}

    warnings: list[str] = []
    now = datetime.now(timezone.utc).isoformat()
    logger.info("Migrating artifact from %s to %s", version, CURRENT_VERSION)
    snapshot = MIGRATIONS[version](snapshot, warnings, now)

    snapshot["version"] = CURRENT_VERSION
    metadata = snapshot.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
        snapshot["metadata"] = metadata
    metadata["appVersion"] = CURRENT_VERSION

    return snapshot, warnings
