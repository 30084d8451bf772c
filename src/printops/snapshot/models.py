"""Snapshot artifact and pipeline result models.

The artifact keeps the wire names of the dashboard's original export
format (``exportDate``, ``data``, ``userPreferences``, ...) through pydantic
aliases, while Python code uses descriptive attribute names.

Usage:
    from printops.snapshot.models import Snapshot, MigrationResult

    snapshot = Snapshot.model_validate(raw_json_dict)
    snapshot.collections["printers"]
    snapshot.to_wire()          # dict ready for json.dump
"""

import copy
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ============================================================================
# Constants
# ============================================================================

CURRENT_VERSION = "2.0"
OLDEST_VERSION = "1.0"
SUPPORTED_VERSIONS: tuple[str, ...] = ("1.0", "1.1", "1.2", "2.0")

PRODUCER_NAME = "Printer Management System"
EXPORTED_BY = "Local System"

# Fixed enumeration order for export, import and deletion.
COLLECTIONS: tuple[str, ...] = (
    "printers",
    "inventory",
    "orders",
    "changes",
    "loans",
    "emptyToners",
    "users",
    "operators",
    "tonerModels",
    "fuserModels",
    "printerFusers",
    "tickets",
    "ticketTemplates",
)

PREFERENCE_DEFAULTS: dict[str, Any] = {
    "dailyReportPrinters": [],
    "dailyReportData": [],
    "defaultPrintersTab": None,
    "copiedTickets": [],
}


def default_preferences() -> dict[str, Any]:
    """Fresh copy of the preference defaults (safe to mutate)."""
    return copy.deepcopy(PREFERENCE_DEFAULTS)


def is_empty_value(value: Any) -> bool:
    """True for ``None`` and empty strings/lists/dicts."""
    return value is None or (isinstance(value, (str, list, dict)) and len(value) == 0)


# ============================================================================
# Snapshot Artifact
# ============================================================================


class SnapshotMetadata(BaseModel):
    """Descriptive artifact metadata.  Never used for integrity."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    producer_name: str = Field(default=PRODUCER_NAME, alias="appName")
    producer_version: str = Field(default=CURRENT_VERSION, alias="appVersion")
    total_record_count: int = Field(default=0, alias="totalRecords")
    exported_by: str = Field(default=EXPORTED_BY, alias="exportedBy")


class Snapshot(BaseModel):
    """The versioned, checksummed export of every collection and preference."""

    model_config = ConfigDict(populate_by_name=True)

    version: str = CURRENT_VERSION
    exported_at: str = Field(default="", alias="exportDate")
    metadata: SnapshotMetadata = Field(default_factory=SnapshotMetadata)
    # Records stay loosely typed; malformed ones are skipped on write.
    collections: dict[str, list[Any]] = Field(alias="data")
    preferences: dict[str, Any] = Field(
        default_factory=default_preferences, alias="userPreferences"
    )
    checksum: str = ""

    @field_validator("collections", mode="before")
    @classmethod
    def _null_collections_empty(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {
                name: [] if records is None else records
                for name, records in value.items()
            }
        return value

    @field_validator("preferences", mode="before")
    @classmethod
    def _null_preferences_default(cls, value: Any) -> Any:
        return default_preferences() if value is None else value

    @field_validator("collections")
    @classmethod
    def _all_collections_present(
        cls, value: dict[str, list[Any]]
    ) -> dict[str, list[Any]]:
        for name in COLLECTIONS:
            value.setdefault(name, [])
        return value

    def to_wire(self, include_checksum: bool = True) -> dict[str, Any]:
        """Dump using artifact field names, JSON-compatible."""
        exclude = None if include_checksum else {"checksum"}
        return self.model_dump(by_alias=True, mode="json", exclude=exclude)

    @property
    def record_count(self) -> int:
        return sum(len(records) for records in self.collections.values())


# ============================================================================
# Pipeline Results
# ============================================================================


class VersionInfo(BaseModel):
    """Version classification of an artifact."""

    version: str
    is_compatible: bool
    needs_migration: bool


class ImportOptions(BaseModel):
    """How an artifact is applied to the backing store.

    Attributes:
        merge_mode: ``True`` upserts alongside existing data; ``False``
            clears every collection first (replace mode).
        skip_validation: Do not verify the checksum.
        batch_size: Records per bulk insert in replace mode.
        refresh_toner_levels: Catch printer toner levels up to now
            before writing (changes imported values).
    """

    merge_mode: bool = False
    skip_validation: bool = False
    batch_size: int = Field(default=100, ge=1)
    refresh_toner_levels: bool = False


class MigrationResult(BaseModel):
    """Outcome of one import attempt.

    ``success`` stays ``True`` when individual records were skipped; it is
    ``False`` only for fatal validation errors or unexpected exceptions.
    """

    success: bool
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)
    migrated_records: int = 0
    skipped_records: int = 0
    version: str = "unknown"


class MigrationProgress(BaseModel):
    """Progress event emitted during a local-to-remote migration."""

    total: int
    current: int
    collection: str
    status: Literal["in_progress", "completed", "error"]
    message: str


class LocalMigrationResult(BaseModel):
    """Outcome of a local-to-remote migration run."""

    success: bool
    message: str
    errors: list[str] = Field(default_factory=list)
    migrated_records: int = 0
    total_records: int = 0


class DeleteResult(BaseModel):
    """Outcome of clearing every collection."""

    success: bool
    error: str | None = None
    cleared: list[str] = Field(default_factory=list)


class ArtifactReport(BaseModel):
    """Read-only inspection of an artifact (no store access)."""

    valid: bool
    version: str = "unknown"
    is_compatible: bool = False
    needs_migration: bool = False
    checksum_valid: bool = False
    exported_at: str | None = None
    counts: dict[str, int] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
