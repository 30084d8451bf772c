"""Snapshot export, validation, schema migration and import.

Usage:
    from printops.snapshot import build_export_artifact, import_artifact

    path = await build_export_artifact(store, prefs)
    result = await import_artifact(store, path, ImportOptions(merge_mode=True), prefs)
"""

from printops.snapshot.builder import build_export_artifact, build_snapshot, write_artifact
from printops.snapshot.checksum import compute_checksum, verify_checksum
from printops.snapshot.importer import delete_all_data, import_artifact, import_snapshot
from printops.snapshot.local_migration import (
    check_local_data_exists,
    migrate_local_to_remote,
)
from printops.snapshot.migrator import migrate_snapshot
from printops.snapshot.models import (
    COLLECTIONS,
    CURRENT_VERSION,
    SUPPORTED_VERSIONS,
    ArtifactReport,
    DeleteResult,
    ImportOptions,
    LocalMigrationResult,
    MigrationProgress,
    MigrationResult,
    Snapshot,
    SnapshotMetadata,
    VersionInfo,
)
from printops.snapshot.validator import (
    classify_version,
    inspect_artifact,
    parse_artifact,
    validate_structure,
)

__all__ = [
    # Export
    "build_snapshot",
    "build_export_artifact",
    "write_artifact",
    # Integrity
    "compute_checksum",
    "verify_checksum",
    # Validation
    "parse_artifact",
    "validate_structure",
    "classify_version",
    "inspect_artifact",
    # Migration
    "migrate_snapshot",
    # Import
    "import_snapshot",
    "import_artifact",
    "delete_all_data",
    "migrate_local_to_remote",
    "check_local_data_exists",
    # Models
    "COLLECTIONS",
    "CURRENT_VERSION",
    "SUPPORTED_VERSIONS",
    "Snapshot",
    "SnapshotMetadata",
    "VersionInfo",
    "ImportOptions",
    "MigrationResult",
    "MigrationProgress",
    "LocalMigrationResult",
    "DeleteResult",
    "ArtifactReport",
]
