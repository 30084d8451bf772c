"""printops: snapshot export/import and schema migration for the printer dashboard.

Exports the dashboard's backing store to a versioned, checksummed JSON
artifact, imports artifacts from any supported version (migrating them on
the way in), and moves pre-migration local data to the hosted store.

Usage:
    from printops import AsyncPostgresStore, build_export_artifact, import_artifact
    from printops import ImportOptions, load_config, get_backing_store
"""

__version__ = "0.1.0"

# Adapters
from printops.adapters.base import BackingStore, LocalStore, PreferenceStore, SupportsUpsert
from printops.adapters.local import AsyncSqliteLocalStore
from printops.adapters.postgres import AsyncPostgresStore

# Config
from printops.config.loader import load_config
from printops.config.models import AppConfig, StoreProfile

# Errors
from printops.errors import (
    AdapterError,
    CollectionError,
    CompatibilityError,
    IntegrityError,
    RecordError,
    SnapshotError,
    StructuralError,
)

# Factory
from printops.factory import (
    ProfileNotFoundError,
    get_backing_store,
    get_local_store,
    get_preference_store,
    resolve_url,
)

# Preferences
from printops.preferences import JsonPreferenceStore

# Snapshot pipeline
from printops.snapshot import (
    ImportOptions,
    LocalMigrationResult,
    MigrationResult,
    Snapshot,
    build_export_artifact,
    build_snapshot,
    delete_all_data,
    import_artifact,
    import_snapshot,
    inspect_artifact,
    migrate_local_to_remote,
)

__all__ = [
    # Adapters
    "BackingStore",
    "LocalStore",
    "PreferenceStore",
    "SupportsUpsert",
    "AsyncPostgresStore",
    "AsyncSqliteLocalStore",
    "JsonPreferenceStore",
    # Config
    "load_config",
    "AppConfig",
    "StoreProfile",
    # Errors
    "SnapshotError",
    "StructuralError",
    "IntegrityError",
    "CompatibilityError",
    "RecordError",
    "CollectionError",
    "AdapterError",
    # Factory
    "get_backing_store",
    "get_local_store",
    "get_preference_store",
    "resolve_url",
    "ProfileNotFoundError",
    # Snapshot pipeline
    "Snapshot",
    "ImportOptions",
    "MigrationResult",
    "LocalMigrationResult",
    "build_snapshot",
    "build_export_artifact",
    "inspect_artifact",
    "import_snapshot",
    "import_artifact",
    "delete_all_data",
    "migrate_local_to_remote",
]

# Optional: AsyncSupabaseStore (only available with supabase extra)
try:
    from printops.adapters.supabase import AsyncSupabaseStore

    __all__.append("AsyncSupabaseStore")
except ImportError:
    # supabase extra not installed -- AsyncSupabaseStore unavailable
    pass
