"""Store adapters package.

Provides the ``BackingStore``/``LocalStore`` Protocols and concrete async
implementations: ``AsyncPostgresStore`` (hosted tables over PostgreSQL),
``AsyncSqliteLocalStore`` (embedded pre-migration store) and, optionally,
``AsyncSupabaseStore``.

``AsyncSupabaseStore`` is only available when the ``supabase`` extra
is installed.  A missing ``supabase`` dependency does not prevent
importing the rest of the package.

Usage:
    from printops.adapters import BackingStore, AsyncPostgresStore

    # With supabase extra installed:
    from printops.adapters import AsyncSupabaseStore
"""

from printops.adapters.base import BackingStore, LocalStore, PreferenceStore, SupportsUpsert
from printops.adapters.local import AsyncSqliteLocalStore
from printops.adapters.postgres import AsyncPostgresStore

__all__ = [
    "BackingStore",
    "LocalStore",
    "PreferenceStore",
    "SupportsUpsert",
    "AsyncPostgresStore",
    "AsyncSqliteLocalStore",
]

try:
    from printops.adapters.supabase import AsyncSupabaseStore

    __all__.append("AsyncSupabaseStore")
except ImportError:
    # supabase extra not installed -- AsyncSupabaseStore unavailable
    pass
