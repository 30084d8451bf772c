"""Store factory.

Resolves the active backing store profile from printops.toml and builds
the concrete adapters.

Profile priority:
1. Explicit ``profile_name`` (``--profile`` on the CLI)
2. ``{env_prefix}DB_PROFILE`` environment variable
3. ``default_profile`` in printops.toml
"""

import logging
import os
from urllib.parse import quote

from printops.adapters.base import BackingStore, LocalStore, PreferenceStore
from printops.adapters.local import AsyncSqliteLocalStore
from printops.adapters.postgres import AsyncPostgresStore
from printops.config.models import AppConfig, StoreProfile
from printops.preferences import JsonPreferenceStore

logger = logging.getLogger(__name__)


class ProfileNotFoundError(Exception):
    """Raised when no backing store profile is configured."""

    pass


# ============================================================================
# Profile resolution
# ============================================================================


def get_active_profile_name(
    config: AppConfig,
    profile_name: str | None = None,
    env_prefix: str = "",
) -> str:
    """Get the active profile name.

    Args:
        config: Loaded configuration.
        profile_name: Explicit choice; wins when given.
        env_prefix: Prefix for the ``DB_PROFILE`` environment variable.

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    if profile_name:
        return profile_name

    env_profile = os.environ.get(f"{env_prefix}DB_PROFILE")
    if env_profile:
        return env_profile

    if config.default_profile:
        return config.default_profile

    available = ", ".join(config.profiles) or "(none)"
    raise ProfileNotFoundError(
        "No backing store profile configured.\n"
        f"Use --profile <name>, set {env_prefix}DB_PROFILE, or add "
        "default_profile to printops.toml.\n"
        f"Available profiles: {available}"
    )


def get_active_profile(
    config: AppConfig,
    profile_name: str | None = None,
    env_prefix: str = "",
) -> tuple[str, StoreProfile]:
    """Get active profile name and configuration.

    Raises:
        ProfileNotFoundError: If no profile is configured or the name is
            not in printops.toml.
    """
    name = get_active_profile_name(config, profile_name, env_prefix)
    if name not in config.profiles:
        available = ", ".join(config.profiles) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{name}' not found in printops.toml.\n"
            f"Available profiles: {available}"
        )
    return name, config.profiles[name]


def resolve_url(profile: StoreProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Store profile from config

    Returns:
        Connection URL with password substituted
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def resolve_supabase_key(profile: StoreProfile) -> str:
    """Profile key, else ``SUPABASE_KEY``, else ``SUPABASE_SERVICE_KEY``.

    Raises:
        ProfileNotFoundError: If no key is available.
    """
    key = (
        profile.key
        or os.environ.get("SUPABASE_KEY")
        or os.environ.get("SUPABASE_SERVICE_KEY")
    )
    if not key:
        raise ProfileNotFoundError(
            "Supabase profile has no key.\n"
            "Set 'key' in the profile or SUPABASE_KEY in the environment."
        )
    return key


# ============================================================================
# Store factories
# ============================================================================


def get_backing_store(profile: StoreProfile) -> BackingStore:
    """Build the backing store adapter for ``profile``.

    Returns:
        ``AsyncSupabaseStore`` or ``AsyncPostgresStore`` (not yet connected)

    Raises:
        ImportError: If the profile needs the supabase extra and it is
            not installed.
    """
    if profile.provider == "supabase":
        try:
            from printops.adapters.supabase import AsyncSupabaseStore
        except ImportError as e:
            raise ImportError(
                "Supabase profiles need the supabase extra: "
                "pip install printops[supabase]"
            ) from e
        logger.info("Using Supabase backing store at %s", profile.url)
        return AsyncSupabaseStore(url=profile.url, key=resolve_supabase_key(profile))

    logger.info("Using PostgreSQL backing store")
    return AsyncPostgresStore(database_url=resolve_url(profile))


def get_local_store(config: AppConfig) -> LocalStore:
    """Build the embedded local store from ``[local] path``."""
    return AsyncSqliteLocalStore(config.local.path)


def get_preference_store(config: AppConfig) -> PreferenceStore:
    """Build the preference store from ``[preferences] path``."""
    return JsonPreferenceStore(config.preferences.path)
