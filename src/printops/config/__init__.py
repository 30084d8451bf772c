"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from printops.config import load_config, StoreProfile, AppConfig
"""

from printops.config.loader import load_config
from printops.config.models import (
    AppConfig,
    ImportConfig,
    LocalStoreConfig,
    PreferencesConfig,
    StoreProfile,
)

__all__ = [
    "load_config",
    "AppConfig",
    "ImportConfig",
    "LocalStoreConfig",
    "PreferencesConfig",
    "StoreProfile",
]
