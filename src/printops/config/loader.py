"""Configuration loading from printops.toml."""

import tomllib
from pathlib import Path

from printops.config.models import (
    AppConfig,
    ImportConfig,
    LocalStoreConfig,
    PreferencesConfig,
    StoreProfile,
)

DEFAULT_CONFIG_NAME = "printops.toml"


def load_config(config_path: Path | str | None = None) -> AppConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to printops.toml (default: ./printops.toml)

    Returns:
        AppConfig with all profiles and settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_NAME
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config not found: {config_path}\n"
            f"Copy printops.toml.example to {DEFAULT_CONFIG_NAME} and configure your profiles."
        )

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    # Parse profiles
    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = StoreProfile(**profile_data)

    return AppConfig(
        profiles=profiles,
        default_profile=data.get("default_profile"),
        local=LocalStoreConfig(**data.get("local", {})),
        preferences=PreferencesConfig(**data.get("preferences", {})),
        import_=ImportConfig(**data.get("import", {})),
    )
