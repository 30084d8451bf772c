"""Pydantic models for printops.toml."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Configuration Models
# ============================================================================


class StoreProfile(BaseModel):
    """Backing store connection profile from printops.toml."""

    provider: Literal["supabase", "postgres"] = "postgres"
    url: str
    key: str | None = None  # Supabase API key; falls back to SUPABASE_KEY
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution


class LocalStoreConfig(BaseModel):
    """Embedded pre-migration store."""

    path: str = "printops-local.db"


class PreferencesConfig(BaseModel):
    """Local preference file."""

    path: str = "preferences.json"


class ImportConfig(BaseModel):
    """Defaults for import and local migration."""

    batch_size: int = Field(default=100, ge=1)
    progress_interval: int = Field(default=10, ge=1)


class AppConfig(BaseModel):
    """Complete configuration from printops.toml."""

    model_config = ConfigDict(populate_by_name=True)

    profiles: dict[str, StoreProfile] = Field(default_factory=dict)
    default_profile: str | None = None
    local: LocalStoreConfig = Field(default_factory=LocalStoreConfig)
    preferences: PreferencesConfig = Field(default_factory=PreferencesConfig)
    import_: ImportConfig = Field(default_factory=ImportConfig, alias="import")
