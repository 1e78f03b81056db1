"""Configuration management for the Deployer installer.

All configuration is loaded from environment variables and/or an
``installer.env`` file next to the project. These settings describe how the
installer itself behaves; the application's own ``.env`` is the file being
written, not read, by the wizard.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root detection
PROJECT_ROOT = Path(__file__).resolve().parents[2]
INSTALLER_ENV_FILE = PROJECT_ROOT / "installer.env"

# Sentinel written into APP_KEY by the example template
PLACEHOLDER_KEY = "SomeRandomString"


class Settings(BaseSettings):
    """
    Runtime configuration powered by environment variables and overrides.

    All settings can be configured via:
    1. Environment variables (highest priority)
    2. installer.env in the project root (loaded automatically)
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=INSTALLER_ENV_FILE if INSTALLER_ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # Application being installed
    # -------------------------------------------------------------------------
    base_path: Path = Field(
        default_factory=Path.cwd,
        alias="INSTALLER_BASE_PATH",
        description="Root directory of the application being installed.",
    )
    env_file_name: str = Field(default=".env", alias="INSTALLER_ENV_FILE_NAME")
    env_example_name: str = Field(default=".env.example", alias="INSTALLER_ENV_EXAMPLE_NAME")
    environment: str = Field(
        default="production",
        alias="APP_ENV",
        description="'local' enables seeding and skips cache compilation.",
    )
    placeholder_key: str = Field(default=PLACEHOLDER_KEY, alias="INSTALLER_PLACEHOLDER_KEY")
    update_command: str = Field(
        default="deployer-install update",
        alias="INSTALLER_UPDATE_COMMAND",
        description="Command named in the warning shown when already installed.",
    )

    # -------------------------------------------------------------------------
    # Requirements
    # -------------------------------------------------------------------------
    min_python_version: str = Field(default="3.10.0", alias="INSTALLER_MIN_PYTHON_VERSION")

    # -------------------------------------------------------------------------
    # Database
    # -------------------------------------------------------------------------
    db_connect_timeout: int = Field(default=2, alias="INSTALLER_DB_CONNECT_TIMEOUT", ge=1)
    sqlite_database: str = Field(
        default="storage/database.sqlite",
        alias="INSTALLER_SQLITE_DATABASE",
        description="SQLite file path, relative to the base path.",
    )

    # -------------------------------------------------------------------------
    # Application / mail defaults
    # -------------------------------------------------------------------------
    fallback_locale: str = Field(default="en", alias="INSTALLER_FALLBACK_LOCALE")
    lang_directory: str = Field(default="resources/lang", alias="INSTALLER_LANG_DIRECTORY")
    default_from_name: str = Field(default="Deployer", alias="INSTALLER_DEFAULT_FROM_NAME")
    default_from_address: str = Field(
        default="deployer@deploy.app", alias="INSTALLER_DEFAULT_FROM_ADDRESS"
    )

    # -------------------------------------------------------------------------
    # Collaborators
    # -------------------------------------------------------------------------
    alembic_ini: str = Field(default="alembic.ini", alias="INSTALLER_ALEMBIC_INI")
    seed_command: Optional[str] = Field(
        default=None,
        alias="INSTALLER_SEED_COMMAND",
        description="Shell command run from the base path to seed the database.",
    )
    source_directory: str = Field(default="app", alias="INSTALLER_SOURCE_DIRECTORY")

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = Field(default="WARNING", alias="LOG_LEVEL")
    log_format: str = Field(default="text", alias="LOG_FORMAT")  # "text" or "json"
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Ensure log format is valid."""
        lower = v.lower()
        if lower not in {"text", "json"}:
            raise ValueError("log_format must be 'text' or 'json'")
        return lower

    @field_validator("min_python_version")
    @classmethod
    def validate_min_python_version(cls, v: str) -> str:
        """Ensure the minimum version is dotted integers."""
        parts = v.strip().split(".")
        if not parts or not all(part.isdigit() for part in parts):
            raise ValueError("min_python_version must look like '3.10.0'")
        return v.strip()

    # -------------------------------------------------------------------------
    # Path helpers
    # -------------------------------------------------------------------------

    def path(self, relative: str = "") -> Path:
        """Resolve a path relative to the application base path."""
        return Path(self.base_path) / relative if relative else Path(self.base_path)

    @property
    def env_path(self) -> Path:
        return self.path(self.env_file_name)

    @property
    def env_example_path(self) -> Path:
        return self.path(self.env_example_name)

    def is_local(self) -> bool:
        """Local (development) installs seed the database and skip cache compilation."""
        return self.environment.lower() == "local"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once and cached. To reload settings,
    call `get_settings.cache_clear()` first.

    Returns:
        Settings object with all configuration.
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Clear settings cache and reload from environment.

    Useful for testing or after changing INSTALLER_* variables.
    """
    get_settings.cache_clear()
    return get_settings()
