"""
Application configuration using pydantic-settings.

Loads settings from environment variables (and optional .env file) with sensible defaults.

Fields loaded (env var names in parentheses):
- app_env (APP_ENV)
- log_level (LOG_LEVEL)
- storage_backend (STORAGE_BACKEND): "file" or "sql"
- data_dir (DATA_DIR)
- tenants_file (TENANTS_FILE)
- requests_file (REQUESTS_FILE)
- db_url (DB_URL or DATABASE_URL)
- default_tenant_name (DEFAULT_TENANT_NAME)

Usage:
    from hwid_auth.core.config import get_settings
    settings = get_settings()
    print(settings.tenants_path)
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment / logging
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Which persistence backend the service is wired to
    storage_backend: Literal["file", "sql"] = Field(default="file", alias="STORAGE_BACKEND")

    # File backend locations (relative file names resolve under data_dir)
    data_dir: str = Field(default="./data", alias="DATA_DIR")
    tenants_file: str = Field(default="tenants.json", alias="TENANTS_FILE")
    requests_file: str = Field(default="hwid_requests.jsonl", alias="REQUESTS_FILE")

    # SQL backend URL (accept DB_URL or DATABASE_URL)
    db_url: str = Field(
        default="sqlite:///./hwid_auth.db",
        validation_alias=AliasChoices("DB_URL", "DATABASE_URL"),
    )

    # Display label used when an approval omits the tenant name
    default_tenant_name: str = Field(default="Auto-added", alias="DEFAULT_TENANT_NAME")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def _resolve(self, name: str) -> str:
        if os.path.isabs(name):
            return name
        return os.path.join(self.data_dir, name)

    @property
    def tenants_path(self) -> str:
        return self._resolve(self.tenants_file)

    @property
    def requests_path(self) -> str:
        return self._resolve(self.requests_file)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return a cached Settings instance.
    """
    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "get_settings"]
