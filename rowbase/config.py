"""
Configuration settings for rowbase.

Uses Pydantic Settings to load environment variables for the backend
connection, identity pool sizing, timestamp formatting and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_backend: Literal["sqlite", "postgres"] = Field("sqlite", alias="DB_BACKEND")
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("rowbase", alias="DB_NAME")
    sqlite_path: str = Field(":memory:", alias="SQLITE_PATH")
    db_statement_timeout_ms: int = Field(0, alias="DB_STATEMENT_TIMEOUT_MS")
    default_connection: Optional[str] = Field(None, alias="DEFAULT_CONNECTION")

    # Record engine
    identity_pool_size: int = Field(100, alias="IDENTITY_POOL_SIZE", ge=0)
    format_dates: bool = Field(True, alias="FORMAT_DATES")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
