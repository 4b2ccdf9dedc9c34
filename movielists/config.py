"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Movies", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_language: str = Field(default="en-US", alias="TMDB_LANGUAGE")
    trending_window: Literal["day", "week"] = Field(
        default="day", alias="TRENDING_WINDOW"
    )

    lists_api_url: HttpUrl = Field(
        default="https://movies-api.chapmanio.dev/api", alias="LISTS_API_URL"
    )
    auth_cookie_name: str = Field(default="jwt", alias="AUTH_COOKIE_NAME")

    http_timeout_seconds: float = Field(
        default=15.0, alias="HTTP_TIMEOUT", ge=1.0, le=120.0
    )
    cast_preview_count: int = Field(
        default=8, alias="CAST_PREVIEW_COUNT", ge=1, le=50
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("trending_window", mode="before")
    @classmethod
    def _normalise_trending_window(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("tmdb_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def tmdb_base_url(self) -> str:
        """Return the TMDB base URL without a trailing slash."""

        return str(self.tmdb_api_url).rstrip("/")

    @property
    def lists_base_url(self) -> str:
        """Return the list/account API base URL without a trailing slash."""

        return str(self.lists_api_url).rstrip("/")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
