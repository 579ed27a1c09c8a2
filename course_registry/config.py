"""Configuration helpers for the course registry."""

from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class _Settings(BaseSettings):
    course_key_prefix: str = Field(default="course:", alias="COURSE_KEY_PREFIX")
    course_index_key: str = Field(default="courses:index", alias="COURSE_INDEX_KEY")
    course_store_backend: str = Field(default="file", alias="COURSE_STORE_BACKEND")
    course_store_path: str = Field(
        default="data/courses/store.json", alias="COURSE_STORE_PATH"
    )
    cors_allow_origins: str = Field(
        default="http://localhost,http://127.0.0.1", alias="CORS_ALLOW_ORIGINS"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", populate_by_name=True
    )

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> _Settings:
    """Return cached application settings."""

    return _Settings()  # type: ignore[call-arg]


def reset_settings_cache() -> None:
    """Clear cached settings (primarily for tests)."""

    get_settings.cache_clear()
