from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pathfinder.graph.builder import KNOWN_LIBRARY_BASES
from pathfinder.resolver.routes import DEFAULT_ANY_METHODS


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PATHFINDER_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Verbs the ANY marker expands to
    any_methods: tuple[str, ...] = DEFAULT_ANY_METHODS
    # Unresolved bases with these simple names are expected library classes
    ignored_base_classes: frozenset[str] = KNOWN_LIBRARY_BASES
    # >1 resolves controllers on a thread pool
    workers: int = Field(default=1, ge=1)
    log_level: str = "WARNING"

    @field_validator("any_methods")
    @classmethod
    def _upper_methods(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        out = tuple(m.strip().upper() for m in v if m.strip())
        if not out:
            raise ValueError("any_methods must name at least one HTTP method")
        return out

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.strip().upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
