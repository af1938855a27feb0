# larder/config.py
"""
Larder: central project configuration
-------------------------------------

* Uses **pydantic-settings** (Pydantic v2).
* Values come from a ``.env`` file or environment variables.
* Safe defaults let the library and the test-suite run without any
  environment at all.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # ───────────────────────── Database ────────────────────────────────
    database_url: str = Field(
        "sqlite+aiosqlite:///./larder.db", alias="DATABASE_URL"
    )

    # ────────────────────────── Matching ───────────────────────────────
    search_similarity_threshold: float = Field(0.2, alias="SEARCH_SIMILARITY_THRESHOLD")
    search_limit: int = Field(5, alias="SEARCH_LIMIT")
    auto_match_min_score: float = Field(0.75, alias="AUTO_MATCH_MIN_SCORE")
    min_search_term_length: int = Field(2, alias="MIN_SEARCH_TERM_LENGTH")

    # ────────────────────────── Commit ─────────────────────────────────
    generated_sku_prefix: str = Field("RCP", alias="GENERATED_SKU_PREFIX")

    # ────────────────────────── Logging ────────────────────────────────
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # ─────────────────── pydantic-settings config ──────────────────────
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def db_url(self) -> str:
        return self.database_url


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


settings = get_settings()
