"""Runtime settings loaded from the environment."""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the documentation index, snapshots and cache."""

    model_config = SettingsConfigDict(
        env_prefix="NEXTJS_DOCS_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    data_dir: Path = Field(default=Path("data"), description="Directory holding snapshot files")
    docs_dir: Path = Field(default=Path("docs-data"), description="Directory holding raw documentation checkouts")
    default_version: str = Field(default="latest", description="Version label used when none is requested or detected")
    docs_base_url: str = Field(default="https://nextjs.org/docs")
    cache_ttl: int = Field(default=3600, ge=1, description="Search result TTL in seconds")
    redis_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("NEXTJS_DOCS_REDIS_URL", "REDIS_URL", "KV_URL"),
        description="Redis connection URL; caching is disabled when unset",
    )
    default_search_limit: int = Field(default=10, ge=1)
    max_search_results: int = Field(default=50, ge=1)
