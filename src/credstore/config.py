"""Runtime settings for credstore.

``StoreSettings`` loads ``CREDSTORE_*`` environment variables through
pydantic-settings; keyword arguments take priority over the environment.
"""

from __future__ import annotations

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from credstore.query.engine import DEFAULT_PAGE_SIZE, REQUEST_PAGE_SIZE

DEFAULT_DATABASE_URL = "sqlite:///./credstore.db"


def get_database_url(url: str | None = None) -> str:
    """Resolve the store URL from an explicit argument, CREDSTORE_URL, or the default.

    Priority:
    1. Explicit URL argument
    2. CREDSTORE_URL environment variable
    3. Default: sqlite:///./credstore.db
    """
    if url:
        return url
    if env_url := os.getenv("CREDSTORE_URL"):
        return env_url
    return DEFAULT_DATABASE_URL


class StoreSettings(BaseSettings):
    """Configuration of a ``CredStore`` instance.

    Environment: CREDSTORE_URL, CREDSTORE_ECHO, CREDSTORE_SNAPSHOT_TTL,
    CREDSTORE_PAGE_SIZE, CREDSTORE_PAGE_SIZES (JSON), CREDSTORE_ACTOR,
    CREDSTORE_CREATE_TABLES.
    """

    database_url: str = Field(
        default=DEFAULT_DATABASE_URL,
        alias="CREDSTORE_URL",
        description="memory://, sqlite:///path.db or postgresql://...",
    )
    echo: bool = Field(default=False, description="Echo SQL statements")
    snapshot_ttl_seconds: float = Field(
        default=30.0,
        ge=0,
        alias="CREDSTORE_SNAPSHOT_TTL",
        description="Lifetime of decoded table snapshots",
    )
    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE, gt=0, alias="CREDSTORE_PAGE_SIZE")
    page_sizes: dict[str, int] = Field(
        default_factory=lambda: {"Requests": REQUEST_PAGE_SIZE},
        description="Per-entity default page sizes",
    )
    actor: str | None = Field(
        default=None, description="Actor email stamped on writes when no identity is injected"
    )
    create_tables: bool = Field(default=True, description="Create missing tables on startup")

    model_config = SettingsConfigDict(
        env_prefix="CREDSTORE_",
        populate_by_name=True,
        extra="ignore",
    )

    @classmethod
    def from_env(cls, **overrides: object) -> StoreSettings:
        """Settings from the environment, with non-None keyword overrides on top."""
        return cls(**{key: value for key, value in overrides.items() if value is not None})
