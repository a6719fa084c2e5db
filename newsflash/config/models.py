"""Pydantic models used across the newsflash configuration flow."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

_SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]*$")

DEFAULT_THUMBNAIL_SEARCH_URL = "https://www.google.com/search?tbm=isch&q={query}"


class RefreshPolicy(str, Enum):
    """How a refresh cycle reacts to individual source failures."""

    FAIL_FAST = "fail_fast"
    PARTIAL = "partial"


class SourceConfig(BaseModel):
    """Definition of one breaking-news source."""

    source_id: str
    display_name: str
    fetch_url: str
    item_cap: int = 12
    extractor: str | None = None
    enabled: bool = True
    position: int = 100

    @field_validator("source_id")
    @classmethod
    def _validate_source_id(cls, value: str) -> str:
        value = value.strip().lower()
        if not _SLUG_PATTERN.match(value):
            raise ValueError(f"source_id must be a lowercase slug, got {value!r}")
        return value

    @field_validator("fetch_url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("fetch_url must be an absolute http(s) URL")
        return value

    @model_validator(mode="after")
    def _validate_cap(self) -> "SourceConfig":
        if self.item_cap < 1:
            raise ValueError("item_cap must be >= 1")
        if not self.display_name.strip():
            raise ValueError("display_name cannot be empty")
        return self

    @property
    def extractor_name(self) -> str:
        return self.extractor or self.source_id


class GlobalConfig(BaseModel):
    """Global controls shared across sources."""

    fetch_timeout: float = 15.0
    proxy_base: str | None = None
    user_agent: str | None = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )
    refresh_policy: RefreshPolicy = RefreshPolicy.FAIL_FAST
    auto_refresh_interval: int = 300
    comment_cap: int = 30
    thumbnails_enabled: bool = True
    thumbnail_search_url: str = DEFAULT_THUMBNAIL_SEARCH_URL
    state_path: Path = Field(default=Path("data/state.db"))

    @field_validator("state_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("proxy_base", mode="before")
    @classmethod
    def _empty_proxy(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _validate_numbers(self) -> "GlobalConfig":
        if self.fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be > 0")
        if self.auto_refresh_interval <= 0:
            raise ValueError("auto_refresh_interval must be > 0")
        if self.comment_cap < 1:
            raise ValueError("comment_cap must be >= 1")
        if "{query}" not in self.thumbnail_search_url:
            raise ValueError("thumbnail_search_url must contain a {query} placeholder")
        return self

    def resolved_state_path(self, base_dir: Path) -> Path:
        """Return the interaction/session database path relative to the project home."""

        if not self.state_path.is_absolute():
            return (base_dir / self.state_path).resolve()
        return self.state_path


DEFAULT_SOURCES: tuple[SourceConfig, ...] = (
    SourceConfig(
        source_id="walla",
        display_name="וואלה",
        fetch_url="https://news.walla.co.il/breaking",
        item_cap=12,
        position=0,
    ),
    SourceConfig(
        source_id="ynet",
        display_name="ynet",
        fetch_url="https://www.ynet.co.il/news/category/184",
        item_cap=20,
        position=1,
    ),
    SourceConfig(
        source_id="maariv",
        display_name="מעריב",
        fetch_url="https://www.maariv.co.il/breaking-news",
        item_cap=12,
        position=2,
    ),
)


__all__ = [
    "DEFAULT_SOURCES",
    "DEFAULT_THUMBNAIL_SEARCH_URL",
    "GlobalConfig",
    "RefreshPolicy",
    "SourceConfig",
]
