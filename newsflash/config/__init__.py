"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    DEFAULT_SOURCES,
    DEFAULT_THUMBNAIL_SEARCH_URL,
    GlobalConfig,
    RefreshPolicy,
    SourceConfig,
)

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_SOURCES",
    "DEFAULT_THUMBNAIL_SEARCH_URL",
    "GlobalConfig",
    "RefreshPolicy",
    "SourceConfig",
]
