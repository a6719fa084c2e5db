"""Illustrative thumbnail lookup scraped from an image search page."""

from __future__ import annotations

import asyncio
import re
from typing import Iterable
from urllib.parse import quote_plus

import structlog
from selectolax.parser import HTMLParser

from ..config import GlobalConfig
from ..errors import FetchError, LookupFailure
from .fetcher import FetchText
from .memo import AsyncMemoCache

_ABSOLUTE_HTTP = re.compile(r"^https?:", re.IGNORECASE)


def first_absolute_image(html: str) -> str | None:
    """Return the first ``<img src>`` that is an absolute http(s) URL."""

    for node in HTMLParser(html).css("img"):
        src = (node.attributes.get("src") or "").strip()
        if _ABSOLUTE_HTTP.match(src):
            return src
    return None


class ThumbnailFinder:
    """Look up one illustrative image per headline, memoised by headline text."""

    def __init__(
        self,
        global_config: GlobalConfig,
        fetch_text: FetchText,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.global_config = global_config
        self._fetch_text = fetch_text
        self.logger = logger or structlog.get_logger("newsflash.thumbnails")
        self.cache = AsyncMemoCache(self._search, logger=self.logger)

    def search_url(self, title: str) -> str:
        return self.global_config.thumbnail_search_url.format(query=quote_plus(title))

    async def thumbnail_for(self, title: str) -> str:
        """Return an image URL, or ``""`` when none was found."""

        if not title.strip():
            return ""
        return await self.cache.get(title)

    async def thumbnails_for(self, titles: Iterable[str]) -> dict[str, str]:
        """Resolve many headlines concurrently; repeated titles share one lookup."""

        unique = list(dict.fromkeys(titles))
        results = await asyncio.gather(*(self.thumbnail_for(title) for title in unique))
        return dict(zip(unique, results))

    async def _search(self, title: str) -> str:
        try:
            html = await self._fetch_text(self.search_url(title), self.global_config.fetch_timeout)
        except FetchError as exc:
            self.logger.warning("thumbnail_lookup_failed", title=title, error=str(exc))
            raise LookupFailure(str(exc)) from exc
        src = first_absolute_image(html)
        if src is None:
            raise LookupFailure(f"no absolute image for {title!r}")
        return src


__all__ = ["ThumbnailFinder", "first_absolute_image"]
