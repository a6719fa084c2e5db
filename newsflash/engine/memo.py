"""Single-flight memoisation of per-key asynchronous lookups."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import structlog

Lookup = Callable[[str], Awaitable[str]]

NOT_FOUND = ""


class AsyncMemoCache:
    """Map each key to one shared lookup task for the lifetime of the cache.

    The first :meth:`lookup` for a key schedules the underlying call and
    stores its task before yielding control, so concurrent callers for the
    same key always await the same task. Failures settle to ``""`` instead
    of raising. Entries are never evicted.
    """

    def __init__(self, loader: Lookup, logger: structlog.BoundLogger | None = None) -> None:
        self._loader = loader
        self._entries: dict[str, asyncio.Task[str]] = {}
        self.logger = logger or structlog.get_logger("newsflash.memo")

    def lookup(self, key: str) -> asyncio.Task[str]:
        """Return the shared task for ``key``; must be called from a running loop."""

        task = self._entries.get(key)
        if task is None:
            # No await between creation and insertion: this is the single-flight guarantee.
            task = asyncio.ensure_future(self._settle(key))
            self._entries[key] = task
        return task

    async def get(self, key: str) -> str:
        """Await the shared value; cancelling this caller leaves the lookup running."""

        return await asyncio.shield(self.lookup(key))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def _settle(self, key: str) -> str:
        try:
            result = await self._loader(key)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning("lookup_failed", key=key, error=str(exc))
            return NOT_FOUND
        return result or NOT_FOUND


__all__ = ["AsyncMemoCache", "Lookup", "NOT_FOUND"]
