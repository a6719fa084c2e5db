"""Merge, deduplicate and order per-source extraction results."""

from __future__ import annotations

from itertools import chain
from typing import Collection, Iterable, Sequence

from .extractors import RawItem

MergedItem = RawItem
"""A raw item that survived deduplication; same shape, unique by :func:`dedupe_key`."""


def dedupe_key(item: RawItem) -> str:
    """Composite identity: ``source-(id or title)[-link]``."""

    base = f"{item.source_id or ''}-{item.id or item.title or ''}"
    return f"{base}-{item.link}" if item.link else base


def dedupe(items: Iterable[RawItem]) -> list[RawItem]:
    """Drop later items whose composite key was already seen."""

    seen: dict[str, RawItem] = {}
    for item in items:
        seen.setdefault(dedupe_key(item), item)
    return list(seen.values())


def sort_newest_first(items: Iterable[RawItem]) -> list[RawItem]:
    # sorted() is stable with reverse=True, so ties keep flattened order.
    return sorted(items, key=lambda item: item.published_at, reverse=True)


def merge_results(chunks: Sequence[Sequence[RawItem]]) -> tuple[MergedItem, ...]:
    """Flatten in configured source order, dedupe, then sort by recency."""

    return tuple(sort_newest_first(dedupe(chain.from_iterable(chunks))))


def filter_by_sources(items: Iterable[MergedItem], selected: Collection[str]) -> list[MergedItem]:
    if not selected:
        return []
    return [item for item in items if item.source_id in selected]


__all__ = [
    "MergedItem",
    "dedupe",
    "dedupe_key",
    "filter_by_sources",
    "merge_results",
    "sort_newest_first",
]
