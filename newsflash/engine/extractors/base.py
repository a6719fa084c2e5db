"""Extractor contract turning one source's HTML into normalised raw items."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import ClassVar, Iterable
from urllib.parse import urljoin, urlsplit

import structlog
from selectolax.parser import HTMLParser, Node

from ...errors import ExtractionError

_WHITESPACE = re.compile(r"\s+")
_LEADING_CLUTTER = re.compile(r"^[/\s-]+")
_CLOCK = re.compile(r"^\s*(\d{1,2}):(\d{1,2})")

# A clock-only time further than this into the future was posted on the previous day.
CLOCK_ROLLBACK_THRESHOLD = timedelta(hours=12)


@dataclass(frozen=True, slots=True)
class RawItem:
    """Normalised item produced by an extractor, before merging."""

    id: str
    source_id: str
    source_name: str
    title: str
    link: str
    description: str
    published_at: datetime


@dataclass(frozen=True, slots=True)
class SourceDescriptor:
    """Immutable runtime description of a source and its extractor."""

    source_id: str
    display_name: str
    fetch_url: str
    item_cap: int
    extractor: "Extractor" = field(repr=False, compare=False)

    def extract(self, html: str, now: datetime | None = None) -> list[RawItem]:
        return self.extractor.extract(html, self, now=now)


def local_now() -> datetime:
    return datetime.now().astimezone()


def cleanup_headline(text: str | None) -> str:
    """Collapse whitespace and strip leading slash/dash clutter."""

    if not text:
        return ""
    collapsed = _WHITESPACE.sub(" ", text)
    return _LEADING_CLUTTER.sub("", collapsed).strip()


def absolute_url(base: str, href: str | None) -> str:
    """Resolve ``href`` against ``base``; malformed or missing links fall back to ``base``."""

    if not href or not href.strip():
        return base
    try:
        resolved = urljoin(base, href.strip())
        # urlsplit raises ValueError on malformed netlocs such as unbalanced IPv6 brackets.
        parts = urlsplit(resolved)
    except ValueError:
        return base
    if not parts.scheme:
        return base
    return resolved


def resolve_clock_time(clock_text: str | None, now: datetime) -> datetime:
    """Combine an ``HH:MM`` clock reading with today's date.

    When the result lies more than 12 hours after ``now`` the post was made
    on the previous calendar day (e.g. reading "23:50" at 00:30). Missing or
    unparsable clock text yields ``now``.
    """

    if not clock_text:
        return now
    match = _CLOCK.match(clock_text)
    if not match:
        return now
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return now
    guess = now.replace(hour=hours, minute=minutes, second=0, microsecond=0)
    if guess - now > CLOCK_ROLLBACK_THRESHOLD:
        previous_day = guess.date() - timedelta(days=1)
        guess = guess.replace(year=previous_day.year, month=previous_day.month, day=previous_day.day)
    return guess


def parse_datetime_attr(value: str | None, now: datetime) -> datetime:
    """Parse a machine-readable ``datetime`` attribute, falling back to ``now``."""

    if not value or not value.strip():
        return now
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return now
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=now.tzinfo)
    return parsed


def epoch_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def node_text(node: Node | None) -> str:
    if node is None:
        return ""
    return node.text(deep=True) or ""


def node_attr(node: Node | None, name: str) -> str | None:
    if node is None:
        return None
    return node.attributes.get(name)


class Extractor(ABC):
    """Uniform extractor contract; one implementation per source markup shape."""

    name: ClassVar[str]

    def __init__(self) -> None:
        self.logger = structlog.get_logger("newsflash.extractor").bind(extractor=self.name)

    def extract(
        self, html: str, source: SourceDescriptor, now: datetime | None = None
    ) -> list[RawItem]:
        """Return up to ``source.item_cap`` items in document order."""

        tree = self._parse_document(html, source)
        now = now or local_now()
        items: list[RawItem] = []
        for index, node in enumerate(self.select_nodes(tree)):
            item = self.build_item(node, source, now)
            if item is None:
                self.logger.debug("node_skipped", source=source.source_id, index=index)
                continue
            items.append(item)
            if len(items) >= source.item_cap:
                break
        return items

    @abstractmethod
    def select_nodes(self, tree: HTMLParser) -> Iterable[Node]:
        """Yield the structural nodes that each describe one item."""

    @abstractmethod
    def build_item(self, node: Node, source: SourceDescriptor, now: datetime) -> RawItem | None:
        """Build a raw item, or return ``None`` when the node lacks a headline."""

    @staticmethod
    def _parse_document(html: str, source: SourceDescriptor) -> HTMLParser:
        if not isinstance(html, str):
            raise ExtractionError(source.source_id, f"expected HTML text, got {type(html).__name__}")
        try:
            return HTMLParser(html)
        except Exception as exc:  # noqa: BLE001
            raise ExtractionError(source.source_id, f"unparsable document: {exc}") from exc


__all__ = [
    "CLOCK_ROLLBACK_THRESHOLD",
    "Extractor",
    "RawItem",
    "SourceDescriptor",
    "absolute_url",
    "cleanup_headline",
    "epoch_millis",
    "local_now",
    "node_attr",
    "node_text",
    "parse_datetime_attr",
    "resolve_clock_time",
]
