"""Extractor for the ynet breaking-news accordion."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from selectolax.parser import HTMLParser, Node

from .base import (
    Extractor,
    RawItem,
    SourceDescriptor,
    cleanup_headline,
    node_attr,
    node_text,
    parse_datetime_attr,
)


class YnetExtractor(Extractor):
    """Accordion sections expose a ``<time datetime>`` but no per-item link."""

    name = "ynet"

    def select_nodes(self, tree: HTMLParser) -> Iterable[Node]:
        return tree.css(".AccordionSection")

    def build_item(self, node: Node, source: SourceDescriptor, now: datetime) -> RawItem | None:
        title = cleanup_headline(node_text(node.css_first(".title")))
        if not title:
            return None
        time_attr = (node_attr(node.css_first("time"), "datetime") or "").strip()
        return RawItem(
            id=f"{source.source_id}-{time_attr or title}",
            source_id=source.source_id,
            source_name=source.display_name,
            title=title,
            link=source.fetch_url,
            description="",
            published_at=parse_datetime_attr(time_attr, now),
        )


__all__ = ["YnetExtractor"]
