"""Extractor for the walla breaking-news ticker."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from selectolax.parser import HTMLParser, Node

from .base import (
    Extractor,
    RawItem,
    SourceDescriptor,
    absolute_url,
    cleanup_headline,
    epoch_millis,
    node_attr,
    node_text,
    resolve_clock_time,
)


class WallaExtractor(Extractor):
    """Ticker sections carry a red ``HH:MM`` clock and a headline, no date."""

    name = "walla"

    def select_nodes(self, tree: HTMLParser) -> Iterable[Node]:
        return tree.css(".breaking-list section")

    def build_item(self, node: Node, source: SourceDescriptor, now: datetime) -> RawItem | None:
        headline = node.css_first(".breaking-item-title")
        if headline is None:
            return None
        time_text = node_text(node.css_first(".red-time")).strip()
        title = cleanup_headline(node_text(headline))
        # The clock is sometimes rendered inside the headline element itself.
        if time_text and title.startswith(time_text):
            title = cleanup_headline(title.replace(time_text, "", 1))
        if not title:
            return None

        link = absolute_url(source.fetch_url, node_attr(node.css_first("a"), "href"))
        published_at = resolve_clock_time(time_text, now)
        return RawItem(
            id=f"{source.source_id}-{link}-{epoch_millis(published_at)}",
            source_id=source.source_id,
            source_name=source.display_name,
            title=title,
            link=link,
            description="",
            published_at=published_at,
        )


__all__ = ["WallaExtractor"]
