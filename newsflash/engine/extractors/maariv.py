"""Extractor for the maariv breaking-news list."""

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
    node_attr,
    node_text,
    parse_datetime_attr,
)


class MaarivExtractor(Extractor):
    name = "maariv"

    def select_nodes(self, tree: HTMLParser) -> Iterable[Node]:
        return tree.css("article.breaking-news-item")

    def build_item(self, node: Node, source: SourceDescriptor, now: datetime) -> RawItem | None:
        title = cleanup_headline(node_text(node.css_first(".breaking-news-title")))
        if not title:
            return None
        link = absolute_url(source.fetch_url, node_attr(node.css_first("a"), "href"))
        time_attr = node_attr(node.css_first("time"), "datetime")
        reporter = cleanup_headline(node_text(node.css_first(".breaking-news-reporter")))
        return RawItem(
            id=f"{source.source_id}-{link}",
            source_id=source.source_id,
            source_name=source.display_name,
            title=title,
            link=link,
            description=reporter,
            published_at=parse_datetime_attr(time_attr, now),
        )


__all__ = ["MaarivExtractor"]
