"""Extractor SPI, implementations and registry."""

from __future__ import annotations

from ...config import SourceConfig
from .base import (
    Extractor,
    RawItem,
    SourceDescriptor,
    absolute_url,
    cleanup_headline,
    parse_datetime_attr,
    resolve_clock_time,
)
from .maariv import MaarivExtractor
from .walla import WallaExtractor
from .ynet import YnetExtractor

EXTRACTORS: dict[str, type[Extractor]] = {
    extractor.name: extractor for extractor in (WallaExtractor, YnetExtractor, MaarivExtractor)
}


def get_extractor(name: str) -> Extractor:
    try:
        return EXTRACTORS[name]()
    except KeyError:
        known = ", ".join(sorted(EXTRACTORS))
        raise KeyError(f"Unknown extractor {name!r}; known extractors: {known}") from None


def build_descriptor(config: SourceConfig) -> SourceDescriptor:
    return SourceDescriptor(
        source_id=config.source_id,
        display_name=config.display_name,
        fetch_url=config.fetch_url,
        item_cap=config.item_cap,
        extractor=get_extractor(config.extractor_name),
    )


__all__ = [
    "EXTRACTORS",
    "Extractor",
    "MaarivExtractor",
    "RawItem",
    "SourceDescriptor",
    "WallaExtractor",
    "YnetExtractor",
    "absolute_url",
    "build_descriptor",
    "cleanup_headline",
    "get_extractor",
    "parse_datetime_attr",
    "resolve_clock_time",
]
