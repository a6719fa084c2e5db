"""Engine components orchestrating fetch → extract → merge → enrich."""

from .extractors import EXTRACTORS, Extractor, RawItem, SourceDescriptor, build_descriptor
from .fetcher import Fetcher, FetchText
from .memo import AsyncMemoCache
from .merge import MergedItem, dedupe, filter_by_sources, merge_results
from .thumbnails import ThumbnailFinder

__all__ = [
    "AsyncMemoCache",
    "EXTRACTORS",
    "Extractor",
    "FetchText",
    "Fetcher",
    "MergedItem",
    "RawItem",
    "SourceDescriptor",
    "ThumbnailFinder",
    "build_descriptor",
    "dedupe",
    "filter_by_sources",
    "merge_results",
]
