"""Merged breaking-news feed with votes, comments and thumbnails."""

__version__ = "0.1.0"
