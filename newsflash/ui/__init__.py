"""User interaction helpers."""

from .progress import ProgressActivity
from .render import format_relative, format_time, render_comments_table, render_feed_table

__all__ = [
    "ProgressActivity",
    "format_relative",
    "format_time",
    "render_comments_table",
    "render_feed_table",
]
