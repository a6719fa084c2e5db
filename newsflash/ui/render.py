"""Rich rendering of the merged feed and comment threads."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Sequence

from rich import box
from rich.style import Style
from rich.table import Table
from rich.text import Text

from ..engine import MergedItem
from ..state import InteractionRecord, InteractionStore, Theme, User


@dataclass(frozen=True, slots=True)
class Palette:
    source: str
    time: str
    title: str
    muted: str
    positive: str
    negative: str


PALETTES: dict[Theme, Palette] = {
    Theme.LIGHT: Palette("blue", "magenta", "bold black", "dim", "green", "red"),
    Theme.DARK: Palette("cyan", "yellow", "bold white", "grey50", "bright_green", "bright_red"),
}


def _phrase(value: int, unit: str) -> str:
    count = abs(value)
    label = unit if count == 1 else f"{unit}s"
    if value < 0:
        return f"{count} {label} ago"
    return f"in {count} {label}"


def format_relative(moment: datetime, now: datetime) -> str:
    """Relative phrasing in seconds, minutes, hours or days."""

    seconds = round((now - moment).total_seconds())
    if abs(seconds) < 60:
        return "now" if seconds == 0 else _phrase(-seconds, "second")
    minutes = round(seconds / 60)
    if abs(minutes) < 60:
        return _phrase(-minutes, "minute")
    hours = round(minutes / 60)
    if abs(hours) < 24:
        return _phrase(-hours, "hour")
    days = round(hours / 24)
    if days == 1:
        return "yesterday"
    if days == -1:
        return "tomorrow"
    return _phrase(-days, "day")


def format_time(moment: datetime, now: datetime) -> str:
    local = moment.astimezone(now.tzinfo) if now.tzinfo else moment
    return f"{local:%H:%M} · {format_relative(moment, now)}"


def render_feed_table(
    items: Sequence[MergedItem],
    interactions: InteractionStore,
    *,
    now: datetime,
    theme: Theme = Theme.LIGHT,
    thumbnails: Mapping[str, str] | None = None,
    show_ids: bool = False,
) -> Table:
    palette = PALETTES[theme]
    table = Table(title=f"Breaking news · {len(items)} items", box=box.SIMPLE_HEAD, show_lines=False)
    table.add_column("#", style=palette.muted, justify="right")
    table.add_column("Source", style=palette.source, no_wrap=True)
    table.add_column("Time", style=palette.time, no_wrap=True)
    table.add_column("Headline", style=palette.title, overflow="fold")
    table.add_column("👍", style=palette.positive, justify="right")
    table.add_column("👎", style=palette.negative, justify="right")
    table.add_column("💬", justify="right")
    if thumbnails is not None:
        table.add_column("Thumbnail", style=palette.muted, overflow="fold")
    if show_ids:
        table.add_column("Id", style=palette.muted, overflow="fold")

    for index, item in enumerate(items, start=1):
        # Lookups never create records; only viewing via ``item show`` does.
        record = interactions.get(item.id) or InteractionRecord()
        headline = Text(item.title, style=Style(link=item.link))
        if item.description:
            headline.append(f"\n{item.description}", style=palette.muted)
        row = [
            str(index),
            Text(item.source_name),
            format_time(item.published_at, now),
            headline,
            str(record.likes),
            str(record.dislikes),
            str(len(record.comments)),
        ]
        if thumbnails is not None:
            row.append(Text(thumbnails.get(item.title) or "-"))
        if show_ids:
            row.append(Text(item.id))
        table.add_row(*row)
    return table


def render_comments_table(
    record: InteractionRecord,
    current_user: User | None,
    *,
    now: datetime,
    theme: Theme = Theme.LIGHT,
) -> Table:
    palette = PALETTES[theme]
    table = Table(title=f"Comments · {len(record.comments)}", box=box.SIMPLE_HEAD)
    table.add_column("Author", style=palette.source, no_wrap=True)
    table.add_column("Comment", overflow="fold")
    table.add_column("When", style=palette.time, no_wrap=True)
    table.add_column("👍", style=palette.positive, justify="right")
    table.add_column("👎", style=palette.negative, justify="right")
    table.add_column("Id", style=palette.muted, overflow="fold")
    table.add_column("", style=palette.muted)
    for comment in record.comments:
        own = current_user is not None and comment.author_id == current_user.id
        table.add_row(
            Text(comment.author_name or "guest"),
            Text(comment.text),
            format_relative(comment.created_at, now),
            str(comment.likes),
            str(comment.dislikes),
            Text(comment.id),
            "deletable" if own else "",
        )
    return table


__all__ = ["PALETTES", "Palette", "format_relative", "format_time", "render_comments_table", "render_feed_table"]
