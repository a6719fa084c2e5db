from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone

import pytest
from rich.console import Console

from newsflash.engine.extractors import RawItem
from newsflash.state import InteractionStore, Theme, User, Vote
from newsflash.ui import ProgressActivity, format_relative, format_time, render_comments_table, render_feed_table

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=3)))


def _render(renderable) -> str:
    console = Console(record=True, width=200, color_system=None)
    console.print(renderable)
    return console.export_text()


@pytest.mark.parametrize(
    ("delta", "expected"),
    [
        (timedelta(0), "now"),
        (timedelta(seconds=30), "30 seconds ago"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(minutes=5), "5 minutes ago"),
        (timedelta(hours=3), "3 hours ago"),
        (timedelta(days=1), "yesterday"),
        (timedelta(days=3), "3 days ago"),
        (timedelta(minutes=-5), "in 5 minutes"),
        (timedelta(days=-1), "tomorrow"),
    ],
)
def test_format_relative(delta, expected) -> None:
    assert format_relative(NOW - delta, NOW) == expected


def test_format_time_uses_viewer_timezone() -> None:
    moment = datetime(2024, 5, 1, 8, 55, tzinfo=timezone.utc)
    assert format_time(moment, NOW) == "11:55 · 5 minutes ago"


def _item(item_id: str, title: str, minutes_ago: int) -> RawItem:
    return RawItem(
        id=item_id,
        source_id="ynet",
        source_name="Ynet",
        title=title,
        link="https://ynet.example/news",
        description="Reporter [bold]X[/bold]",
        published_at=NOW - timedelta(minutes=minutes_ago),
    )


def test_feed_table_shows_counts_without_creating_records(state_store) -> None:
    store = InteractionStore(state_store).load()
    store.vote("ynet-1", Vote.LIKE)
    store.vote("ynet-1", Vote.LIKE)
    items = [_item("ynet-1", "Sirens in the south", 2), _item("ynet-2", "Cabinet meets", 10)]

    output = _render(render_feed_table(items, store, now=NOW, theme=Theme.DARK, show_ids=True))

    assert "Breaking news · 2 items" in output
    assert "Sirens in the south" in output
    assert "Reporter [bold]X[/bold]" in output
    assert "ynet-2" in output
    assert "2 minutes ago" in output
    assert len(store) == 1


def test_feed_table_thumbnail_column(state_store) -> None:
    store = InteractionStore(state_store).load()
    items = [_item("ynet-1", "Headline", 1)]
    output = _render(
        render_feed_table(items, store, now=NOW, thumbnails={"Headline": "https://img.example/h.jpg"})
    )
    assert "Thumbnail" in output
    assert "https://img.example/h.jpg" in output


def test_comments_table_flags_only_own_comments(state_store) -> None:
    store = InteractionStore(state_store).load()
    dana, itai = User.from_nickname("dana"), User.from_nickname("itai")
    store.add_comment("item", dana, "from dana")
    store.add_comment("item", itai, "from itai")

    output = _render(render_comments_table(store.get("item"), itai, now=datetime.now(timezone.utc)))

    lines = [line for line in output.splitlines() if "from" in line]
    assert len(lines) == 2
    itai_line = next(line for line in lines if "from itai" in line)
    dana_line = next(line for line in lines if "from dana" in line)
    assert "deletable" in itai_line
    assert "deletable" not in dana_line


def test_progress_activity_is_silent_off_terminal() -> None:
    console = Console(file=io.StringIO(), force_terminal=False)
    with ProgressActivity(console) as activity:
        assert activity.enabled is False
        activity.start("loading")
        activity.update("still loading")
        assert activity._live is None
        assert activity.elapsed >= 0
    assert console.file.getvalue() == ""


def test_progress_activity_update_reports_elapsed_time() -> None:
    console = Console(file=io.StringIO(), force_terminal=True)
    with ProgressActivity(console) as activity:
        activity.start("loading")
        assert activity._live is not None
        activity.update("looking up thumbnails")
        assert str(activity._live.status).startswith("looking up thumbnails (")
        assert str(activity._live.status).endswith("s)")
    assert activity._live is None
