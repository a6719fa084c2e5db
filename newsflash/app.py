"""Typer CLI entrypoint for newsflash."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, List, Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, GlobalConfig, SourceConfig
from .engine import Fetcher, FetchText, MergedItem, ThumbnailFinder, filter_by_sources
from .engine.extractors.base import local_now
from .errors import RefreshError
from .infra import StateStore
from .logging_conf import available_source_logs, configure_logging, log_dir, tail_log
from .orchestrator import Orchestrator, RefreshResult
from .scheduler import APSchedulerAdapter
from .state import InteractionStore, ThemePreference, User, UserSession, Vote
from .ui import ProgressActivity, render_comments_table, render_feed_table

app = typer.Typer(
    help="newsflash: merged breaking-news feed with votes and comments",
    no_args_is_help=True,
    rich_markup_mode=None,
)
source_app = typer.Typer(name="source", help="Configured news sources.", no_args_is_help=True)
item_app = typer.Typer(name="item", help="Votes on feed items.", no_args_is_help=True)
comment_app = typer.Typer(name="comment", help="Comment threads on feed items.", no_args_is_help=True)
user_app = typer.Typer(name="user", help="Local nickname login.", no_args_is_help=True)
theme_app = typer.Typer(name="theme", help="Light/dark display preference.", no_args_is_help=True)
interactions_app = typer.Typer(name="interactions", help="Stored interaction records.", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Inspect log files.", no_args_is_help=True)

console = Console()

REFRESH_FAILED_MESSAGE = "Loading failed. Try refreshing again in a few seconds."
LOGIN_HINT = "Pick a nickname with `newsflash user login NICKNAME` to comment or vote on comments."


@dataclass
class AppState:
    repository: ConfigRepository
    global_config: GlobalConfig
    orchestrator: Orchestrator
    storage: StateStore
    interactions: InteractionStore
    session: UserSession
    theme: ThemePreference
    scheduler: APSchedulerAdapter
    fetch_text: FetchText | None = None


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    global_config = repository.load_global_config()
    storage = StateStore(repository.state_path())
    interactions = InteractionStore(storage, comment_cap=global_config.comment_cap).load()
    session = UserSession(storage)
    session.load()
    theme = ThemePreference(storage)
    theme.load()
    return AppState(
        repository=repository,
        global_config=global_config,
        orchestrator=Orchestrator(repository),
        storage=storage,
        interactions=interactions,
        session=session,
        theme=theme,
        scheduler=APSchedulerAdapter(),
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


@asynccontextmanager
async def _transport(state: AppState) -> AsyncIterator[FetchText]:
    if state.fetch_text is not None:
        yield state.fetch_text
        return
    async with Fetcher(state.global_config) as fetcher:
        yield fetcher.fetch_text


def _resolve_selection(state: AppState, selected: Sequence[str] | None) -> frozenset[str] | None:
    """Validate ``--source`` ids; ``None`` means every source is shown."""

    wanted = {name.strip().lower() for name in selected or [] if name.strip()}
    if not wanted:
        return None
    known = {descriptor.source_id for descriptor in state.orchestrator.descriptors()}
    unknown = wanted - known
    if unknown:
        console.print(f"Unknown or disabled source(s): {', '.join(sorted(unknown))}", style="red")
        raise typer.Exit(code=1)
    return frozenset(wanted)


def _visible_items(result: RefreshResult, selection: frozenset[str] | None) -> Sequence[MergedItem]:
    return result.items if selection is None else filter_by_sources(result.items, selection)


async def _refresh_with_thumbnails(
    state: AppState,
    selection: frozenset[str] | None,
    with_thumbnails: bool,
    activity: ProgressActivity | None = None,
) -> tuple[RefreshResult, dict[str, str] | None]:
    result = await state.orchestrator.refresh()
    if not with_thumbnails or not state.global_config.thumbnails_enabled:
        return result, None
    if activity is not None:
        activity.update(f"Looking up thumbnails for {len(_visible_items(result, selection))} headlines…")
    async with _transport(state) as fetch_text:
        finder = ThumbnailFinder(state.global_config, fetch_text)
        thumbs = await finder.thumbnails_for(item.title for item in _visible_items(result, selection))
    return result, thumbs


def _print_refresh_failure(exc: RefreshError) -> None:
    console.print(REFRESH_FAILED_MESSAGE, style="red")
    for source_id, error in sorted(exc.failures.items()):
        console.print(f"  {source_id}: {error}", style="dim")


def _print_feed(
    state: AppState,
    result: RefreshResult,
    thumbnails: dict[str, str] | None,
    *,
    selection: frozenset[str] | None,
    show_ids: bool,
    limit: int | None,
) -> None:
    visible = _visible_items(result, selection)
    items = visible[:limit] if limit else visible
    if not items:
        console.print("No breaking news to show right now.", style="yellow")
    else:
        console.print(
            render_feed_table(
                items,
                state.interactions,
                now=local_now(),
                theme=state.theme.current,
                thumbnails=thumbnails,
                show_ids=show_ids,
            )
        )
    for source_id, error in sorted(result.failures.items()):
        console.print(f"Source {source_id} skipped: {error}", style="yellow")
    console.print(
        f"Collected {len(result.items)} items from {len(result.succeeded_sources)} sources.",
        style="green",
    )
    if selection is not None:
        console.print(f"Showing {len(visible)} items from {', '.join(sorted(selection))}.", style="dim")
    console.print(f"Updated at {datetime.now().astimezone():%H:%M}", style="dim")


app.add_typer(source_app, name="source")
app.add_typer(item_app, name="item")
app.add_typer(comment_app, name="comment")
app.add_typer(user_app, name="user")
app.add_typer(theme_app, name="theme")
app.add_typer(interactions_app, name="interactions")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.")
) -> None:
    ctx.obj = build_state(verbose)


@app.command("feed", help="Refresh all sources once and print the merged feed.")
def feed(
    ctx: typer.Context,
    source: Optional[List[str]] = typer.Option(None, "--source", "-s", help="Only show these source ids."),
    thumbnails: bool = typer.Option(False, "--thumbnails", help="Look up an illustrative image per headline."),
    show_ids: bool = typer.Option(False, "--show-ids", help="Show item ids for use with item/comment commands."),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Print at most N items."),
    quiet: bool = typer.Option(False, "--quiet", help="Hide the loading spinner."),
) -> None:
    state = _get_state(ctx)
    selection = _resolve_selection(state, source)
    with ProgressActivity(console, enabled=not quiet) as activity:
        activity.start("Loading live breaking news…")
        try:
            result, thumbs = asyncio.run(_refresh_with_thumbnails(state, selection, thumbnails, activity))
        except RefreshError as exc:
            activity.close()
            _print_refresh_failure(exc)
            raise typer.Exit(code=1)
    _print_feed(state, result, thumbs, selection=selection, show_ids=show_ids, limit=limit)


@app.command("watch", help="Refresh on an interval until interrupted.")
def watch(
    ctx: typer.Context,
    source: Optional[List[str]] = typer.Option(None, "--source", "-s", help="Only show these source ids."),
    interval: Optional[int] = typer.Option(None, "--interval", min=1, help="Seconds between refreshes."),
    show_ids: bool = typer.Option(False, "--show-ids", help="Show item ids."),
) -> None:
    state = _get_state(ctx)
    selection = _resolve_selection(state, source)
    seconds = interval or state.global_config.auto_refresh_interval

    async def _cycle() -> None:
        try:
            result = await state.orchestrator.refresh()
        except RefreshError as exc:
            _print_refresh_failure(exc)
            return
        _print_feed(state, result, None, selection=selection, show_ids=show_ids, limit=None)

    async def _watch() -> None:
        state.scheduler.schedule_refresh(_cycle, seconds)
        state.scheduler.start()
        try:
            await asyncio.Event().wait()
        finally:
            state.scheduler.cancel_refresh()
            state.scheduler.shutdown()

    console.print(f"Refreshing every {seconds}s; press Ctrl+C to stop.", style="dim")
    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        console.print("Stopped.", style="dim")


@source_app.command("list", help="List configured sources.")
def source_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    sources: list[SourceConfig] = state.repository.list_sources()
    table = Table(title=f"Sources · {len(sources)}", box=box.SIMPLE_HEAD)
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Cap", justify="right")
    table.add_column("Extractor", style="magenta")
    table.add_column("Enabled")
    table.add_column("URL", style="dim", overflow="fold")
    for config in sources:
        table.add_row(
            config.source_id,
            config.display_name,
            str(config.item_cap),
            config.extractor_name,
            "yes" if config.enabled else "no",
            config.fetch_url,
        )
    console.print(table)


@item_app.command("show", help="Show votes and comments of an item.")
def item_show(ctx: typer.Context, item_id: str = typer.Argument(..., help="Item id from `feed --show-ids`.")) -> None:
    state = _get_state(ctx)
    record = state.interactions.get_or_create(item_id)
    console.print(f"👍 {record.likes}  👎 {record.dislikes}  💬 {len(record.comments)}")
    if record.comments:
        console.print(
            render_comments_table(
                record, state.session.current, now=local_now(), theme=state.theme.current
            )
        )


def _vote_item(ctx: typer.Context, item_id: str, direction: Vote) -> None:
    state = _get_state(ctx)
    record = state.interactions.vote(item_id, direction)
    console.print(f"👍 {record.likes}  👎 {record.dislikes}")


@item_app.command("like", help="Add a like to an item.")
def item_like(ctx: typer.Context, item_id: str = typer.Argument(...)) -> None:
    _vote_item(ctx, item_id, Vote.LIKE)


@item_app.command("dislike", help="Add a dislike to an item.")
def item_dislike(ctx: typer.Context, item_id: str = typer.Argument(...)) -> None:
    _vote_item(ctx, item_id, Vote.DISLIKE)


def _require_user(state: AppState) -> User:
    user = state.session.current
    if user is None:
        console.print(LOGIN_HINT, style="yellow")
        raise typer.Exit(code=1)
    return user


@comment_app.command("add", help="Comment on an item as the current user.")
def comment_add(
    ctx: typer.Context,
    item_id: str = typer.Argument(...),
    text: str = typer.Argument(..., help="Comment text."),
) -> None:
    state = _get_state(ctx)
    user = _require_user(state)
    comment = state.interactions.add_comment(item_id, user, text)
    if comment is None:
        console.print("Empty comments are not saved.", style="yellow")
        raise typer.Exit(code=1)
    console.print(f"Comment {comment.id} added.", style="green")


@comment_app.command("delete", help="Delete one of your own comments.")
def comment_delete(
    ctx: typer.Context,
    item_id: str = typer.Argument(...),
    comment_id: str = typer.Argument(...),
) -> None:
    state = _get_state(ctx)
    user = _require_user(state)
    if not state.interactions.delete_comment(item_id, comment_id, user):
        console.print("Comment not found or not yours; nothing deleted.", style="red")
        raise typer.Exit(code=1)
    console.print("Comment deleted.", style="green")


@comment_app.command("vote", help="Like or dislike a comment (one vote per user).")
def comment_vote(
    ctx: typer.Context,
    item_id: str = typer.Argument(...),
    comment_id: str = typer.Argument(...),
    direction: Vote = typer.Argument(..., help="like or dislike"),
) -> None:
    state = _get_state(ctx)
    user = _require_user(state)
    comment = state.interactions.vote_comment(item_id, comment_id, user, direction)
    if comment is None:
        console.print("Comment not found.", style="red")
        raise typer.Exit(code=1)
    console.print(f"👍 {comment.likes}  👎 {comment.dislikes}")


@user_app.command("login", help="Use a nickname as local identity (not verified).")
def user_login(ctx: typer.Context, nickname: str = typer.Argument(...)) -> None:
    state = _get_state(ctx)
    user = state.session.login(nickname)
    if user is None:
        console.print("Nickname cannot be empty.", style="red")
        raise typer.Exit(code=1)
    console.print(f"Logged in as {user.display_name}.", style="green")


@user_app.command("logout", help="Forget the current nickname.")
def user_logout(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    state.session.logout()
    console.print("Logged out.", style="green")


@user_app.command("whoami", help="Show the current nickname.")
def user_whoami(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    user = state.session.current
    if user is None:
        console.print("Not logged in.", style="dim")
        return
    console.print(f"{user.display_name} ({user.id})")


@theme_app.command("show", help="Print the current theme.")
def theme_show(ctx: typer.Context) -> None:
    console.print(_get_state(ctx).theme.current.value)


@theme_app.command("toggle", help="Switch between light and dark.")
def theme_toggle(ctx: typer.Context) -> None:
    theme = _get_state(ctx).theme.toggle()
    console.print(f"Theme set to {theme.value}.", style="green")


@app.command("thumb", help="Look up an illustrative image for a headline.")
def thumb(ctx: typer.Context, title: str = typer.Argument(...)) -> None:
    state = _get_state(ctx)

    async def _lookup() -> str:
        async with _transport(state) as fetch_text:
            return await ThumbnailFinder(state.global_config, fetch_text).thumbnail_for(title)

    url = asyncio.run(_lookup())
    if not url:
        console.print("No image found.", style="dim")
        raise typer.Exit(code=1)
    console.print(url)


@interactions_app.command("prune", help="Drop stored interactions for items missing from the live feed.")
def interactions_prune(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
) -> None:
    state = _get_state(ctx)
    try:
        result = asyncio.run(state.orchestrator.refresh())
    except RefreshError as exc:
        _print_refresh_failure(exc)
        raise typer.Exit(code=1)
    if result.failures:
        console.print("Some sources failed; refusing to prune against a partial feed.", style="red")
        raise typer.Exit(code=1)
    live_ids = {item.id for item in result.items}
    stale = sum(1 for item_id in state.interactions.dump() if item_id not in live_ids)
    if not stale:
        console.print("Nothing to prune.", style="dim")
        return
    if not yes and not typer.confirm(f"Delete interactions of {stale} item(s) no longer in the feed?", default=False):
        console.print("Cancelled.", style="yellow")
        raise typer.Exit(code=0)
    removed = state.interactions.prune(live_ids)
    console.print(f"Pruned {removed} record(s).", style="green")


@log_app.command("list", help="List per-source log files.")
def log_list() -> None:
    logs = list(available_source_logs())
    if not logs:
        console.print("No source logs yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Print the tail of the application or a source log.")
def log_show(
    source: Optional[str] = typer.Option(None, "--source", help="Source id (default: application log)."),
    tail: int = typer.Option(100, "--tail", min=1, help="Number of lines."),
) -> None:
    base_dir = log_dir()
    path = base_dir / "sources" / f"{source}.log" if source else base_dir / "newsflash.log"
    lines = tail_log(path, tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
