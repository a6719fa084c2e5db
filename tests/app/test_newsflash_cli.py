from __future__ import annotations

import pytest
from typer.testing import CliRunner

from newsflash.app import AppState, app, console
from newsflash.config import GlobalConfig, RefreshPolicy
from newsflash.engine import ThumbnailFinder
from newsflash.errors import HttpStatusError
from newsflash.infra import StateStore
from newsflash.orchestrator import Orchestrator
from newsflash.scheduler import APSchedulerAdapter
from newsflash.state import InteractionStore, ThemePreference, UserSession

runner = CliRunner()


@pytest.fixture
def cli_state(
    monkeypatch, tmp_path, temp_config_repository, configured_sources, fake_fetch, five_per_source_pages
) -> AppState:
    repository = temp_config_repository
    fetch = fake_fetch(five_per_source_pages)
    storage = StateStore(tmp_path / "cli-state.db")
    state = AppState(
        repository=repository,
        global_config=repository.load_global_config(),
        orchestrator=Orchestrator(repository, fetch_text=fetch),
        storage=storage,
        interactions=InteractionStore(storage).load(),
        session=UserSession(storage),
        theme=ThemePreference(storage),
        scheduler=APSchedulerAdapter(),
        fetch_text=fetch,
    )
    monkeypatch.setattr("newsflash.app.build_state", lambda verbose: state)
    monkeypatch.setattr(console, "width", 200)
    yield state
    storage.close()


def invoke(*args: str, input: str | None = None):
    return runner.invoke(app, list(args), input=input)


def test_feed_prints_merged_items(cli_state) -> None:
    result = invoke("feed", "--show-ids")
    assert result.exit_code == 0, result.output
    assert "Collected 15 items from 3 sources." in result.output
    assert len(cli_state.orchestrator.snapshot.items) == 15


def test_feed_failure_suggests_retry(cli_state) -> None:
    cli_state.fetch_text.pages["https://ynet.example/news"] = HttpStatusError(502, "https://ynet.example/news")
    result = invoke("feed")
    assert result.exit_code == 1
    assert "Loading failed. Try refreshing again in a few seconds." in result.output
    assert "ynet" in result.output


def test_feed_partial_policy_warns_per_source(cli_state) -> None:
    cli_state.orchestrator.global_config = GlobalConfig(refresh_policy=RefreshPolicy.PARTIAL)
    cli_state.fetch_text.pages["https://ynet.example/news"] = HttpStatusError(502, "https://ynet.example/news")
    result = invoke("feed")
    assert result.exit_code == 0, result.output
    assert "Source ynet skipped" in result.output
    assert "Collected 10 items from 2 sources." in result.output


def test_feed_source_selection_hides_other_sources(cli_state) -> None:
    result = invoke("feed", "--source", "ynet")
    assert result.exit_code == 0, result.output
    assert sorted(cli_state.fetch_text.calls) == [
        "https://maariv.example/breaking-news",
        "https://walla.example/breaking",
        "https://ynet.example/news",
    ]
    assert len(cli_state.orchestrator.snapshot.items) == 15
    assert "Collected 15 items from 3 sources." in result.output
    assert "Showing 5 items from ynet." in result.output
    assert "Ynet headline 4" in result.output
    assert "Walla headline" not in result.output
    assert "Maariv headline" not in result.output


def test_feed_unknown_source_rejected(cli_state) -> None:
    result = invoke("feed", "-s", "haaretz")
    assert result.exit_code == 1
    assert "haaretz" in result.output
    assert cli_state.fetch_text.calls == []


def test_feed_with_thumbnails_column(cli_state) -> None:
    result = invoke("feed", "--thumbnails", "--source", "ynet")
    assert result.exit_code == 0, result.output
    assert "Thumbnail" in result.output


def test_source_list(cli_state) -> None:
    result = invoke("source", "list")
    assert result.exit_code == 0, result.output
    for source_id in ("walla", "ynet", "maariv"):
        assert source_id in result.output


def test_item_votes_accumulate(cli_state) -> None:
    invoke("item", "like", "ynet-1")
    result = invoke("item", "like", "ynet-1")
    assert result.exit_code == 0, result.output
    assert "👍 2" in result.output
    result = invoke("item", "dislike", "ynet-1")
    assert "👎 1" in result.output


def test_user_login_whoami_logout(cli_state) -> None:
    assert "Logged in as dana." in invoke("user", "login", "dana").output
    assert "dana (local:dana)" in invoke("user", "whoami").output
    invoke("user", "logout")
    assert "Not logged in." in invoke("user", "whoami").output


def test_comment_requires_login(cli_state) -> None:
    result = invoke("comment", "add", "ynet-1", "hello")
    assert result.exit_code == 1
    assert "user login" in result.output
    assert "ynet-1" not in cli_state.interactions


def test_comment_thread_flow(cli_state) -> None:
    invoke("user", "login", "dana")
    result = invoke("comment", "add", "ynet-1", "hello from dana")
    assert result.exit_code == 0, result.output
    comment_id = cli_state.interactions.get("ynet-1").comments[0].id

    shown = invoke("item", "show", "ynet-1")
    assert "hello from dana" in shown.output
    assert "deletable" in shown.output

    invoke("user", "login", "itai")
    refused = invoke("comment", "delete", "ynet-1", comment_id)
    assert refused.exit_code == 1
    voted = invoke("comment", "vote", "ynet-1", comment_id, "like")
    assert voted.exit_code == 0, voted.output
    assert "👍 1" in voted.output

    invoke("user", "login", "dana")
    deleted = invoke("comment", "delete", "ynet-1", comment_id)
    assert deleted.exit_code == 0, deleted.output
    assert cli_state.interactions.get("ynet-1").comments == []


def test_theme_toggle(cli_state) -> None:
    assert "Theme set to dark." in invoke("theme", "toggle").output
    assert invoke("theme", "show").output.strip() == "dark"


def test_thumb_lookup(cli_state) -> None:
    finder = ThumbnailFinder(cli_state.global_config, cli_state.fetch_text)
    cli_state.fetch_text.pages[finder.search_url("Headline")] = '<img src="https://img.example/h.jpg">'
    result = invoke("thumb", "Headline")
    assert result.exit_code == 0, result.output
    assert "https://img.example/h.jpg" in result.output


def test_thumb_lookup_without_result(cli_state) -> None:
    finder = ThumbnailFinder(cli_state.global_config, cli_state.fetch_text)
    cli_state.fetch_text.pages[finder.search_url("Nothing")] = "<html></html>"
    result = invoke("thumb", "Nothing")
    assert result.exit_code == 1
    assert "No image found." in result.output


def test_interactions_prune(cli_state) -> None:
    live_id = "ynet-2024-05-01T10:10:00+03:00"
    cli_state.interactions.vote(live_id, "like")
    cli_state.interactions.vote("stale-item", "like")

    result = invoke("interactions", "prune", "--yes")

    assert result.exit_code == 0, result.output
    assert "Pruned 1 record(s)." in result.output
    assert live_id in cli_state.interactions
    assert "stale-item" not in cli_state.interactions


def test_interactions_prune_can_be_cancelled(cli_state) -> None:
    cli_state.interactions.vote("stale-item", "like")
    result = invoke("interactions", "prune", input="n\n")
    assert "Cancelled." in result.output
    assert "stale-item" in cli_state.interactions


def test_log_list_after_refresh(cli_state) -> None:
    invoke("feed")
    result = invoke("log", "list")
    assert result.exit_code == 0, result.output
    assert "ynet.log" in result.output
