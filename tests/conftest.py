"""Shared fixtures: isolated home directory, config builders, fake transport and sample pages."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Mapping

import pytest

from newsflash.config import ConfigLocator, ConfigRepository, GlobalConfig, SourceConfig
from newsflash.infra import StateStore

ISRAEL_TZ = timezone(timedelta(hours=3))


@pytest.fixture(autouse=True)
def newsflash_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("NEWSFLASH_HOME", str(home))
    return home


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 5, 1, 12, 0, tzinfo=ISRAEL_TZ)


@pytest.fixture
def sample_global_config() -> GlobalConfig:
    return GlobalConfig(
        fetch_timeout=2.0,
        user_agent="newsflash-tests",
        thumbnail_search_url="https://images.example/search?q={query}",
    )


@pytest.fixture
def sample_source_config() -> Callable[..., SourceConfig]:
    def _builder(**overrides: Any) -> SourceConfig:
        base: dict[str, Any] = {
            "source_id": "walla",
            "display_name": "Walla",
            "fetch_url": "https://walla.example/breaking",
            "item_cap": 12,
        }
        base.update(overrides)
        return SourceConfig(**base)

    return _builder


@pytest.fixture
def temp_config_repository(newsflash_home: Path) -> ConfigRepository:
    return ConfigRepository(ConfigLocator())


@pytest.fixture
def state_store(tmp_path: Path) -> Iterator[StateStore]:
    store = StateStore(tmp_path / "state.db")
    yield store
    store.close()


class FakeFetch:
    """In-memory ``fetch_text``: maps URL to a body or to an exception to raise."""

    def __init__(self, pages: Mapping[str, str | BaseException]) -> None:
        self.pages = dict(pages)
        self.calls: list[str] = []

    async def __call__(self, url: str, timeout: float) -> str:
        self.calls.append(url)
        await asyncio.sleep(0)
        body = self.pages[url]
        if isinstance(body, BaseException):
            raise body
        return body


@pytest.fixture
def fake_fetch() -> Callable[[Mapping[str, str | BaseException]], FakeFetch]:
    return FakeFetch


@pytest.fixture
def walla_page() -> Callable[[Iterable[tuple[str, str, str]]], str]:
    """Build a walla ticker page from ``(clock, title, href)`` triples."""

    def _build(entries: Iterable[tuple[str, str, str]]) -> str:
        sections = "".join(
            f'<section><a href="{href}"><span class="red-time">{clock}</span>'
            f'<h3 class="breaking-item-title">{title}</h3></a></section>'
            for clock, title, href in entries
        )
        return f'<html><body><div class="breaking-list">{sections}</div></body></html>'

    return _build


@pytest.fixture
def ynet_page() -> Callable[[Iterable[tuple[str, str]]], str]:
    """Build a ynet accordion page from ``(iso_datetime, title)`` pairs."""

    def _build(entries: Iterable[tuple[str, str]]) -> str:
        sections = "".join(
            f'<div class="AccordionSection"><time datetime="{stamp}">x</time>'
            f'<div class="title">{title}</div></div>'
            for stamp, title in entries
        )
        return f'<html><body><div class="Accordion">{sections}</div></body></html>'

    return _build


@pytest.fixture
def maariv_page() -> Callable[[Iterable[tuple[str, str, str, str]]], str]:
    """Build a maariv list from ``(iso_datetime, title, href, reporter)`` tuples."""

    def _build(entries: Iterable[tuple[str, str, str, str]]) -> str:
        articles = "".join(
            f'<article class="breaking-news-item"><a href="{href}">'
            f'<time datetime="{stamp}">x</time><h2 class="breaking-news-title">{title}</h2></a>'
            f'<span class="breaking-news-reporter">{reporter}</span></article>'
            for stamp, title, href, reporter in entries
        )
        return f"<html><body>{articles}</body></html>"

    return _build


@pytest.fixture
def configured_sources(temp_config_repository: ConfigRepository) -> list[SourceConfig]:
    """Three sources, one per extractor, saved before the defaults can be seeded."""

    sources = [
        SourceConfig(
            source_id="walla",
            display_name="Walla",
            fetch_url="https://walla.example/breaking",
            item_cap=12,
            position=0,
        ),
        SourceConfig(
            source_id="ynet",
            display_name="Ynet",
            fetch_url="https://ynet.example/news",
            item_cap=20,
            position=1,
        ),
        SourceConfig(
            source_id="maariv",
            display_name="Maariv",
            fetch_url="https://maariv.example/breaking-news",
            item_cap=12,
            position=2,
        ),
    ]
    for source in sources:
        temp_config_repository.save_source(source)
    return sources


@pytest.fixture
def five_per_source_pages(walla_page, ynet_page, maariv_page) -> dict[str, str]:
    """Pages yielding five distinct items each, relative to ``fixed_now`` (12:00 +03:00)."""

    walla = walla_page((f"11:{10 + index}", f"Walla headline {index}", f"/item/{index}") for index in range(5))
    ynet = ynet_page(
        (f"2024-05-01T10:{10 + index}:00+03:00", f"Ynet headline {index}") for index in range(5)
    )
    maariv = maariv_page(
        (f"2024-05-01T09:{10 + index}:00+03:00", f"Maariv headline {index}", f"/news/{index}", "Reporter")
        for index in range(5)
    )
    return {
        "https://walla.example/breaking": walla,
        "https://ynet.example/news": ynet,
        "https://maariv.example/breaking-news": maariv,
    }
