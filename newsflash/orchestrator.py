"""Refresh cycle wiring together fetching, extraction and merging."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Collection, Sequence

from .config import ConfigRepository, GlobalConfig, RefreshPolicy
from .engine import FetchText, Fetcher, MergedItem, RawItem, SourceDescriptor, build_descriptor, merge_results
from .errors import ExtractionError, NewsflashError, RefreshError, SourceFetchError
from .logging_conf import configure_logging, source_logger


@dataclass(slots=True)
class RefreshResult:
    """Outcome of one refresh cycle across all attempted sources."""

    items: tuple[MergedItem, ...]
    sources: tuple[str, ...]
    started_at: datetime
    finished_at: datetime
    failures: dict[str, BaseException] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def duration(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def succeeded_sources(self) -> tuple[str, ...]:
        return tuple(source for source in self.sources if source not in self.failures)


class FeedSnapshot:
    """Holder of the latest complete feed, swapped in a single assignment."""

    def __init__(self) -> None:
        self._result: RefreshResult | None = None

    @property
    def result(self) -> RefreshResult | None:
        return self._result

    @property
    def items(self) -> tuple[MergedItem, ...]:
        return self._result.items if self._result else ()

    def replace(self, result: RefreshResult) -> None:
        self._result = result

    def clear(self) -> None:
        self._result = None


class Orchestrator:
    """Run refresh cycles: one concurrent, time-bounded fetch per source."""

    def __init__(
        self,
        config_repository: ConfigRepository,
        fetch_text: FetchText | None = None,
        snapshot: FeedSnapshot | None = None,
    ) -> None:
        self.config_repository = config_repository
        self.global_config: GlobalConfig = config_repository.load_global_config()
        self.snapshot = snapshot or FeedSnapshot()
        self._fetch_text = fetch_text
        self.logger = configure_logging().bind(component="orchestrator")

    # ------------------------------------------------------------------
    def descriptors(self, selected: Collection[str] | None = None) -> list[SourceDescriptor]:
        """Build descriptors for enabled sources, keeping configured order."""

        descriptors = []
        for config in self.config_repository.list_sources():
            if not config.enabled:
                continue
            if selected and config.source_id not in selected:
                continue
            descriptors.append(build_descriptor(config))
        return descriptors

    async def refresh(
        self,
        sources: Sequence[SourceDescriptor] | None = None,
        *,
        now: datetime | None = None,
    ) -> RefreshResult:
        """Fetch, extract and merge every source, then swap the snapshot.

        All sources are awaited to completion. Under the fail-fast policy any
        failure clears the snapshot and raises :class:`RefreshError`; under the
        partial policy successful sources are merged and failures reported.
        """
        if sources is None:
            sources = self.descriptors()
        if self._fetch_text is not None:
            return await self._run_cycle(sources, self._fetch_text, now)
        async with Fetcher(self.global_config) as fetcher:
            return await self._run_cycle(sources, fetcher.fetch_text, now)

    async def _run_cycle(
        self,
        sources: Sequence[SourceDescriptor],
        fetch_text: FetchText,
        now: datetime | None,
    ) -> RefreshResult:
        started_at = datetime.now(timezone.utc)
        outcomes = await asyncio.gather(
            *(self._collect(source, fetch_text, now) for source in sources),
            return_exceptions=True,
        )

        chunks: list[list[RawItem]] = []
        failures: dict[str, BaseException] = {}
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, NewsflashError):
                failures[source.source_id] = outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                chunks.append(outcome)

        finished_at = datetime.now(timezone.utc)
        if failures and self.global_config.refresh_policy is RefreshPolicy.FAIL_FAST:
            self.snapshot.clear()
            self.logger.error(
                "refresh_failed",
                failed_sources=sorted(failures),
                errors={key: str(value) for key, value in failures.items()},
            )
            raise RefreshError(failures)

        result = RefreshResult(
            items=merge_results(chunks),
            sources=tuple(source.source_id for source in sources),
            started_at=started_at,
            finished_at=finished_at,
            failures=failures,
        )
        self.snapshot.replace(result)
        self.logger.info(
            "refresh_completed",
            items=len(result.items),
            sources=len(sources),
            failed_sources=sorted(failures),
            duration=round(result.duration, 3),
        )
        return result

    async def _collect(
        self, source: SourceDescriptor, fetch_text: FetchText, now: datetime | None
    ) -> list[RawItem]:
        log = source_logger(source.source_id)
        timeout = self.global_config.fetch_timeout
        log.info("fetch_started", url=source.fetch_url, timeout=timeout)
        try:
            html = await fetch_text(source.fetch_url, timeout)
        except Exception as exc:  # noqa: BLE001
            log.warning("fetch_failed", url=source.fetch_url, error=str(exc), error_type=type(exc).__name__)
            raise SourceFetchError(source.source_id, exc) from exc
        try:
            items = source.extract(html, now=now)
        except NewsflashError:
            raise
        except Exception as exc:  # noqa: BLE001
            log.error("extract_failed", error=str(exc), error_type=type(exc).__name__)
            raise ExtractionError(source.source_id, f"unexpected {type(exc).__name__}: {exc}") from exc
        log.info("extract_completed", count=len(items))
        return items


__all__ = ["FeedSnapshot", "Orchestrator", "RefreshResult"]
