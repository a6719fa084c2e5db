from __future__ import annotations

import asyncio

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from newsflash.scheduler import REFRESH_JOB_ID, APSchedulerAdapter


def test_build_trigger_accepts_positive_seconds() -> None:
    trigger = APSchedulerAdapter._build_trigger(300)
    assert isinstance(trigger, IntervalTrigger)
    assert trigger.interval.total_seconds() == 300


@pytest.mark.parametrize("interval", [0, -5, "fast", None])
def test_build_trigger_rejects_invalid_interval(interval) -> None:
    with pytest.raises(ValueError):
        APSchedulerAdapter._build_trigger(interval)  # type: ignore[arg-type]


def test_schedule_refresh_uses_single_coalesced_job() -> None:
    adapter = APSchedulerAdapter()
    calls: list[dict] = []

    class StubScheduler:
        def add_job(self, callback, trigger, id, replace_existing, max_instances, coalesce, next_run_time):  # noqa: ANN001
            calls.append(
                {
                    "id": id,
                    "interval": trigger.interval.total_seconds(),
                    "replace_existing": replace_existing,
                    "max_instances": max_instances,
                    "coalesce": coalesce,
                    "immediate": next_run_time is not None,
                }
            )

        def remove_job(self, job_id):  # noqa: ANN001
            calls.append({"event": "remove", "id": job_id})

    adapter.scheduler = StubScheduler()  # type: ignore[assignment]

    async def refresh() -> None:
        return None

    adapter.schedule_refresh(refresh, 60)
    adapter.schedule_refresh(refresh, 120, run_immediately=False)
    adapter.cancel_refresh()

    assert calls == [
        {
            "id": REFRESH_JOB_ID,
            "interval": 60.0,
            "replace_existing": True,
            "max_instances": 1,
            "coalesce": True,
            "immediate": True,
        },
        {
            "id": REFRESH_JOB_ID,
            "interval": 120.0,
            "replace_existing": True,
            "max_instances": 1,
            "coalesce": True,
            "immediate": False,
        },
        {"event": "remove", "id": REFRESH_JOB_ID},
    ]


def test_cancel_without_job_is_harmless() -> None:
    adapter = APSchedulerAdapter()
    adapter.cancel_refresh()
    assert adapter.list_jobs() == []


def test_refresh_runs_immediately_on_the_event_loop() -> None:
    async def scenario() -> list[str]:
        adapter = APSchedulerAdapter()
        done = asyncio.Event()
        runs: list[str] = []

        async def refresh() -> None:
            runs.append("refresh")
            done.set()

        adapter.schedule_refresh(refresh, 3600)
        adapter.start()
        try:
            await asyncio.wait_for(done.wait(), timeout=5)
            assert [job["id"] for job in adapter.list_jobs()] == [REFRESH_JOB_ID]
        finally:
            adapter.shutdown()
        return runs

    assert asyncio.run(scenario()) == ["refresh"]
