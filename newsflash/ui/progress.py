"""Spinner shown while a refresh cycle is in flight."""

from __future__ import annotations

import time

from rich.console import Console
from rich.status import Status


class ProgressActivity:
    """Indeterminate refresh indicator; silent when output is not a terminal."""

    def __init__(self, console: Console, *, enabled: bool = True, spinner: str = "dots") -> None:
        self.console = console
        self.enabled = enabled and console.is_terminal
        self.spinner = spinner
        self._live: Status | None = None
        self._started: float | None = None

    def __enter__(self) -> "ProgressActivity":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def elapsed(self) -> float:
        return 0.0 if self._started is None else time.monotonic() - self._started

    def start(self, message: str) -> None:
        self._started = time.monotonic()
        if self.enabled and self._live is None:
            self._live = Status(message, console=self.console, spinner=self.spinner)
            self._live.start()

    def update(self, message: str) -> None:
        if self._live is not None:
            self._live.update(f"{message} ({self.elapsed:.1f}s)")

    def close(self) -> None:
        live, self._live = self._live, None
        if live is not None:
            live.stop()


__all__ = ["ProgressActivity"]
