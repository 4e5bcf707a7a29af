from __future__ import annotations

from typing import Callable

import pytest


class ManualScheduler:
    """Collects deferred callbacks so tests decide when and in which order they run."""

    def __init__(self) -> None:
        self.pending: list[Callable[[], None]] = []

    def __call__(self, callback: Callable[[], None]) -> None:
        self.pending.append(callback)

    def run_all(self) -> None:
        while self.pending:
            self.pending.pop(0)()

    def run_reversed(self) -> None:
        callbacks, self.pending = self.pending, []
        for callback in reversed(callbacks):
            callback()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()
