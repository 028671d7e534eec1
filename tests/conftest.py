"""Shared test fixtures."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

import pytest

from probewatch.errors import ExecutionError
from probewatch.probes.base import BaseProbeConfig, Probe


class FakeProbe(Probe):
    """Probe whose execution time and outcome are controlled by the test."""

    kind = "fake"

    def __init__(
        self,
        name: str = "fake",
        interval: float | None = 0.05,
        one_off: bool = False,
        duration: float = 0.0,
        fail: bool = False,
        init_error: Exception | None = None,
    ) -> None:
        super().__init__(BaseProbeConfig(name=name, interval=interval, one_off=one_off))
        self.duration = duration
        self.fail = fail
        self.init_error = init_error
        self.initialized = 0
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def initialize(self) -> None:
        self.initialized += 1
        if self.init_error is not None:
            raise self.init_error

    def execute(self) -> None:
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.duration)
            if self.fail:
                raise ExecutionError("boom")
        finally:
            with self._lock:
                self.active -= 1

    def summary(self) -> str:
        return self.describe("nowhere")


@pytest.fixture
def make_probe() -> Callable[..., FakeProbe]:
    """Factory for ``FakeProbe`` instances."""
    return FakeProbe
