"""Per-probe scheduling loop.

Each periodic probe gets one ``ScheduledProbe``: an asyncio task that ticks
every ``interval`` seconds and runs the blocking ``execute()`` in a thread
pool so it never stalls the event loop.

Policy:
- the first execution happens one full interval after ``start()``
- a tick that fires while the previous execution is still running is
  skipped (dropped, not queued, not logged)
- ``stop()`` suppresses future ticks only; an execution already running
  finishes and its outcome is still logged and recorded
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from concurrent.futures import Executor
from enum import Enum
from typing import Any

from .probes.base import CheckResult, Probe, execute_check

logger = logging.getLogger(__name__)


class ScheduleState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    CANCELLED = "cancelled"


class ScheduledProbe:
    """Drives repeated execution of a single probe until cancelled."""

    def __init__(
        self,
        probe: Probe,
        interval: float | None = None,
        executor: Executor | None = None,
        on_result: Callable[[CheckResult], Any] | None = None,
    ) -> None:
        self.probe = probe
        self.interval = interval if interval is not None else probe.config.interval
        if not self.interval or not math.isfinite(self.interval) or self.interval <= 0:
            raise ValueError(f"Invalid interval for healthcheck {probe.name}: {self.interval}")
        self.state = ScheduleState.IDLE
        self.last_result: CheckResult | None = None
        self.ticks_skipped = 0
        self._executor = executor
        self._on_result = on_result
        self._loop_task: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[None] | None = None

    @property
    def name(self) -> str:
        return self.probe.name

    @property
    def busy(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def start(self) -> None:
        """Arm the timer. Must be called from a running event loop."""
        if self.state is not ScheduleState.IDLE:
            return
        self._loop_task = asyncio.create_task(self._tick_loop(), name=f"probe-{self.name}")
        self.state = ScheduleState.RUNNING
        logger.debug("Scheduled healthcheck %s every %.1fs", self.name, self.interval)

    async def stop(self) -> None:
        """Cancel the timer and wait for the loop to exit."""
        if self.state is ScheduleState.CANCELLED:
            return
        self.state = ScheduleState.CANCELLED
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass

    async def wait_idle(self) -> None:
        """Wait for the in-flight execution, if any, to finish."""
        if self._inflight is not None:
            await asyncio.gather(self._inflight, return_exceptions=True)

    async def _tick_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval
        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            next_tick += self.interval
            if self.busy:
                self.ticks_skipped += 1
                continue
            self._inflight = asyncio.create_task(self._tick(), name=f"probe-{self.name}-tick")

    async def _tick(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(self._executor, execute_check, self.probe)
        except Exception:
            logger.exception("Healthcheck error: %s", self.name)
            return
        self._record(result)

    def _record(self, result: CheckResult) -> None:
        self.last_result = result
        if result.success:
            self.probe.logger.info("Healthcheck successful (%.1fms)", result.duration_ms)
        else:
            self.probe.logger.error("Healthcheck failed: %s", result.message)

        if self._on_result:
            try:
                self._on_result(result)
            except Exception:
                logger.exception("Result callback error")
