"""Probe registry: the set of active periodic probes and their loops.

Structural changes (add / remove / stop) are serialized by an asyncio lock.
``list_checks`` and ``results`` read a snapshot and never wait on it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from concurrent.futures import Executor
from typing import Any

from .errors import (
    DuplicateProbeError,
    ExecutionError,
    InitializationError,
    ProbeError,
    ProbeNotFoundError,
)
from .probes.base import SOURCE_API, CheckResult, Probe
from .scheduler import ScheduledProbe

logger = logging.getLogger(__name__)


def run_one_off(probe: Probe) -> CheckResult:
    """Initialize then execute ``probe`` once, raising on failure.

    Initialization failures surface as ``InitializationError`` and execution
    failures as ``ExecutionError``, whatever the probe raised.
    """
    try:
        probe.initialize()
    except InitializationError:
        raise
    except Exception as e:
        raise InitializationError(str(e)) from e

    t0 = time.perf_counter()
    try:
        probe.execute()
    except ExecutionError:
        raise
    except Exception as e:
        message = str(e) if isinstance(e, ProbeError) else f"{type(e).__name__}: {e}"
        raise ExecutionError(message) from e
    latency = (time.perf_counter() - t0) * 1000
    return CheckResult(
        name=probe.name, kind=probe.kind, success=True,
        message="healthcheck successful", duration_ms=round(latency, 1),
    )


class ProbeRegistry:
    """Concurrency-safe mapping from probe name to its scheduling loop."""

    def __init__(
        self,
        executor: Executor | None = None,
        on_result: Callable[[CheckResult], Any] | None = None,
    ) -> None:
        self._probes: dict[str, ScheduledProbe] = {}
        self._lock = asyncio.Lock()
        self._executor = executor
        self._on_result = on_result

    def __len__(self) -> int:
        return len(self._probes)

    def __contains__(self, name: object) -> bool:
        return name in self._probes

    def get(self, name: str) -> ScheduledProbe | None:
        return self._probes.get(name)

    async def dispatch(self, probe: Probe, source: str = SOURCE_API) -> CheckResult | None:
        """Run a one-off probe now, or register a periodic one.

        Returns the result for one-off probes and ``None`` for periodic ones.
        """
        if probe.one_off:
            probe.set_source(source)
            return await self.run_once(probe)
        await self.add_check(probe, source=source)
        return None

    async def run_once(self, probe: Probe) -> CheckResult:
        """Execute ``probe`` once in the worker pool without registering it."""
        logger.info("Executing one-off healthcheck %s", probe.name)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, run_one_off, probe)

    async def add_check(
        self,
        probe: Probe,
        source: str = SOURCE_API,
        interval: float | None = None,
    ) -> ScheduledProbe:
        """Register ``probe`` and start its loop. Returns before the first tick."""
        async with self._lock:
            if probe.name in self._probes:
                raise DuplicateProbeError(probe.name)
            probe.set_source(source)
            probe.initialize()
            scheduled = ScheduledProbe(
                probe,
                interval=interval,
                executor=self._executor,
                on_result=self._on_result,
            )
            self._probes[probe.name] = scheduled
            scheduled.start()
        logger.info("Healthcheck %s added (source=%s)", probe.name, source)
        return scheduled

    def list_checks(self) -> list[dict[str, Any]]:
        """Snapshot of every registered probe, ordered by name."""
        snapshot = sorted(self._probes.items())
        return [scheduled.probe.to_dict() for _, scheduled in snapshot]

    def results(self) -> list[dict[str, Any]]:
        """Most recent result of every registered probe that has run."""
        snapshot = sorted(self._probes.items())
        return [
            scheduled.last_result.to_dict()
            for _, scheduled in snapshot
            if scheduled.last_result is not None
        ]

    async def remove_check(self, name: str) -> None:
        """Stop the loop of ``name`` and forget it."""
        async with self._lock:
            scheduled = self._probes.get(name)
            if scheduled is None:
                raise ProbeNotFoundError(name)
            await scheduled.stop()
            del self._probes[name]
        logger.info("Healthcheck %s removed", name)

    async def stop(self) -> None:
        """Cancel every loop and wait for in-flight executions."""
        async with self._lock:
            scheduled = list(self._probes.values())
            for entry in scheduled:
                await entry.stop()
            await asyncio.gather(*(entry.wait_idle() for entry in scheduled))
            self._probes.clear()
        logger.info("Probe registry stopped (%d healthchecks)", len(scheduled))
