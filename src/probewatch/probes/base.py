"""Probe contract, shared configuration and result model.

Every concrete probe (DNS, TCP, HTTP) subclasses ``Probe`` and pairs it with a
configuration model that extends ``BaseProbeConfig``.
"""

from __future__ import annotations

import logging
import math
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from ..errors import ProbeError, ValidationError

MIN_INTERVAL_SECONDS = 2.0

SOURCE_API = "api"
SOURCE_CONFIGURATION = "configuration"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: Any) -> Any:
    """Convert a duration string (``"10s"``, ``"1m30s"``, ``"500ms"``) to seconds.

    Numbers and anything else are returned untouched so pydantic can
    validate them as plain seconds.
    """
    if not isinstance(value, str):
        return value
    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass
    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text) or not text:
        raise ValueError(f"invalid duration: {value!r}")
    return total


Duration = Annotated[float, BeforeValidator(parse_duration)]


# ── Configuration ────────────────────────────────────────────────────────────


class BaseProbeConfig(BaseModel):
    """Fields shared by every probe type."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    description: str = ""
    interval: Duration | None = None
    one_off: bool = Field(default=False, alias="one-off")
    source: str = ""

    def validate_config(self) -> None:
        """Raise ``ValidationError`` when the configuration is not usable."""
        if not self.name:
            raise ValidationError("The healthcheck name is missing")
        if not self.one_off:
            if (
                self.interval is None
                or not math.isfinite(self.interval)
                or self.interval < MIN_INTERVAL_SECONDS
            ):
                raise ValidationError(
                    "The healthcheck interval should be greater than 2 seconds"
                )


# ── Results ──────────────────────────────────────────────────────────────────


@dataclass
class CheckResult:
    """Outcome of a single probe execution."""

    name: str
    kind: str
    success: bool
    message: str = ""
    duration_ms: float = 0.0
    timestamp: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.kind,
            "success": self.success,
            "message": self.message,
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }


# ── Logging ──────────────────────────────────────────────────────────────────


class ProbeLogger(logging.LoggerAdapter):
    """Logger bound to a probe's context fields.

    The fields are attached to each record (``record.probe``, ``record.domain``
    ...) and appended to the message as ``key=value`` pairs.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        context = " ".join(f"{k}={v}" for k, v in self.extra.items())
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return f"{msg} [{context}]", kwargs


# ── Probe contract ───────────────────────────────────────────────────────────


class Probe(ABC):
    """A configured health check.

    Subclasses set ``kind`` and ``config_model`` and implement ``execute``,
    ``summary`` and ``log_context``.
    """

    kind: ClassVar[str] = ""
    config_model: ClassVar[type[BaseProbeConfig]] = BaseProbeConfig

    def __init__(self, config: BaseProbeConfig, logger: logging.Logger | None = None) -> None:
        self.config = config
        self.logger = ProbeLogger(
            logger or logging.getLogger(type(self).__module__), self.log_context()
        )

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def one_off(self) -> bool:
        return self.config.one_off

    def validate(self) -> None:
        self.config.validate_config()

    def initialize(self) -> None:
        """Prepare per-execution state. Must be idempotent."""

    @abstractmethod
    def execute(self) -> None:
        """Run one check attempt. Raise ``ExecutionError`` on failure."""

    @abstractmethod
    def summary(self) -> str: ...

    def log_context(self) -> dict[str, Any]:
        return {"probe": self.config.name}

    def set_source(self, source: str) -> None:
        self.config.source = source

    def get_config(self) -> BaseProbeConfig:
        return self.config.model_copy(deep=True)

    def describe(self, target: str) -> str:
        if self.config.description:
            return f"{self.config.description} on {target}"
        return f"on {target}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.kind,
            "summary": self.summary(),
            "source": self.config.source,
            "config": self.config.model_dump(mode="json", by_alias=True),
        }


def execute_check(probe: Probe) -> CheckResult:
    """Run ``probe.execute()`` once and turn the outcome into a ``CheckResult``.

    Never raises: probe failures and unexpected errors become failed results.
    """
    t0 = time.perf_counter()
    try:
        probe.execute()
        success, message = True, "healthcheck successful"
    except ProbeError as e:
        success, message = False, str(e)
    except Exception as e:
        probe.logger.exception("Unexpected error while executing healthcheck")
        success, message = False, f"Error: {type(e).__name__}: {e}"
    latency = (time.perf_counter() - t0) * 1000
    return CheckResult(
        name=probe.name, kind=probe.kind, success=success,
        message=message, duration_ms=round(latency, 1),
    )
