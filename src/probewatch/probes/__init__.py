"""Probe implementations: DNS resolve, TCP connect, HTTP request."""

from __future__ import annotations

import logging
from typing import Any

from .base import (
    SOURCE_API,
    SOURCE_CONFIGURATION,
    BaseProbeConfig,
    CheckResult,
    Probe,
    execute_check,
)
from .dns import DNSProbe, DNSProbeConfig
from .http import HTTPProbe, HTTPProbeConfig
from .tcp import TCPProbe, TCPProbeConfig

PROBE_TYPES: dict[str, type[Probe]] = {
    DNSProbe.kind: DNSProbe,
    TCPProbe.kind: TCPProbe,
    HTTPProbe.kind: HTTPProbe,
}


def build_probe(kind: str, data: dict[str, Any], logger: logging.Logger | None = None) -> Probe:
    """Parse ``data`` with the config model of ``kind`` and return the probe.

    Raises ``KeyError`` for an unknown kind and ``pydantic.ValidationError``
    when ``data`` does not match the model.
    """
    probe_cls = PROBE_TYPES[kind]
    return probe_cls(probe_cls.config_model.model_validate(data), logger=logger)


__all__ = [
    "PROBE_TYPES",
    "SOURCE_API",
    "SOURCE_CONFIGURATION",
    "BaseProbeConfig",
    "CheckResult",
    "DNSProbe",
    "DNSProbeConfig",
    "HTTPProbe",
    "HTTPProbeConfig",
    "Probe",
    "TCPProbe",
    "TCPProbeConfig",
    "build_probe",
    "execute_check",
]
