"""Startup probes file: YAML lists of DNS / TCP / HTTP healthchecks.

Example::

    dns-checks:
      - name: resolver
        domain: example.com
        interval: 30s
    http-checks:
      - name: api
        target: api.example.com
        port: 443
        protocol: https
        path: /health
        interval: 1m
"""

from __future__ import annotations

import logging
from pathlib import Path

import pydantic
import yaml

from .errors import ProbewatchError, ValidationError
from .probes import SOURCE_CONFIGURATION, Probe, build_probe
from .registry import ProbeRegistry

logger = logging.getLogger(__name__)

SECTIONS = {
    "dns-checks": "dns",
    "tcp-checks": "tcp",
    "http-checks": "http",
}


def load_probes(path: Path, probe_logger: logging.Logger | None = None) -> list[Probe]:
    """Parse the probes file and return every valid probe it declares.

    Malformed entries are skipped with a warning; a missing or unreadable
    file yields an empty list.
    """
    if not path.exists():
        logger.warning("Probes file not found: %s", path)
        return []

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to parse %s: %s", path, e)
        return []

    if not isinstance(raw, dict):
        logger.error(
            "Failed to parse %s: expected a mapping of sections, got %s",
            path, type(raw).__name__,
        )
        return []

    probes: list[Probe] = []
    for section, kind in SECTIONS.items():
        entries = raw.get(section) or []
        if not isinstance(entries, list):
            logger.warning(
                "Skipping section %s in %s: expected a list of healthchecks", section, path
            )
            continue
        for entry in entries:
            try:
                probe = build_probe(kind, entry, logger=probe_logger)
                probe.validate()
            except (pydantic.ValidationError, ValidationError) as e:
                logger.warning("Skipping malformed %s healthcheck entry: %s", kind, e)
                continue
            probes.append(probe)

    logger.info("Loaded %d healthchecks from %s", len(probes), path)
    return probes


async def admit_probes(registry: ProbeRegistry, probes: list[Probe]) -> int:
    """Register the periodic probes of ``probes``; return how many were added."""
    added = 0
    for probe in probes:
        if probe.one_off:
            logger.warning("Ignoring one-off healthcheck %s in probes file", probe.name)
            continue
        try:
            await registry.add_check(probe, source=SOURCE_CONFIGURATION)
        except ProbewatchError as e:
            logger.warning("Fail to start healthcheck %s: %s", probe.name, e)
            continue
        added += 1
    return added
