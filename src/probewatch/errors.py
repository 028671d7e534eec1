"""Error taxonomy for probes and the registry."""

from __future__ import annotations


class ProbewatchError(Exception):
    """Base class for all probewatch errors."""


# ── Probe lifecycle ──────────────────────────────────────────────────────────


class ProbeError(ProbewatchError):
    """Base for errors raised by a probe."""


class ValidationError(ProbeError):
    """The probe configuration is invalid. Raised before any I/O."""


class InitializationError(ProbeError):
    """The probe could not prepare its execution state."""


class ExecutionError(ProbeError):
    """A single check attempt failed."""


# ── Registry ─────────────────────────────────────────────────────────────────


class RegistryError(ProbewatchError):
    """Base for registry errors."""


class DuplicateProbeError(RegistryError):
    """A healthcheck with the same name is already registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"a healthcheck named {name} already exists (duplicate name)")


class ProbeNotFoundError(RegistryError):
    """No healthcheck is registered under the given name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"healthcheck {name} not found")
