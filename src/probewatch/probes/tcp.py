"""TCP probe: open (and immediately close) a connection to host:port."""

from __future__ import annotations

import math
import socket
from typing import Any

from ..errors import ExecutionError, ValidationError
from .base import BaseProbeConfig, Duration, Probe

DEFAULT_TIMEOUT = 2.0


def validate_target(target: str, port: int) -> None:
    if not target:
        raise ValidationError("The healthcheck target is missing")
    if not 0 < port < 65536:
        raise ValidationError(f"The healthcheck port {port} is invalid")


class TCPProbeConfig(BaseProbeConfig):
    target: str = ""
    port: int = 0
    timeout: Duration = DEFAULT_TIMEOUT

    def validate_config(self) -> None:
        super().validate_config()
        validate_target(self.target, self.port)
        if not math.isfinite(self.timeout) or self.timeout <= 0:
            raise ValidationError("The healthcheck timeout should be positive")


class TCPProbe(Probe):
    kind = "tcp"
    config_model = TCPProbeConfig
    config: TCPProbeConfig

    def log_context(self) -> dict[str, Any]:
        return {"probe": self.config.name, "target": self.config.target, "port": self.config.port}

    def summary(self) -> str:
        return self.describe(f"{self.config.target}:{self.config.port}")

    def execute(self) -> None:
        self.logger.debug("start executing healthcheck")
        address = (self.config.target, self.config.port)
        try:
            with socket.create_connection(address, timeout=self.config.timeout):
                pass
        except OSError as e:
            raise ExecutionError(
                f"Fail to connect to {self.config.target}:{self.config.port}: {e}"
            ) from e
