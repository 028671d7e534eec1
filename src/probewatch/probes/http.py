"""HTTP probe: one request, success decided by the response status."""

from __future__ import annotations

import math
from typing import Any

import httpx
from pydantic import Field

from ..errors import ExecutionError, InitializationError, ValidationError
from .base import BaseProbeConfig, Duration, Probe
from .tcp import validate_target

DEFAULT_TIMEOUT = 2.0


class HTTPProbeConfig(BaseProbeConfig):
    target: str = ""
    port: int = 0
    protocol: str = "http"
    path: str = "/"
    method: str = "GET"
    valid_status: list[int] = Field(default_factory=list, alias="valid-status")
    headers: dict[str, str] = Field(default_factory=dict)
    body: str = ""
    timeout: Duration = DEFAULT_TIMEOUT

    def validate_config(self) -> None:
        super().validate_config()
        validate_target(self.target, self.port)
        if self.protocol not in ("http", "https"):
            raise ValidationError(
                f"The healthcheck protocol should be http or https, got {self.protocol!r}"
            )
        if not self.method:
            raise ValidationError("The healthcheck method is missing")
        for status in self.valid_status:
            if not 100 <= status <= 599:
                raise ValidationError(f"The healthcheck valid status {status} is invalid")
        if not math.isfinite(self.timeout) or self.timeout <= 0:
            raise ValidationError("The healthcheck timeout should be positive")


def build_url(config: HTTPProbeConfig) -> str:
    host = config.target
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    path = config.path if config.path.startswith("/") else f"/{config.path}"
    return f"{config.protocol}://{host}:{config.port}{path}"


class HTTPProbe(Probe):
    kind = "http"
    config_model = HTTPProbeConfig
    config: HTTPProbeConfig

    url: str = ""

    def log_context(self) -> dict[str, Any]:
        return {"probe": self.config.name, "target": self.config.target, "port": self.config.port}

    def summary(self) -> str:
        return self.describe(
            f"{self.config.method.upper()} {self.config.protocol}://"
            f"{self.config.target}:{self.config.port}{self.config.path}"
        )

    def initialize(self) -> None:
        try:
            url = build_url(self.config)
            httpx.URL(url)
        except (httpx.InvalidURL, ValueError) as e:
            raise InitializationError(f"Invalid healthcheck URL: {e}") from e
        self.url = url

    def is_valid_status(self, status: int) -> bool:
        if self.config.valid_status:
            return status in self.config.valid_status
        return 200 <= status < 300

    def execute(self) -> None:
        self.logger.debug("start executing healthcheck")
        if not self.url:
            self.initialize()
        try:
            with httpx.Client(timeout=self.config.timeout, follow_redirects=False) as client:
                with client.stream(
                    self.config.method.upper(),
                    self.url,
                    headers=self.config.headers or None,
                    content=self.config.body or None,
                ) as resp:
                    # Drain without buffering the body
                    for _ in resp.iter_bytes():
                        pass
        except httpx.TimeoutException as e:
            raise ExecutionError(f"HTTP request to {self.url} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ExecutionError(
                f"HTTP request to {self.url} failed: {type(e).__name__}: {e}"
            ) from e

        if not self.is_valid_status(resp.status_code):
            raise ExecutionError(
                f"HTTP request to {self.url} returned unexpected status {resp.status_code}"
            )
