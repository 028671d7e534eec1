"""DNS probe: resolve a domain and optionally check the returned addresses."""

from __future__ import annotations

import ipaddress
import socket
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import Field, IPvAnyAddress

from ..errors import ExecutionError, ValidationError
from .base import BaseProbeConfig, Probe

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


class DNSProbeConfig(BaseProbeConfig):
    domain: str = ""
    expected_ips: list[IPvAnyAddress] = Field(default_factory=list, alias="expected-ips")

    def validate_config(self) -> None:
        super().validate_config()
        if not self.domain:
            raise ValidationError("The healthcheck domain is missing")


def resolve_ips(domain: str) -> list[IPAddress]:
    """Resolve ``domain`` through the platform resolver."""
    infos = socket.getaddrinfo(domain, None)
    # IPv6 link-local answers carry a scope id ("fe80::1%eth0")
    return [ipaddress.ip_address(info[4][0].split("%", 1)[0]) for info in infos]


def _canonical(ip: IPAddress) -> IPAddress:
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def verify_ips(expected: Sequence[IPAddress], resolved: Iterable[IPAddress]) -> None:
    """Raise ``ExecutionError`` unless every expected IP is among the resolved ones."""
    found = {_canonical(ip) for ip in resolved}
    missing = [str(ip) for ip in expected if _canonical(ip) not in found]
    if missing:
        raise ExecutionError(f"Expected IP addresses not found: {', '.join(missing)}")


class DNSProbe(Probe):
    kind = "dns"
    config_model = DNSProbeConfig
    config: DNSProbeConfig

    def log_context(self) -> dict[str, Any]:
        return {"probe": self.config.name, "domain": self.config.domain}

    def summary(self) -> str:
        return self.describe(self.config.domain)

    def execute(self) -> None:
        self.logger.debug("start executing healthcheck")
        try:
            ips = resolve_ips(self.config.domain)
        except (OSError, UnicodeError) as e:
            raise ExecutionError(
                f"Fail to lookup IP for domain {self.config.domain}: {e}"
            ) from e
        verify_ips(self.config.expected_ips, ips)
