"""Tests for the TCP probe."""

from __future__ import annotations

import socket
from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest

from probewatch.errors import ExecutionError
from probewatch.probes.tcp import TCPProbe, TCPProbeConfig


def tcp_probe(port: int, timeout: float = 1.0) -> TCPProbe:
    return TCPProbe(TCPProbeConfig(name="db", target="127.0.0.1", port=port, timeout=timeout, interval=5))


@pytest.fixture
def listening_port() -> Iterator[int]:
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    try:
        yield server.getsockname()[1]
    finally:
        server.close()


@pytest.fixture
def closed_port() -> int:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


class TestTCPProbe:
    def test_connect_success(self, listening_port: int) -> None:
        tcp_probe(listening_port).execute()

    def test_connection_refused(self, closed_port: int) -> None:
        with pytest.raises(ExecutionError, match=f"127.0.0.1:{closed_port}") as exc:
            tcp_probe(closed_port).execute()
        assert isinstance(exc.value.__cause__, OSError)

    @patch("probewatch.probes.tcp.socket.create_connection")
    def test_timeout_and_socket_closed(self, mock_connect) -> None:
        mock_connect.side_effect = socket.timeout("timed out")
        with pytest.raises(ExecutionError, match="timed out"):
            tcp_probe(80, timeout=0.5).execute()
        mock_connect.assert_called_once_with(("127.0.0.1", 80), timeout=0.5)

    @patch("probewatch.probes.tcp.socket.create_connection")
    def test_connection_closed_after_attempt(self, mock_connect) -> None:
        conn = MagicMock()
        mock_connect.return_value = conn
        tcp_probe(80).execute()
        conn.__exit__.assert_called_once()

    def test_summary(self) -> None:
        assert tcp_probe(5432).summary() == "on 127.0.0.1:5432"
