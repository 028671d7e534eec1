"""Tests for the HTTP probe."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from unittest.mock import patch

import httpx
import pytest

from probewatch.errors import ExecutionError, InitializationError
from probewatch.probes.http import HTTPProbe, HTTPProbeConfig, build_url

Handler = Callable[[httpx.Request], httpx.Response]

_RealClient = httpx.Client


@pytest.fixture
def mock_transport() -> Iterator[Callable[[Handler], list[httpx.Request]]]:
    """Route every httpx.Client built by the probe through a MockTransport."""
    patches = []

    def install(handler: Handler) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        def factory(**kwargs):
            return _RealClient(transport=httpx.MockTransport(record), **kwargs)

        p = patch("probewatch.probes.http.httpx.Client", side_effect=factory)
        p.start()
        patches.append(p)
        return seen

    yield install
    for p in patches:
        p.stop()


def http_probe(**overrides: object) -> HTTPProbe:
    data = {"name": "api", "target": "example.com", "port": 8080, "path": "/health", "interval": "10s"}
    data.update(overrides)
    probe = HTTPProbe(HTTPProbeConfig.model_validate(data))
    probe.initialize()
    return probe


class TestBuildURL:
    def test_basic(self) -> None:
        config = HTTPProbeConfig(name="a", target="example.com", port=443, protocol="https", path="status")
        assert build_url(config) == "https://example.com:443/status"

    def test_ipv6_target_bracketed(self) -> None:
        config = HTTPProbeConfig(name="a", target="::1", port=80)
        assert build_url(config) == "http://[::1]:80/"


class TestHTTPProbe:
    def test_success_any_2xx(self, mock_transport) -> None:
        seen = mock_transport(lambda req: httpx.Response(204))
        http_probe().execute()
        assert len(seen) == 1
        assert str(seen[0].url) == "http://example.com:8080/health"
        assert seen[0].method == "GET"

    def test_unexpected_status(self, mock_transport) -> None:
        mock_transport(lambda req: httpx.Response(503, text="down"))
        with pytest.raises(ExecutionError, match="unexpected status 503"):
            http_probe().execute()

    def test_valid_status_list(self, mock_transport) -> None:
        mock_transport(lambda req: httpx.Response(404))
        http_probe(**{"valid-status": [404]}).execute()

    def test_valid_status_excludes_other_2xx(self, mock_transport) -> None:
        mock_transport(lambda req: httpx.Response(200))
        with pytest.raises(ExecutionError, match="unexpected status 200"):
            http_probe(**{"valid-status": [201]}).execute()

    def test_method_headers_and_body(self, mock_transport) -> None:
        seen = mock_transport(lambda req: httpx.Response(200))
        http_probe(method="post", headers={"X-Token": "abc"}, body='{"ping": true}').execute()
        assert seen[0].method == "POST"
        assert seen[0].headers["X-Token"] == "abc"
        assert seen[0].content == b'{"ping": true}'

    def test_body_is_drained(self, mock_transport) -> None:
        mock_transport(lambda req: httpx.Response(200, content=b"x" * 100_000))
        http_probe().execute()

    def test_timeout(self, mock_transport) -> None:
        def handler(req: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=req)

        mock_transport(handler)
        with pytest.raises(ExecutionError, match="timed out") as exc:
            http_probe().execute()
        assert isinstance(exc.value.__cause__, httpx.TimeoutException)

    def test_transport_error(self, mock_transport) -> None:
        def handler(req: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=req)

        mock_transport(handler)
        with pytest.raises(ExecutionError, match="ConnectError"):
            http_probe().execute()

    def test_redirects_not_followed(self, mock_transport) -> None:
        seen = mock_transport(
            lambda req: httpx.Response(302, headers={"Location": "http://example.com:8080/other"})
        )
        with pytest.raises(ExecutionError, match="302"):
            http_probe().execute()
        assert len(seen) == 1

    def test_timeout_passed_to_client(self, mock_transport) -> None:
        mock_transport(lambda req: httpx.Response(200))
        probe = http_probe(timeout="750ms")
        with patch("probewatch.probes.http.httpx.Client", wraps=httpx.Client) as client_cls:
            probe.execute()
        assert client_cls.call_args.kwargs["timeout"] == pytest.approx(0.75)

    def test_initialize_rejects_bad_url(self) -> None:
        probe = HTTPProbe(HTTPProbeConfig(name="a", target="exa\tmple.com", port=80))
        with pytest.raises(InitializationError):
            probe.initialize()

    def test_summary(self) -> None:
        probe = http_probe(description="API health")
        assert probe.summary() == "API health on GET http://example.com:8080/health"
