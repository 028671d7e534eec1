"""Control API: create, list and delete healthchecks.

Endpoints:
  POST   /healthcheck/dns     add (or run once) a DNS healthcheck
  POST   /healthcheck/tcp     add (or run once) a TCP healthcheck
  POST   /healthcheck/http    add (or run once) an HTTP healthcheck
  GET    /healthcheck         list registered healthchecks
  DELETE /healthcheck/{name}  remove a healthcheck
  GET    /result              latest result per registered healthcheck
  GET    /health              daemon liveness
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..errors import (
    DuplicateProbeError,
    ExecutionError,
    InitializationError,
    ProbeNotFoundError,
    RegistryError,
    ValidationError,
)
from ..probes import (
    SOURCE_API,
    DNSProbe,
    DNSProbeConfig,
    HTTPProbe,
    HTTPProbeConfig,
    Probe,
    TCPProbe,
    TCPProbeConfig,
)
from ..registry import ProbeRegistry

logger = logging.getLogger(__name__)

probe_router = APIRouter()


class BasicResponse(BaseModel):
    message: str


def _reply(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=BasicResponse(message=message).model_dump())


def _registry(request: Request) -> ProbeRegistry:
    return request.app.state.registry


async def _handle_check(request: Request, probe: Probe) -> JSONResponse:
    try:
        probe.validate()
    except ValidationError as e:
        msg = f"Invalid healthcheck configuration: {e}"
        logger.error(msg)
        return _reply(400, msg)

    try:
        await _registry(request).dispatch(probe, source=SOURCE_API)
    except InitializationError as e:
        if probe.one_off:
            msg = f"Fail to initialize one off healthcheck {probe.name}: {e}"
        else:
            msg = f"Fail to start the healthcheck: {e}"
        logger.error(msg)
        return _reply(500, msg)
    except ExecutionError as e:
        msg = f"Execution of one off healthcheck {probe.name} failed: {e}"
        logger.error(msg)
        return _reply(500, msg)
    except RegistryError as e:
        msg = f"Fail to start the healthcheck: {e}"
        logger.error(msg)
        return _reply(409 if isinstance(e, DuplicateProbeError) else 500, msg)

    if probe.one_off:
        msg = f"One-off healthcheck {probe.name} successfully executed"
        logger.info(msg)
        return _reply(201, msg)
    return _reply(201, "Healthcheck successfully added")


# ── Healthchecks ─────────────────────────────────────────────────────────────


@probe_router.post("/healthcheck/dns", status_code=201, response_model=BasicResponse)
async def add_dns_check(config: DNSProbeConfig, request: Request) -> JSONResponse:
    return await _handle_check(request, DNSProbe(config))


@probe_router.post("/healthcheck/tcp", status_code=201, response_model=BasicResponse)
async def add_tcp_check(config: TCPProbeConfig, request: Request) -> JSONResponse:
    return await _handle_check(request, TCPProbe(config))


@probe_router.post("/healthcheck/http", status_code=201, response_model=BasicResponse)
async def add_http_check(config: HTTPProbeConfig, request: Request) -> JSONResponse:
    return await _handle_check(request, HTTPProbe(config))


@probe_router.get("/healthcheck")
async def list_checks(request: Request) -> list[dict[str, Any]]:
    return _registry(request).list_checks()


@probe_router.delete("/healthcheck/{name}", response_model=BasicResponse)
async def delete_check(name: str, request: Request) -> JSONResponse:
    logger.info("Deleting healthcheck %s", name)
    try:
        await _registry(request).remove_check(name)
    except ProbeNotFoundError as e:
        msg = f"Fail to delete the healthcheck: {e}"
        logger.error(msg)
        return _reply(404, msg)
    return _reply(200, f"Successfully deleted healthcheck {name}")


# ── Results ──────────────────────────────────────────────────────────────────


@probe_router.get("/result")
async def list_results(request: Request) -> list[dict[str, Any]]:
    return _registry(request).results()


@probe_router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
