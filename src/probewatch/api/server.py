"""FastAPI application for the probewatch control API."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import settings
from ..loader import admit_probes, load_probes
from ..registry import ProbeRegistry
from .routes import probe_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the registry on startup, stop every loop on shutdown."""
    executor = ThreadPoolExecutor(
        max_workers=settings.executor_workers, thread_name_prefix="probe",
    )
    registry = ProbeRegistry(executor=executor)
    app.state.registry = registry

    if settings.probes_file:
        probes = load_probes(Path(settings.probes_file))
        added = await admit_probes(registry, probes)
        logger.info("Started %d healthchecks from %s", added, settings.probes_file)

    yield

    # Shutdown
    await registry.stop()
    executor.shutdown(wait=False)


def create_app() -> FastAPI:
    app = FastAPI(
        title="probewatch",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        msg = f"Fail to create the healthcheck. Invalid JSON: {exc.errors()}"
        logger.error(msg)
        return JSONResponse(status_code=400, content={"message": msg})

    app.include_router(probe_router)
    return app


app = create_app()
