"""FastAPI application: queue administration, live transfer stream, health and metrics."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from starlette.responses import Response

from ledger_notify import __version__
from ledger_notify.api.routes import api_router
from ledger_notify.config.settings import AppConfig
from ledger_notify.engine.client import LedgerNotifyEngine
from ledger_notify.errors.ledger_errors import LedgerNotifyError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


def _engine_of(request: Request) -> LedgerNotifyEngine | None:
    return getattr(request.app.state, "engine", None)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    engine = LedgerNotifyEngine(app.state.config)
    try:
        await engine.initialize()
        app.state.engine = engine
        yield
    finally:
        app.state.engine = None
        await engine.close()


async def _on_ledger_error(request: Request, exc: LedgerNotifyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _health(request: Request) -> dict[str, str]:
    engine = _engine_of(request)
    components = await engine.health_check() if engine is not None else {}
    return {"status": "ok", **components}


async def _metrics(request: Request) -> Response:
    engine = _engine_of(request)
    registry = engine.metrics.registry if engine and engine.metrics else REGISTRY
    return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)


def create_app(*, config: AppConfig | None = None) -> FastAPI:
    """Build the application; the engine starts with the lifespan.

    Args:
        config: Settings to use. Defaults to ``AppConfig()`` (env vars and
            ``LEDGERNOTIFY_CONFIG_PATH``).
    """
    app = FastAPI(
        title="ledger-notify",
        version=__version__,
        description="Transfer notification dispatch for a ledger",
        lifespan=_lifespan,
    )
    app.state.config = config or AppConfig()
    app.state.engine = None

    app.add_exception_handler(LedgerNotifyError, _on_ledger_error)
    app.add_api_route("/health", _health, methods=["GET"], tags=["base"])
    app.add_api_route("/metrics", _metrics, methods=["GET"], include_in_schema=False)
    app.include_router(api_router)
    return app
