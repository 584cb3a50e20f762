"""HTTP API over the shared block state."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import uvicorn
from fastapi import FastAPI, HTTPException, Query

from .config import ServeConfig
from .engine import DaemonClient
from .errors import FetchError
from .logging_conf import configure_logging
from .orchestrator import Orchestrator


def create_app(
    orchestrator: Orchestrator,
    serve: ServeConfig | None = None,
    daemon: DaemonClient | None = None,
) -> FastAPI:
    """Build the API; every route is a read of the current state."""

    serve = serve or ServeConfig()
    if daemon is None and serve.daemon_rpc_url:
        daemon = DaemonClient(serve.daemon_rpc_url)
    logger = configure_logging().bind(component="server")

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        if daemon is not None:
            daemon.close()

    app = FastAPI(title="Monero found blocks", version="0.3.0", lifespan=lifespan)

    @app.get("/api/blocks")
    def get_blocks(
        limit: int = Query(default=serve.latest_default, ge=1, le=serve.latest_max),
        only_valid: bool = Query(default=False, alias="onlyValid"),
        since: int = Query(default=0, ge=0),
    ) -> dict[str, Any]:
        entries = orchestrator.latest(limit, only_valid=only_valid, since=since)
        return {"blocks": [entry.as_dict() for entry in entries]}

    @app.get("/api/ownership")
    def get_ownership(
        last_n: int = Query(
            default=serve.ownership_default, ge=1, le=serve.ownership_max, alias="lastN"
        ),
        since: int = Query(default=0, ge=0),
        only_valid: bool = Query(default=False, alias="onlyValid"),
    ) -> dict[str, Any]:
        shares = orchestrator.ownership(last_n, since=since, only_valid=only_valid)
        return {"ownership": [share.as_dict() for share in shares]}

    @app.get("/api/pools")
    def get_pools() -> dict[str, Any]:
        return {"pools": orchestrator.pool_names()}

    @app.get("/api/block_header")
    def get_block_header(height: int = Query(ge=0)) -> dict[str, Any]:
        if daemon is None:
            raise HTTPException(status_code=503, detail="No daemon configured")
        try:
            return daemon.block_header(height)
        except FetchError as exc:
            logger.warning("daemon_failed", height=height, error=str(exc))
            raise HTTPException(status_code=503, detail="Daemon unavailable") from exc

    return app


def run_server(app: FastAPI, serve: ServeConfig) -> None:
    """Serve ``app`` until interrupted, over TLS when a certificate is set."""

    logger = configure_logging().bind(component="server")
    options: dict[str, Any] = {}
    if serve.tls_enabled:
        options["ssl_certfile"] = str(serve.tls_cert)
        options["ssl_keyfile"] = str(serve.tls_key)
    logger.info("server_starting", host=serve.host, port=serve.port, tls=serve.tls_enabled)
    uvicorn.run(app, host=serve.host, port=serve.port, log_config=None, **options)


__all__ = ["create_app", "run_server"]
