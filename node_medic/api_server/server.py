"""
FastAPI server — readiness and liveness probes.

GET /ready answers 200 when the node is healthy and 503 otherwise, with no
body. In on-demand mode each request runs one evaluation; in polling mode the
background poller publishes verdicts and /ready reads the latest one.
GET /health reports only that this process is up.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request, Response

from node_medic import __version__
from node_medic.agent_worker.poller import (
    PollerConfig,
    start_poller_thread,
    stop_poller_thread,
)
from node_medic.config.settings import Settings, load_settings
from node_medic.health.evaluator import HealthEvaluator
from node_medic.health.state import VerdictStore
from node_medic.medic_logging import get_logger
from node_medic.rpc.client import RPCClient

logger = get_logger(__name__)

STATUS_READY = 200
STATUS_NOT_READY = 503


# -----------------------------------------------------------------------------
# Lifespan: start background poller (polling mode), close node client on exit
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the poller thread when polling is enabled; stop it and close the RPC client on shutdown."""
    settings: Settings = app.state.settings
    thread = stop_event = None
    if settings.polling:
        thread, stop_event = start_poller_thread(
            app.state.evaluator,
            app.state.store,
            PollerConfig(interval_sec=settings.poll_interval_sec),
        )
    logger.info(
        "api_started",
        eth_url=settings.eth_url,
        mode="polling" if settings.polling else "on_demand",
        max_seconds_behind=settings.max_seconds_behind,
        min_peers=settings.min_peers,
    )

    yield

    if thread is not None and stop_event is not None:
        if stop_poller_thread(thread, stop_event):
            logger.info("api_poller_stopped")
    if app.state.owns_rpc:
        app.state.rpc.close()
    logger.info("api_stopped")


# -----------------------------------------------------------------------------
# App factory and routes
# -----------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    *,
    rpc: RPCClient | None = None,
    clock: Callable[[], float] | None = None,
) -> FastAPI:
    """
    Build the probe app.

    settings: resolved configuration; None loads from env/file without CLI flags.
    rpc: pre-built node client (tests inject one backed by httpx.MockTransport).
        When None, one is created from settings and closed on shutdown.
    clock: wall-clock source for block lag; defaults to time.time.
    """
    settings = settings or load_settings(argv=[])
    owns_rpc = rpc is None
    if rpc is None:
        rpc = RPCClient(settings.eth_url, timeout_sec=settings.request_timeout_sec)
    evaluator_kwargs = {"clock": clock} if clock is not None else {}
    evaluator = HealthEvaluator(rpc, settings.thresholds(), **evaluator_kwargs)

    app = FastAPI(
        title="Node Medic",
        description="Readiness probe for Ethereum execution clients.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rpc = rpc
    app.state.owns_rpc = owns_rpc
    app.state.evaluator = evaluator
    app.state.store = VerdictStore()

    @app.get("/ready")
    def ready(request: Request) -> Response:
        """Readiness probe: 200 healthy, 503 otherwise (including before the first poll)."""
        state = request.app.state
        try:
            if state.settings.polling:
                is_ready = state.store.is_ready()
            else:
                verdict = state.evaluator.evaluate()
                state.store.publish(verdict)
                is_ready = verdict.healthy
        except Exception as e:
            logger.exception("ready_handler_failed", error=str(e))
            is_ready = False
        return Response(status_code=STATUS_READY if is_ready else STATUS_NOT_READY)

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: process is up. Does not contact the node."""
        return {"status": "ok"}

    return app
