"""
Continuous polling loop.

When poll-interval > 0 the readiness verdict is computed in a background
thread instead of per request: every interval the evaluator runs once and the
verdict is published to the shared VerdictStore. /ready only reads the store.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from node_medic.health.evaluator import HealthEvaluator, HealthVerdict
from node_medic.health.state import VerdictStore
from node_medic.medic_logging import get_logger

logger = get_logger(__name__)

MIN_POLL_INTERVAL_SEC = 1.0
SHUTDOWN_JOIN_TIMEOUT_SEC = 15.0
# Max seconds to sleep before re-checking stop_event
STOP_CHECK_SEC = 1.0


@dataclass
class PollerConfig:
    """Config for the background poller."""

    interval_sec: float
    min_interval_sec: float = MIN_POLL_INTERVAL_SEC

    def __post_init__(self) -> None:
        self.interval_sec = max(self.min_interval_sec, float(self.interval_sec))


def poll_once(evaluator: HealthEvaluator, store: VerdictStore) -> HealthVerdict:
    """
    Evaluate once and publish. The evaluator never raises for node failures;
    anything else escaping it is published as an unhealthy verdict.
    """
    try:
        verdict = evaluator.evaluate()
    except Exception as e:
        logger.exception("poller_evaluate_failed", error=str(e))
        verdict = HealthVerdict(healthy=False, evaluated_at=time.time())
    store.publish(verdict)
    return verdict


def run_poller(
    evaluator: HealthEvaluator,
    store: VerdictStore,
    config: PollerConfig,
    stop_event: threading.Event,
) -> None:
    """
    Evaluate every config.interval_sec until stop_event is set. Each tick is
    isolated: a failed tick publishes unhealthy and the loop continues.
    Intended to run in a daemon thread started by the FastAPI lifespan.
    """
    interval = config.interval_sec
    logger.info("poller_started", interval_sec=interval)
    tick_count = 0
    while not stop_event.is_set():
        tick_start = time.monotonic()
        tick_count += 1
        verdict = poll_once(evaluator, store)
        logger.debug("poller_tick_done", tick=tick_count, healthy=verdict.healthy)
        # Sleep until next tick; wake periodically to check stop_event
        deadline = tick_start + interval
        while not stop_event.is_set() and time.monotonic() < deadline:
            stop_event.wait(timeout=min(STOP_CHECK_SEC, max(0, deadline - time.monotonic())))
    logger.info("poller_stopped", tick_count=tick_count)


def start_poller_thread(
    evaluator: HealthEvaluator,
    store: VerdictStore,
    config: PollerConfig,
) -> tuple[threading.Thread, threading.Event]:
    """Start run_poller in a daemon thread; return the thread and its stop event."""
    stop_event = threading.Event()
    thread = threading.Thread(
        target=run_poller,
        args=(evaluator, store, config, stop_event),
        name="readiness-poller",
        daemon=True,
    )
    thread.start()
    return thread, stop_event


def stop_poller_thread(
    thread: threading.Thread,
    stop_event: threading.Event,
    timeout_sec: float = SHUTDOWN_JOIN_TIMEOUT_SEC,
) -> bool:
    """Signal stop and join. Returns False if the thread did not exit in time."""
    stop_event.set()
    thread.join(timeout=timeout_sec)
    if thread.is_alive():
        logger.warning("poller_shutdown_timeout", timeout_sec=timeout_sec)
        return False
    return True
