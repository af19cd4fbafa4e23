"""
Agent worker package: background readiness polling.

Runs the health evaluator on a fixed interval in a daemon thread and
publishes each verdict to the shared VerdictStore.
"""

from node_medic.agent_worker.poller import (
    PollerConfig,
    poll_once,
    run_poller,
    start_poller_thread,
    stop_poller_thread,
)

__all__ = [
    "PollerConfig",
    "poll_once",
    "run_poller",
    "start_poller_thread",
    "stop_poller_thread",
]
