"""
Latest-verdict holder shared between the evaluation path and HTTP handlers.

Verdicts are frozen dataclasses; publish() swaps a single reference under a
lock, so a reader sees either the previous verdict or the new one, never a
mix of both.
"""

from __future__ import annotations

import threading

from node_medic.health.evaluator import HealthVerdict


class VerdictStore:
    """Holds only the most recent HealthVerdict (None until the first publish)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: HealthVerdict | None = None

    def publish(self, verdict: HealthVerdict) -> None:
        with self._lock:
            self._latest = verdict

    def latest(self) -> HealthVerdict | None:
        with self._lock:
            return self._latest

    def is_ready(self) -> bool:
        """True only if a verdict exists and it is healthy."""
        verdict = self.latest()
        return verdict is not None and verdict.healthy
