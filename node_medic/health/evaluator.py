"""
Composite health evaluator: block lag -> peer count -> client sync signal.

Checks run in that order and stop at the first failure. Each check returns a
CheckResult instead of raising or logging, and evaluate() folds them into one
immutable HealthVerdict and one log line. Any RPC or unexpected error makes
the verdict unhealthy (fail-closed): the node is only ready when every check
positively passed.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable

from node_medic.core.exceptions import RPCError
from node_medic.health.detector import ClientKind, detect
from node_medic.health.strategies import HealthStrategy, strategy_for
from node_medic.medic_logging import get_logger
from node_medic.rpc.client import RPCClient
from node_medic.rpc.models import BlockSnapshot

logger = get_logger(__name__)

CHECK_BLOCK_LAG = "block_lag"
CHECK_PEER_COUNT = "peer_count"
CHECK_SYNC = "sync"
ALL_CHECKS = (CHECK_BLOCK_LAG, CHECK_PEER_COUNT, CHECK_SYNC)

# Failure categories carried on CheckResult.category
CATEGORY_TRANSPORT = "transport"
CATEGORY_PROTOCOL = "protocol"
CATEGORY_THRESHOLD = "threshold"
CATEGORY_INTERNAL = "internal"


@dataclass(frozen=True)
class Thresholds:
    """Readiness bounds; built once from settings and never mutated."""

    max_seconds_behind: int
    min_peers: int

    def __post_init__(self) -> None:
        if self.max_seconds_behind < 0:
            raise ValueError("max_seconds_behind must be >= 0")
        if self.min_peers < 0:
            raise ValueError("min_peers must be >= 0")


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check: pass, or a categorized failure with detail for the log line."""

    name: str
    ok: bool
    detail: str = ""
    category: str | None = None
    observed: Any = None
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def passed(cls, name: str, detail: str = "", observed: Any = None) -> "CheckResult":
        return cls(name=name, ok=True, detail=detail, observed=observed)

    @classmethod
    def threshold(cls, name: str, detail: str, observed: Any = None) -> "CheckResult":
        return cls(name=name, ok=False, detail=detail, category=CATEGORY_THRESHOLD, observed=observed)

    @classmethod
    def from_error(cls, name: str, error: Exception) -> "CheckResult":
        if isinstance(error, RPCError):
            return cls(
                name=name,
                ok=False,
                detail=str(error),
                category=error.category,
                context=error.context(),
            )
        return cls(
            name=name,
            ok=False,
            detail=f"{type(error).__name__}: {error}",
            category=CATEGORY_INTERNAL,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"check": self.name, "ok": self.ok}
        if self.detail:
            out["detail"] = self.detail
        if self.category:
            out["category"] = self.category
        if self.observed is not None:
            out["observed"] = self.observed
        if self.context:
            out.update(self.context)
        return out


@dataclass(frozen=True)
class HealthVerdict:
    """
    Result of one evaluation. Only `healthy` is exposed over HTTP; checks
    and client_kind exist for the operator log line.
    """

    healthy: bool
    checks: tuple[CheckResult, ...] = ()
    client_kind: ClientKind | None = None
    evaluated_at: float = 0.0

    @property
    def failed_check(self) -> CheckResult | None:
        for check in self.checks:
            if not check.ok:
                return check
        return None


class HealthEvaluator:
    """
    Runs the composite readiness decision against one node.

    Stateless between evaluations apart from the shared RPC client: block,
    peers and client kind are fetched fresh each time.
    """

    def __init__(
        self,
        rpc: RPCClient,
        thresholds: Thresholds,
        *,
        clock: Callable[[], float] = time.time,
        detector: Callable[[RPCClient], ClientKind] = detect,
        strategy_lookup: Callable[[ClientKind], HealthStrategy] = strategy_for,
    ) -> None:
        self._rpc = rpc
        self._thresholds = thresholds
        self._clock = clock
        self._detector = detector
        self._strategy_lookup = strategy_lookup

    @property
    def thresholds(self) -> Thresholds:
        return self._thresholds

    def check_block_lag(self) -> CheckResult:
        header = self._rpc.latest_block()
        snapshot = BlockSnapshot(
            block_number=header.number,
            block_timestamp=header.timestamp,
            observed_at=self._clock(),
        )
        lag = round(snapshot.lag, 3)
        if snapshot.lag > self._thresholds.max_seconds_behind:
            return CheckResult.threshold(
                CHECK_BLOCK_LAG,
                f"node is {lag}s behind (max {self._thresholds.max_seconds_behind}s)",
                observed=lag,
            )
        return CheckResult.passed(CHECK_BLOCK_LAG, f"block {snapshot.block_number}", observed=lag)

    def check_peer_count(self) -> CheckResult:
        peers = self._rpc.peer_count()
        if peers < self._thresholds.min_peers:
            return CheckResult.threshold(
                CHECK_PEER_COUNT,
                f"{peers} peers (min {self._thresholds.min_peers})",
                observed=peers,
            )
        return CheckResult.passed(CHECK_PEER_COUNT, observed=peers)

    def check_sync(self, kind: ClientKind) -> CheckResult:
        signal = self._strategy_lookup(kind).determine(self._rpc)
        if signal.blocking:
            return CheckResult.threshold(
                CHECK_SYNC,
                f"{kind.value} reports {signal.value}",
                observed=signal.value,
            )
        return CheckResult.passed(CHECK_SYNC, observed=signal.value)

    def _run(self, name: str, check: Callable[..., CheckResult], *args: Any) -> CheckResult:
        try:
            return check(*args)
        except Exception as e:
            return CheckResult.from_error(name, e)

    def evaluate(self) -> HealthVerdict:
        """Run all checks in order, stop at the first failure, log once, return the verdict."""
        started = time.monotonic()
        checks: list[CheckResult] = []
        kind: ClientKind | None = None

        for name, check in (
            (CHECK_BLOCK_LAG, self.check_block_lag),
            (CHECK_PEER_COUNT, self.check_peer_count),
        ):
            result = self._run(name, check)
            checks.append(result)
            if not result.ok:
                return self._finish(checks, kind, started)

        try:
            kind = self._detector(self._rpc)
        except Exception as e:
            checks.append(CheckResult.from_error(CHECK_SYNC, e))
            return self._finish(checks, kind, started)
        checks.append(self._run(CHECK_SYNC, self.check_sync, kind))
        return self._finish(checks, kind, started)

    def _finish(
        self,
        checks: list[CheckResult],
        kind: ClientKind | None,
        started: float,
    ) -> HealthVerdict:
        healthy = len(checks) == len(ALL_CHECKS) and all(c.ok for c in checks)
        verdict = HealthVerdict(
            healthy=healthy,
            checks=tuple(checks),
            client_kind=kind,
            evaluated_at=self._clock(),
        )
        log = logger.info if healthy else logger.warning
        failed = verdict.failed_check
        log(
            "health_evaluated",
            eth_url=self._rpc.endpoint,
            healthy=healthy,
            client_kind=kind.value if kind else None,
            failed_check=failed.name if failed else None,
            failure_category=failed.category if failed else None,
            checks=[c.to_dict() for c in checks],
            duration_ms=round((time.monotonic() - started) * 1000, 1),
        )
        return verdict
