"""
Health evaluation package.

Detects the execution client, picks its sync strategy, and combines block
lag, peer count and sync signal into one fail-closed readiness verdict.
"""

from node_medic.health.detector import ClientKind, classify, detect
from node_medic.health.evaluator import (
    CheckResult,
    HealthEvaluator,
    HealthVerdict,
    Thresholds,
)
from node_medic.health.state import VerdictStore
from node_medic.health.strategies import (
    GenericStrategy,
    HealthStrategy,
    NethermindHealthStrategy,
    SyncSignal,
    strategy_for,
)

__all__ = [
    "CheckResult",
    "ClientKind",
    "GenericStrategy",
    "HealthEvaluator",
    "HealthStrategy",
    "HealthVerdict",
    "NethermindHealthStrategy",
    "SyncSignal",
    "Thresholds",
    "VerdictStore",
    "classify",
    "detect",
    "strategy_for",
]
