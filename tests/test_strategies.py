"""
Pytest tests for per-client sync strategies and strategy selection.
"""

from __future__ import annotations

import pytest

from node_medic.core.exceptions import RPCDecodeError, RPCError
from node_medic.health.detector import ClientKind
from node_medic.health.strategies import (
    GenericStrategy,
    NethermindHealthStrategy,
    SyncSignal,
    strategy_for,
)
from tests.conftest import nethermind_health


def test_strategy_selection():
    assert isinstance(strategy_for(ClientKind.NETHERMIND), NethermindHealthStrategy)
    for kind in (ClientKind.ERIGON, ClientKind.RETH, ClientKind.UNKNOWN):
        assert isinstance(strategy_for(kind), GenericStrategy)


def test_generic_strategy_is_unknown_without_io(rpc, fake_node):
    assert GenericStrategy().determine(rpc) is SyncSignal.UNKNOWN
    assert fake_node.calls == []


def test_signal_blocking():
    assert SyncSignal.SYNCING.blocking
    assert SyncSignal.FAILED.blocking
    assert not SyncSignal.NOT_SYNCING.blocking
    assert not SyncSignal.UNKNOWN.blocking


def test_nethermind_synced(rpc, fake_node):
    assert NethermindHealthStrategy().determine(rpc) is SyncSignal.NOT_SYNCING
    assert fake_node.calls == ["GET /health"]


def test_nethermind_syncing(rpc, fake_node):
    fake_node.health = nethermind_health(syncing=True, status="Unhealthy")
    assert NethermindHealthStrategy().determine(rpc) is SyncSignal.SYNCING


def test_nethermind_errors_block_even_when_synced(rpc, fake_node):
    """Reported internal errors count against health even if IsSyncing is false."""
    fake_node.health = nethermind_health(syncing=False, errors=["NoPeers"], status="Unhealthy")
    signal = NethermindHealthStrategy().determine(rpc)
    assert signal is SyncSignal.FAILED
    assert signal.blocking


@pytest.mark.parametrize("status", ["Unhealthy", "Degraded", "healthy", ""])
def test_nethermind_status_other_than_healthy_blocks(rpc, fake_node, status):
    """A synced node with no errors is still not ready unless status is "Healthy"."""
    fake_node.health = nethermind_health(status=status)
    signal = NethermindHealthStrategy().determine(rpc)
    assert signal is SyncSignal.FAILED
    assert signal.blocking


def test_unhealthy_status_makes_verdict_unhealthy(evaluator, fake_node):
    fake_node.health = nethermind_health(status="Unhealthy")
    verdict = evaluator.evaluate()
    assert verdict.healthy is False
    assert verdict.failed_check.name == "sync"
    assert verdict.failed_check.observed == "failed"


def test_nethermind_null_errors_treated_as_empty(rpc, fake_node):
    doc = nethermind_health()
    doc["entries"]["node-health"]["data"]["Errors"] = None
    fake_node.health = doc
    assert NethermindHealthStrategy().determine(rpc) is SyncSignal.NOT_SYNCING


def test_nethermind_unexpected_schema(rpc, fake_node):
    fake_node.health = {"status": "Healthy", "entries": {}}
    with pytest.raises(RPCDecodeError) as exc:
        NethermindHealthStrategy().determine(rpc)
    assert exc.value.method == "GET /health"


@pytest.mark.parametrize("mode", ["timeout", "connect", "http500", "garbage"])
def test_nethermind_transport_and_decode_failures_propagate(rpc, fake_node, mode):
    fake_node.failures["/health"] = mode
    with pytest.raises(RPCError):
        NethermindHealthStrategy().determine(rpc)
