"""
Per-client sync strategies.

Each strategy answers one question, "is this node still syncing?", as a
SyncSignal. Clients without a structured status endpoint get GenericStrategy,
which reports UNKNOWN and leaves the verdict to the block-lag and peer checks.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from node_medic.core.exceptions import RPCDecodeError
from node_medic.health.detector import ClientKind
from node_medic.rpc.client import RPCClient

NETHERMIND_HEALTH_PATH = "/health"
NETHERMIND_HEALTHY_STATUS = "Healthy"


class SyncSignal(str, Enum):
    NOT_SYNCING = "not_syncing"
    SYNCING = "syncing"
    UNKNOWN = "unknown"
    # Client reported internal errors; blocks readiness like SYNCING
    FAILED = "failed"

    @property
    def blocking(self) -> bool:
        return self in (SyncSignal.SYNCING, SyncSignal.FAILED)


class HealthStrategy(Protocol):
    def determine(self, rpc: RPCClient) -> SyncSignal: ...


class GenericStrategy:
    """No client-specific signal; always UNKNOWN (non-blocking)."""

    def determine(self, rpc: RPCClient) -> SyncSignal:
        return SyncSignal.UNKNOWN


# -----------------------------------------------------------------------------
# Nethermind /health document
# -----------------------------------------------------------------------------


class NodeHealthData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_syncing: bool = Field(..., alias="IsSyncing")
    errors: list[str] | None = Field(None, alias="Errors")


class NodeHealthEntry(BaseModel):
    data: NodeHealthData
    description: str | None = None
    duration: str | None = None
    status: str | None = None


class NethermindHealthEntries(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    node_health: NodeHealthEntry = Field(..., alias="node-health")


class NethermindHealth(BaseModel):
    """GET /health response from Nethermind's health-checks module."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    total_duration: str | None = Field(None, alias="totalDuration")
    entries: NethermindHealthEntries

    def sync_signal(self) -> SyncSignal:
        data = self.entries.node_health.data
        if data.errors:
            return SyncSignal.FAILED
        if data.is_syncing:
            return SyncSignal.SYNCING
        if self.status != NETHERMIND_HEALTHY_STATUS:
            return SyncSignal.FAILED
        return SyncSignal.NOT_SYNCING


class NethermindHealthStrategy:
    """
    Reads Nethermind's /health document.

    Any reported Errors -> FAILED; IsSyncing true -> SYNCING; a top-level
    status other than "Healthy" -> FAILED; otherwise NOT_SYNCING.
    Transport and decode failures propagate as RPCError.
    """

    def __init__(self, path: str = NETHERMIND_HEALTH_PATH) -> None:
        self._path = path

    def fetch(self, rpc: RPCClient) -> NethermindHealth:
        body: Any = rpc.get_json(self._path)
        try:
            return NethermindHealth.model_validate(body)
        except ValidationError as e:
            raise RPCDecodeError(
                f"unexpected /health document: {e.error_count()} validation error(s)",
                payload=repr(body),
                method="GET " + self._path,
                url=rpc.endpoint,
            ) from e

    def determine(self, rpc: RPCClient) -> SyncSignal:
        return self.fetch(rpc).sync_signal()


_GENERIC = GenericStrategy()

STRATEGIES: dict[ClientKind, HealthStrategy] = {
    ClientKind.NETHERMIND: NethermindHealthStrategy(),
    ClientKind.ERIGON: _GENERIC,
    ClientKind.RETH: _GENERIC,
    ClientKind.UNKNOWN: _GENERIC,
}


def strategy_for(kind: ClientKind) -> HealthStrategy:
    """Return the strategy registered for `kind`, or the generic one."""
    return STRATEGIES.get(kind, _GENERIC)
