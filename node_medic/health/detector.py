"""
Client detection from web3_clientVersion.

Classifies the execution client by case-sensitive substring match on its
version string. Detection is repeated on every evaluation; a failed lookup
degrades to ClientKind.UNKNOWN (generic checks) instead of failing readiness.
"""

from __future__ import annotations

from enum import Enum

from node_medic.core.exceptions import RPCError
from node_medic.medic_logging import get_logger
from node_medic.rpc.client import RPCClient

logger = get_logger(__name__)


class ClientKind(str, Enum):
    NETHERMIND = "nethermind"
    ERIGON = "erigon"
    RETH = "reth"
    UNKNOWN = "unknown"


# Priority order: first marker found in the version string wins.
VERSION_MARKERS: tuple[tuple[str, ClientKind], ...] = (
    ("Nethermind", ClientKind.NETHERMIND),
    ("erigon", ClientKind.ERIGON),
    ("reth", ClientKind.RETH),
)


def classify(version: str) -> ClientKind:
    """Map a version string to a ClientKind (case-sensitive, first marker wins)."""
    for marker, kind in VERSION_MARKERS:
        if marker in version:
            return kind
    return ClientKind.UNKNOWN


def detect(rpc: RPCClient) -> ClientKind:
    """Query web3_clientVersion and classify it. Never raises on RPC failure."""
    try:
        version = rpc.client_version()
    except RPCError as e:
        logger.warning(
            "client_detect_failed",
            eth_url=rpc.endpoint,
            error=str(e),
            **e.context(),
        )
        return ClientKind.UNKNOWN
    kind = classify(version)
    logger.debug("client_detected", client_version=version, client_kind=kind.value)
    return kind
