"""
Node RPC package.

JSON-RPC 2.0 over HTTP against an execution client, plus plain JSON GETs for
vendor health endpoints. Decoded results are small frozen dataclasses.
"""

from node_medic.rpc.client import RPCClient, call
from node_medic.rpc.models import BlockHeader, BlockSnapshot, parse_quantity

__all__ = [
    "BlockHeader",
    "BlockSnapshot",
    "RPCClient",
    "call",
    "parse_quantity",
]
