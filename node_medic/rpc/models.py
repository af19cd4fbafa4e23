"""
Data models for decoded JSON-RPC results.

Raw results are plain JSON; these dataclasses hold only the fields the health
checks need, converted from hex quantities to ints.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def parse_quantity(value: Any, field: str) -> int:
    """
    Decode an Ethereum hex quantity ("0x1a") into an int.

    Raises TypeError if the value is not a string and ValueError if it is not
    valid hex. Plain ints are accepted as-is (some clients return them).
    """
    if isinstance(value, bool):
        raise TypeError(f"{field}: expected hex quantity, got bool")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"{field}: negative quantity {value}")
        return value
    if not isinstance(value, str):
        raise TypeError(f"{field}: expected hex quantity, got {type(value).__name__}")
    text = value.strip()
    if not text.lower().startswith("0x") or len(text) < 3:
        raise ValueError(f"{field}: not a hex quantity: {value!r}")
    return int(text, 16)


@dataclass(frozen=True)
class BlockHeader:
    """
    Subset of an eth_getBlockByNumber result (hashes-only block object).

    timestamp is seconds since epoch as reported by the block producer.
    """

    number: int
    hash: str | None
    timestamp: int

    @classmethod
    def from_rpc_result(cls, result: dict[str, Any]) -> "BlockHeader":
        """Build from a block object. Raises KeyError/TypeError/ValueError on bad shape."""
        if not isinstance(result, dict):
            raise TypeError(f"block: expected object, got {type(result).__name__}")
        return cls(
            number=parse_quantity(result["number"], "number"),
            hash=result.get("hash"),
            timestamp=parse_quantity(result["timestamp"], "timestamp"),
        )


@dataclass(frozen=True)
class BlockSnapshot:
    """
    Latest block timestamp paired with the wall-clock time it was observed.

    lag is negative when the node's block timestamp is ahead of the local
    clock (skew); callers treat that as within bounds.
    """

    block_number: int
    block_timestamp: int
    observed_at: float

    @property
    def lag(self) -> float:
        return self.observed_at - self.block_timestamp
