"""
Application-level exceptions.

- RPCError and subclasses: raised by the RPC client, one class per failure mode
  so the evaluator can tell transport problems from protocol problems.
- ConfigError: unusable configuration detected at startup.
"""

from __future__ import annotations

# Max characters of a response body kept on decode errors for log context
PAYLOAD_EXCERPT_CHARS = 256


def excerpt(payload: str | bytes | None, limit: int = PAYLOAD_EXCERPT_CHARS) -> str:
    """Return a short, log-safe excerpt of a response payload."""
    if payload is None:
        return ""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    if len(payload) <= limit:
        return payload
    return payload[:limit] + "..."


class MedicError(Exception):
    """Root of all Node Medic errors."""


class ConfigError(MedicError):
    """Configuration is missing or invalid and the process cannot run."""


class RPCError(MedicError):
    """A call to the node failed. `category` is "transport" or "protocol"."""

    category = "protocol"

    def __init__(self, message: str, *, method: str | None = None, url: str | None = None) -> None:
        super().__init__(message)
        self.method = method
        self.url = url

    def context(self) -> dict[str, object]:
        """Key/value pairs for structured log lines."""
        ctx: dict[str, object] = {"error_kind": type(self).__name__, "category": self.category}
        if self.method:
            ctx["method"] = self.method
        if self.url:
            ctx["url"] = self.url
        return ctx


class RPCTransportError(RPCError):
    """Connection refused, DNS failure, TLS failure, or any other transport problem."""

    category = "transport"


class RPCTimeoutError(RPCTransportError):
    """The node did not answer within the configured timeout."""


class RPCStatusError(RPCError):
    """The node answered with a non-2xx HTTP status."""

    def __init__(self, message: str, *, status_code: int, payload: str | bytes | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.payload = excerpt(payload)

    def context(self) -> dict[str, object]:
        ctx = super().context()
        ctx["status_code"] = self.status_code
        if self.payload:
            ctx["payload"] = self.payload
        return ctx


class RPCDecodeError(RPCError):
    """Malformed JSON, missing field, or a field of the wrong type."""

    def __init__(self, message: str, *, payload: str | bytes | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.payload = excerpt(payload)

    def context(self) -> dict[str, object]:
        ctx = super().context()
        if self.payload:
            ctx["payload"] = self.payload
        return ctx


class RPCResponseError(RPCError):
    """The JSON-RPC envelope carried an `error` object instead of a result."""

    def __init__(self, message: str, *, code: int | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.code = code

    def context(self) -> dict[str, object]:
        ctx = super().context()
        if self.code is not None:
            ctx["rpc_code"] = self.code
        return ctx
