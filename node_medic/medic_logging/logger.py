"""
Structured JSON logging: timestamp, level, event_type, logger name.

structlog with ISO timestamps and consistent keys so probe findings can be
aggregated (e.g. Loki, CloudWatch). All modules should use get_logger() and
log a snake_case event name plus keyword context (eth_url, check, reason, ...).

Configured once at import from LOG_LEVEL / LOG_FORMAT; main.py calls
configure_structlog() again when flags or the YAML file override them.

Uses only Python stdlib logging and structlog; no node_medic imports to avoid circular imports.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

import structlog

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "json"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
LOG_FORMATS = ("json", "console")

# wrap_logger() reserves the "logger" keyword, so names travel under this key
LOGGER_NAME_KEY = "logger_name"


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Ensure timestamp is always present (ISO 8601)."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Rename structlog 'event' to event_type; derive message from it when absent."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def _rename_logger_name(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Emit the module name carried under LOGGER_NAME_KEY as "logger"."""
    if LOGGER_NAME_KEY in event_dict:
        event_dict.setdefault("logger", event_dict.pop(LOGGER_NAME_KEY))
    return event_dict


def level_value(level: str | None) -> int:
    """Map a level name (any case) to its stdlib value; unknown names fall back to INFO."""
    name = (level or DEFAULT_LOG_LEVEL).strip().upper()
    value = getattr(logging, name, None)
    return value if isinstance(value, int) else logging.INFO


def configure_structlog(
    level: str | None = None,
    fmt: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog processors and level filter.

    level: level name (DEBUG, INFO, ...). Defaults to LOG_LEVEL env, then INFO.
    fmt: "json" for one JSON object per line, anything else for console output.
        Defaults to LOG_FORMAT env, then json.
    stream: output stream; defaults to sys.stdout at call time.
    """
    level = level or os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    fmt = (fmt or os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT)).strip().lower()
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
        _rename_logger_name,
    ]
    if fmt == "json":
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        )
    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )


# One-time configuration on first import
if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

    The logger is a lazy proxy, so module-level loggers follow later
    configure_structlog() calls.

    Log with event_type (first arg) and keyword context:
        logger = get_logger(__name__)
        logger.info("health_evaluated", healthy=True, client_kind="nethermind")
    Output (JSON): {"event_type": "health_evaluated", "healthy": true, "client_kind": "nethermind", "timestamp": "...", "level": "info", "logger": "module.name"}
    """
    return structlog.get_logger(name, logger_name=name)


def bind_endpoint(name: str, eth_url: str) -> structlog.BoundLogger:
    """Return a logger for `name` with eth_url bound to all subsequent log calls."""
    return get_logger(name).bind(eth_url=eth_url)
