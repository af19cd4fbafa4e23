"""
Structured logging for Node Medic.

JSON logs with timestamp, level, event_type and per-check context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from node_medic.medic_logging.logger import (
    bind_endpoint,
    configure_structlog,
    get_logger,
)

__all__ = ["bind_endpoint", "configure_structlog", "get_logger"]
