"""Observability package for logging."""

from ecoconsole_core.observability.logging import (
    JsonFormatter,
    RequestContext,
    StructuredLogger,
    configure_logging,
    get_logger,
    get_request_context,
)

__all__ = [
    "StructuredLogger",
    "JsonFormatter",
    "RequestContext",
    "get_logger",
    "get_request_context",
    "configure_logging",
]
