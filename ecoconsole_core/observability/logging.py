"""Structured logging for EcoConsole.

Log lines are emitted as one JSON object each. Fields passed as keyword
arguments to a ``StructuredLogger`` call, and the fields of the request
currently being served, become top-level keys of that object.
"""

import json
import logging
import sys
import traceback
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_SERVICE_NAME = "ecoconsole"

PLAIN_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Libraries whose INFO output duplicates our own request log
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_registry: dict[str, "StructuredLogger"] = {}


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON."""

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        if record.levelno >= logging.WARNING:
            entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            entry["exception"] = "".join(traceback.format_exception(*record.exc_info))

        entry.update(
            (key, _jsonable(value))
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        return json.dumps(entry)


@dataclass
class RequestContext:
    """Fields identifying the request being served.

    The middleware binds one per request; dependencies may fill in
    ``partner_id`` once the caller is known.
    """

    request_id: Optional[str] = None
    partner_id: Optional[str] = None
    path: Optional[str] = None
    method: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        fields = {
            "request_id": self.request_id,
            "partner_id": self.partner_id,
            "path": self.path,
            "method": self.method,
        }
        result = {key: value for key, value in fields.items() if value}
        result.update(self.extra)
        return result


_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "ecoconsole_request_context", default=None
)


def get_request_context() -> Optional[RequestContext]:
    """The context bound for the current request, if any."""
    return _request_context.get()


def set_request_context(context: Optional[RequestContext]) -> Token:
    """Bind ``context``; pass the returned token to ``reset_request_context``."""
    return _request_context.set(context)


def reset_request_context(token: Token) -> None:
    _request_context.reset(token)


class StructuredLogger:
    """A ``logging.Logger`` wrapper that takes fields as keyword arguments.

    Example:
        logger = get_logger(__name__)
        logger.info("partner application submitted", application_id=app.id)
    """

    def __init__(self, name: str):
        self.name = name
        self._logger = logging.getLogger(name)

    def log(
        self,
        level: int,
        msg: str,
        context: Optional[RequestContext] = None,
        exc_info: bool = False,
        **fields: Any,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        context = context or get_request_context()
        if context is not None:
            # Explicit fields win over the request's
            fields = {**context.to_dict(), **fields}
        self._logger.log(level, msg, exc_info=exc_info, extra=fields, stacklevel=3)

    def debug(self, msg: str, context: Optional[RequestContext] = None, **fields: Any) -> None:
        self.log(logging.DEBUG, msg, context, **fields)

    def info(self, msg: str, context: Optional[RequestContext] = None, **fields: Any) -> None:
        self.log(logging.INFO, msg, context, **fields)

    def warning(self, msg: str, context: Optional[RequestContext] = None, **fields: Any) -> None:
        self.log(logging.WARNING, msg, context, **fields)

    def error(
        self,
        msg: str,
        context: Optional[RequestContext] = None,
        exc_info: bool = False,
        **fields: Any,
    ) -> None:
        self.log(logging.ERROR, msg, context, exc_info=exc_info, **fields)


def get_logger(name: str) -> StructuredLogger:
    """Return the shared ``StructuredLogger`` for ``name``."""
    logger = _registry.get(name)
    if logger is None:
        logger = _registry[name] = StructuredLogger(name)
    return logger


def configure_logging(
    level: str = DEFAULT_LOG_LEVEL,
    json_format: bool = True,
    service_name: str = DEFAULT_SERVICE_NAME,
) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        level: Root log level name, case-insensitive.
        json_format: Emit JSON lines; otherwise a plain text format.
        service_name: Value of the ``service`` key in JSON lines.
    """
    numeric_level = logging.getLevelName(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    if json_format:
        handler.setFormatter(JsonFormatter(service_name=service_name))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
