"""
Logging setup for the registry service.

Production emits one JSON object per line; every other environment gets a
short coloured console line. Both include the request being served, which
the request middleware binds for the duration of each call.

    from safewatch.app.core.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Alert created", extra={"alert_id": 3, "identity": "alice"})
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from safewatch.app.core.config import settings


@dataclass(frozen=True)
class RequestContext:
    request_id: str
    caller: str
    method: str
    path: str


_current_request: ContextVar[Optional[RequestContext]] = ContextVar(
    "current_request", default=None
)

# Registry-specific ``extra=`` keys copied into the JSON document
RECORD_EXTRAS = (
    "alert_id", "neighborhood_id", "identity", "event",
    "duration_ms", "status_code",
)


def bind_request(context: RequestContext) -> Token:
    """Attach ``context`` to every record logged until ``unbind_request``."""
    return _current_request.set(context)


def unbind_request(token: Token) -> None:
    _current_request.reset(token)


def current_request() -> Optional[RequestContext]:
    return _current_request.get()


class JSONFormatter(logging.Formatter):
    """One JSON document per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        document: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        request = current_request()
        if request is not None:
            document["request"] = asdict(request)
        document.update(
            (key, record.__dict__[key]) for key in RECORD_EXTRAS if key in record.__dict__
        )
        if record.exc_info and record.exc_info[1] is not None:
            error = record.exc_info[1]
            document["exception"] = {
                "type": type(error).__name__,
                "message": str(error),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(document, default=str)


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL [request caller] logger: message`` with ANSI colour."""

    LEVEL_COLOURS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "35",
    }

    def __init__(self) -> None:
        super().__init__(datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelno, "0")
        request = current_request()
        tag = f" [{request.request_id[:8]} {request.caller}]" if request else ""
        line = (
            f"\033[{colour}m{self.formatTime(record, self.datefmt)} "
            f"{record.levelname:<8}\033[0m{tag} {record.name}: {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging() -> None:
    """Install a single stdout handler on the root logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if settings.is_production else ConsoleFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for noisy in ("uvicorn.access", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
