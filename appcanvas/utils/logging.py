"""
Structured event logging for the HTTP layer.

Each call emits one JSON document through loguru carrying the event name,
the service identity and the request scope (correlation, user and app ids)
set with ``log_context``.

Event names use dot notation: ``<domain>.<action>.<result>``, e.g.
``http.request.received``, ``api.apps.update.failed``, ``ai.rate_limit.exceeded``.
"""
import json
import os
import socket
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from loguru import logger as loguru_logger

from appcanvas.config import settings

_SCOPE_KEYS = ("correlation_id", "user_id", "app_id")

# Replaced, never mutated
_scope_var: ContextVar[Dict[str, str]] = ContextVar("log_scope", default={})


def current_scope() -> Dict[str, Optional[str]]:
    scope = _scope_var.get()
    return {key: scope.get(key) for key in _SCOPE_KEYS}


@contextmanager
def log_context(
    correlation_id: Optional[str] = None,
    user_id: Optional[str] = None,
    app_id: Optional[str] = None,
) -> Iterator[Dict[str, Optional[str]]]:
    """
    Add ids to the logging scope for the duration of the block.

    Usage:
        with log_context(user_id=user.id, app_id=app_id):
            logger.info("api.apps.update.completed")
    """
    given = {"correlation_id": correlation_id, "user_id": user_id, "app_id": app_id}
    token = _scope_var.set({**_scope_var.get(), **{k: v for k, v in given.items() if v}})
    try:
        yield current_scope()
    finally:
        _scope_var.reset(token)


def _describe_exception(exc: BaseException) -> Dict[str, Any]:
    return {
        "type": type(exc).__name__,
        "message": str(exc),
        "stacktrace": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    }


class StructuredLogger:
    """JSON event logger bound to one module name"""

    def __init__(self, name: str):
        self.name = name
        self.service = {
            "name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "instance_id": os.getenv("INSTANCE_ID", socket.gethostname()),
        }

    def log(
        self,
        level: str,
        event: str,
        message: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None,
    ) -> None:
        entry: Dict[str, Any] = {
            "@timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "message": message or event,
            "logger": self.name,
            "service": self.service,
            "scope": current_scope(),
        }
        if extra:
            entry["data"] = extra
        if isinstance(exc_info, BaseException):
            entry["error"] = _describe_exception(exc_info)

        # depth=2 attributes the record to the caller, not this wrapper
        loguru_logger.opt(depth=2).log(level, "{}", json.dumps(entry, default=str))

    def debug(self, event: str, message: str = None, extra: Dict = None):
        self.log("DEBUG", event, message, extra)

    def info(self, event: str, message: str = None, extra: Dict = None):
        self.log("INFO", event, message, extra)

    def warning(self, event: str, message: str = None, extra: Dict = None):
        self.log("WARNING", event, message, extra)

    def error(self, event: str, message: str = None, extra: Dict = None, exc_info: BaseException = None):
        self.log("ERROR", event, message, extra, exc_info)

    def critical(self, event: str, message: str = None, extra: Dict = None, exc_info: BaseException = None):
        self.log("CRITICAL", event, message, extra, exc_info)

    def performance(self, event: str, duration_ms: float, extra: Dict = None):
        """Timing event; ``duration_ms`` lands under ``data.performance``"""
        data = {"performance": {"duration_ms": round(duration_ms, 2)}}
        data.update(extra or {})
        self.log("INFO", event, f"{event} took {duration_ms:.1f}ms", data)


def get_logger(name: str) -> StructuredLogger:
    """
    Usage:
        logger = get_logger(__name__)
        logger.info("api.apps.create.completed", extra={"app_id": app.id})
    """
    return StructuredLogger(name)
