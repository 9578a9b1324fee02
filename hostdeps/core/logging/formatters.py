# hostdeps/core/logging/formatters.py
from __future__ import annotations

import logging

from hostdeps.core.jsonutils import safeJsonDumps
from .context import getLogContext

__all__ = ["DevFormatter", "JsonFormatter"]

# Context keys shown on the console, in this order
_CONSOLE_CTX_KEYS = ("depsFile", "mode")



class JsonFormatter(logging.Formatter):
    """One JSON object per line, carrying the current manifest load context."""
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": int(record.created * 1000),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            "ctx": getLogContext() or {},
            "pid": record.process,
            "thread": record.threadName,
        }
        if record.exc_info and record.exc_info[0] is not None:
            payload["exc"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stack": self.formatException(record.exc_info),
            }
        return safeJsonDumps(payload)



class DevFormatter(logging.Formatter):
    """`LEVEL: [logger] message [app.deps.json/frameworkDependent]`"""
    def format(self, record: logging.LogRecord) -> str:
        text = f"{record.levelname}: [{record.name}] {record.getMessage()}"

        ctx = getLogContext() or {}
        parts = [str(ctx[key]) for key in _CONSOLE_CTX_KEYS if ctx.get(key)]
        if parts:
            text += " [" + "/".join(parts) + "]"

        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        if record.stack_info:
            text += "\n" + self.formatStack(record.stack_info)
        return text
