# hostdeps/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers

from hostdeps.app.settings import settings, settingsBool
from .formatters import DevFormatter, JsonFormatter
from .filters import RecurringSuppressFilter

__all__ = ["configureLogging"]



def configureLogging(level: int | None = None) -> logging.Logger:
    """
    Initiate logging for the `hostdeps` logger tree.

    Dev:
      - Console pretty logs (DEBUG)
      - JSON file log (DEBUG) when `logging.file` is set

    Default:
      - Console INFO
      - JSON file log INFO with rotation when `logging.file` is set
      - Recurring warning suppression (toggle)

    Only the `hostdeps` logger is touched, so embedding applications keep
    their own root configuration.
    """
    devMode = settingsBool("debug.devModeEnabled", False)
    rootLevel = level if level is not None else (logging.DEBUG if devMode else logging.INFO)

    pkgLogger = logging.getLogger("hostdeps")
    for handler in list(pkgLogger.handlers):
        pkgLogger.removeHandler(handler)
        handler.close()
    pkgLogger.setLevel(rootLevel)
    pkgLogger.propagate = False

    handlers: list[logging.Handler] = []

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(rootLevel)
    consoleHandler.setFormatter(DevFormatter())
    handlers.append(consoleHandler)

    logFile = settings("logging.file")
    if logFile:
        fileHandler = logging.handlers.RotatingFileHandler(
            str(logFile),
            maxBytes=int(settings("logging.maxBytes", 10 * 1024 * 1024)),
            backupCount=int(settings("logging.backupCount", 5)),
            encoding="utf-8"
        )
        fileHandler.setLevel(rootLevel)
        fileHandler.setFormatter(JsonFormatter())
        handlers.append(fileHandler)

    if settingsBool("debug.suppressRecurringMessages.enabled", True):
        # Resolve summaryLevel string like "INFO" → logging.INFO, fallback safe
        levelName = str(settings("debug.suppressRecurringMessages.summaryLevel", "INFO")).upper()
        summaryLevel = getattr(logging, levelName, logging.INFO)

        suppressFilter = RecurringSuppressFilter(
            windowSeconds=int(settings("debug.suppressRecurringMessages.windowSeconds", 60)),
            maxPerWindow=int(settings("debug.suppressRecurringMessages.maxPerWindow", 5)),
            summaryLevel=summaryLevel,
        )
        for handler in handlers:
            handler.addFilter(suppressFilter)

    for handler in handlers:
        pkgLogger.addHandler(handler)

    return pkgLogger
