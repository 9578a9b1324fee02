# hostdeps/core/logging/filters.py
from __future__ import annotations
import logging
import threading
import time
from collections import deque
from collections.abc import Callable

__all__ = ["RecurringSuppressFilter"]

# Messages are compared on at most this many characters
MAX_KEY_LEN = 512
# Default number of tracked keys before idle ones are dropped
MAX_TRACKED_KEYS = 5000

_Key = tuple[str, int, str]



class RecurringSuppressFilter(logging.Filter):
    """
    Lets through at most `maxPerWindow` identical records per `windowSeconds`.

    Resolving a large manifest on a platform the framework does not know
    repeats the same compatibility warning once per library and category.
    Once such a burst ends and the message shows up again, a single summary
    record ("Suppressed N repeated logs: ...") is logged at `summaryLevel`.

    Records are identical when logger name, level and whitespace-normalized
    message match.
    """
    def __init__(
            self,
            *,
            windowSeconds: int = 60,
            maxPerWindow: int = 5,
            summaryLevel: int = logging.INFO,
            normalize: Callable[[logging.LogRecord], str] | None = None,
            clock: Callable[[], float] = time.monotonic,
            maxTrackedKeys: int = MAX_TRACKED_KEYS,
    ):
        super().__init__()
        self.windowSeconds = max(1, int(windowSeconds))
        self.maxPerWindow = max(1, int(maxPerWindow))
        self.summaryLevel = int(summaryLevel)
        self.normalize = normalize or _normalizeMessage
        self._clock = clock
        self.maxTrackedKeys = max(1, int(maxTrackedKeys))

        self._seen: dict[_Key, deque[float]] = {}
        self._dropped: dict[_Key, int] = {}
        self._lock = threading.Lock()

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "_noRecurringSuppress", False):
            return True

        key = (record.name, record.levelno, self.normalize(record))
        now = self._clock()

        with self._lock:
            self._dropIdleKeys(now)
            stamps = self._seen.setdefault(key, deque())
            cutoff = now - self.windowSeconds
            while stamps and stamps[0] < cutoff:
                stamps.popleft()
            stamps.append(now)

            if len(stamps) > self.maxPerWindow:
                self._dropped[key] = self._dropped.get(key, 0) + 1
                return False

            dropped = self._dropped.pop(key, 0)

        if dropped:
            self._logSummary(key, dropped)
        return True

    def _dropIdleKeys(self, now: float) -> None:
        """Forget keys with no record inside the window and nothing pending."""
        if len(self._seen) < self.maxTrackedKeys:
            return
        cutoff = now - self.windowSeconds
        for key in [key for key, stamps in self._seen.items() if not stamps or stamps[-1] < cutoff]:
            if not self._dropped.get(key):
                del self._seen[key]

    def _logSummary(self, key: _Key, dropped: int) -> None:
        loggerName, _level, message = key
        logging.getLogger(loggerName).log(
            self.summaryLevel,
            "Suppressed %d repeated logs: %s",
            dropped,
            message,
            extra={"_noRecurringSuppress": True},
        )



def _normalizeMessage(record: logging.LogRecord) -> str:
    try:
        message = record.getMessage()
    except (TypeError, ValueError):
        message = str(record.msg)
    message = " ".join(message.split())
    if len(message) > MAX_KEY_LEN:
        message = message[:MAX_KEY_LEN] + "..."
    return message
