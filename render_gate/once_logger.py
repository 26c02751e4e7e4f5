"""Once logger — report each diagnostic key a single time.

Render failures tend to repeat for the same file on every redraw.  An
``OnceLogger`` remembers which keys it has already reported and drops the
repeats, so the log shows the first occurrence only.

Keys are never forgotten.  Callers that build keys from unbounded input
(full paths, timestamps) grow the seen-set for the logger's whole lifetime.
"""

from __future__ import annotations

import threading
from typing import Any, Callable

from render_gate.logging import get_logger

log = get_logger(__name__)

Sink = Callable[[str, Any], None]


class OnceLogger:
    """Callable that forwards ``(message, detail)`` to a sink once per key.

    Args:
        sink:  Receives ``(message, detail)``.  Defaults to this module's
               structlog logger.
        level: Log method used by the default sink.
    """

    def __init__(self, sink: Sink | None = None, level: str = "info") -> None:
        self._sink = sink
        self._level = level
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def __call__(self, key: str, message: str, detail: Any = None) -> None:
        try:
            with self._lock:
                if key in self._seen:
                    return
                self._seen.add(key)
        except TypeError:
            log.debug("once_logger_unhashable_key", key_type=type(key).__name__)
            return

        try:
            if self._sink is None:
                self._emit(message, detail)
            else:
                self._sink(message, detail)
        except Exception as exc:
            log.debug("once_logger_sink_failed", key=key, error=str(exc))

    def _emit(self, message: str, detail: Any) -> None:
        emit = getattr(log, self._level)
        if detail is None:
            emit(message)
        elif isinstance(detail, BaseException):
            emit(message, exc_info=detail)
        else:
            emit(message, detail=detail)

    def __contains__(self, key: object) -> bool:
        try:
            return key in self._seen
        except TypeError:
            return False

    def __len__(self) -> int:
        return len(self._seen)


def create_once_logger(sink: Sink | None = None, level: str = "info") -> OnceLogger:
    return OnceLogger(sink=sink, level=level)
