"""Log sinks for execution output."""

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

# called with (line, None) on append and (None, 0) on reset
LogObserver = Callable[[str | None, int | None], None]


class LogSink(Protocol):
    """Protocol for receiving execution log lines.

    The engine writes through `reset` and `append`; sessions read back with
    `snapshot`, `lines_since` and `subscribe`.
    """

    def append(self, line: str) -> None:
        """Append a line to the sink."""
        ...

    def reset(self) -> None:
        """Drop all lines."""
        ...

    def snapshot(self) -> list[str]:
        """Copy of the lines appended so far."""
        ...

    def lines_since(self, offset: int) -> list[str]:
        """Lines appended after the first `offset` lines."""
        ...

    def subscribe(self, observer: LogObserver) -> Callable[[], None]:
        """Register an observer. Returns a callable that unsubscribes it."""
        ...


class ExecutionLog:
    """Append-only list of log lines with streaming observers.

    Observers see every append as it happens, never batched at run end.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._observers: list[LogObserver] = []

    def append(self, line: str) -> None:
        """Append a line and notify observers."""
        self._lines.append(line)
        self._notify(line, None)

    def reset(self) -> None:
        """Clear all lines. Only the engine calls this, at run start."""
        self._lines.clear()
        self._notify(None, 0)

    def snapshot(self) -> list[str]:
        return list(self._lines)

    def lines_since(self, offset: int) -> list[str]:
        """Lines appended after the first `offset` lines."""
        return self._lines[max(offset, 0):]

    def subscribe(self, observer: LogObserver) -> Callable[[], None]:
        """Register an observer. Returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, line: str | None, reset_to: int | None) -> None:
        for observer in list(self._observers):
            try:
                observer(line, reset_to)
            except Exception:
                logger.exception("Log observer %r failed", observer)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self):
        return iter(list(self._lines))
