"""
Structured Event Log

Every pipeline step reports through EventLog.emit(level, operation, message).
Events are kept in memory so callers and tests can inspect them, and are
echoed to the console with the usual status markers.
"""

import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

INFO = "info"
SUCCESS = "success"
WARNING = "warning"
ERROR = "error"

MARKERS = {
    INFO: "  •",
    SUCCESS: "✅",
    WARNING: "⚠️ ",
    ERROR: "❌",
}


@dataclass(frozen=True)
class Event:
    level: str
    operation: str
    message: str
    correlation_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = ""


class EventLog:
    """In-memory event sink with console echo"""

    def __init__(self, echo: bool = True, stream=None):
        """
        Args:
            echo: Print each event to the console
            stream: Output stream, defaults to sys.stdout at print time
        """
        self.echo = echo
        self.stream = stream
        self.events: List[Event] = []
        self._correlation_id: Optional[str] = None

    @property
    def correlation_id(self) -> Optional[str]:
        return self._correlation_id

    @contextmanager
    def correlation(self, correlation_id: str) -> Iterator["EventLog"]:
        """Tag every event emitted inside the block with correlation_id"""
        previous = self._correlation_id
        self._correlation_id = correlation_id
        try:
            yield self
        finally:
            self._correlation_id = previous

    def emit(self, level: str, operation: str, message: str, **data: Any) -> Event:
        event = Event(
            level=level,
            operation=operation,
            message=message,
            correlation_id=self._correlation_id,
            data=data,
            timestamp=datetime.now().isoformat(),
        )
        self.events.append(event)
        if self.echo:
            self._print(f"{MARKERS.get(level, '  ')} {message}")
        return event

    def info(self, operation: str, message: str, **data: Any) -> Event:
        return self.emit(INFO, operation, message, **data)

    def success(self, operation: str, message: str, **data: Any) -> Event:
        return self.emit(SUCCESS, operation, message, **data)

    def warning(self, operation: str, message: str, **data: Any) -> Event:
        return self.emit(WARNING, operation, message, **data)

    def error(self, operation: str, message: str, **data: Any) -> Event:
        return self.emit(ERROR, operation, message, **data)

    def banner(self, title: str, width: int = 80) -> None:
        """Console-only section header"""
        if self.echo:
            self._print("\n" + "=" * width)
            self._print(title)
            self._print("=" * width)

    def find(
        self,
        operation: Optional[str] = None,
        level: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> List[Event]:
        return [
            event for event in self.events
            if (operation is None or event.operation == operation)
            and (level is None or event.level == level)
            and (correlation_id is None or event.correlation_id == correlation_id)
        ]

    def _print(self, line: str) -> None:
        print(line, file=self.stream or sys.stdout)
