"""Structured progress events and the sinks receiving them."""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressCount:
    processed: int
    total: int

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 100
        return round(self.processed * 100 / self.total)


@dataclass(frozen=True)
class ProgressEvent:
    """A single progress report."""
    message: str
    category: str
    count: Optional[ProgressCount] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"message": self.message, "category": self.category}
        if self.count:
            data["count"] = {"processed": self.count.processed, "total": self.count.total}
        return data


class ProgressSink(ABC):
    """Receives progress events."""

    @abstractmethod
    def emit(self, event: ProgressEvent) -> None:
        pass


class LoggingProgressSink(ProgressSink):
    """Writes progress events to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self._logger = log or logger
        self._level = level

    def emit(self, event: ProgressEvent) -> None:
        if event.count:
            self._logger.log(
                self._level,
                f"[{event.category}] {event.count.processed}/{event.count.total} "
                f"({event.count.percent}%): {event.message}"
            )
        else:
            self._logger.log(self._level, f"[{event.category}] {event.message}")


class CollectingProgressSink(ProgressSink):
    """Keeps every event in memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self.events: List[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        with self._lock:
            self.events.append(event)

    def counted(self, category: Optional[str] = None) -> List[ProgressEvent]:
        """Events carrying a count, optionally limited to a category."""
        with self._lock:
            return [
                e for e in self.events
                if e.count is not None and (category is None or e.category == category)
            ]
