"""Bounded concurrency execution of independent operations."""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

from .progress import LoggingProgressSink, ProgressCount, ProgressEvent, ProgressSink

logger = logging.getLogger(__name__)

I = TypeVar("I")
O = TypeVar("O")


@dataclass
class ItemResult(Generic[I, O]):
    """Outcome of the operation for one input."""
    input: I
    output: Optional[O] = None
    error: Optional[BaseException] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class BatchResult(Generic[I, O]):
    """Outcomes of a batch, in input order."""
    title: str
    results: List[ItemResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[ItemResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[ItemResult]:
        return [r for r in self.results if not r.success]


class BatchProcessor:
    """
    Runs an operation over many inputs with at most `concurrency` in flight.

    A failing operation never affects its siblings: its exception is stored
    in the input's result slot.
    """

    def __init__(self, concurrency: int = 3, progress_sink: Optional[ProgressSink] = None):
        """
        Initialize the processor.

        Args:
            concurrency: Maximum number of operations running at once
            progress_sink: Receives progress events; logs them when omitted
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self.progress_sink = progress_sink or LoggingProgressSink()

    def run(
        self,
        items: Sequence[I],
        operation: Callable[[I], O],
        item_label: Callable[[I], str] = str,
        title: str = "batch"
    ) -> BatchResult:
        """
        Execute the operation for every input.

        Args:
            items: Inputs
            operation: Called once per input
            item_label: Human readable label of an input, used in progress events
            title: Category of the emitted progress events

        Returns:
            BatchResult with one result per input, in input order
        """
        total = len(items)
        result = BatchResult(title=title)
        if total == 0:
            self._emit(title, f"No {title} to process")
            return result

        slots: List[Optional[ItemResult]] = [None] * total
        lock = threading.Lock()
        processed = 0

        self._emit(title, item_label(items[0]), ProgressCount(0, total))

        with ThreadPoolExecutor(max_workers=min(self.concurrency, total)) as executor:
            future_to_index = {
                executor.submit(operation, item): index
                for index, item in enumerate(items)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                item = items[index]
                try:
                    slots[index] = ItemResult(input=item, output=future.result())
                except Exception as e:
                    logger.debug(f"{title}: '{item_label(item)}' failed: {e}")
                    slots[index] = ItemResult(input=item, error=e)

                with lock:
                    processed += 1
                    count = ProgressCount(processed, total)
                self._emit(title, item_label(item), count)

        result.results = [slot for slot in slots if slot is not None]
        self._emit(
            title,
            f"Processed {total} {title}: {len(result.succeeded)} succeeded, {len(result.failed)} failed",
        )
        return result

    def _emit(self, category: str, message: str, count: Optional[ProgressCount] = None) -> None:
        self.progress_sink.emit(ProgressEvent(message=message, category=category, count=count))
