"""Service layer for the migration toolkit."""

from .batch import BatchProcessor, BatchResult, ItemResult
from .progress import CollectingProgressSink, LoggingProgressSink, ProgressEvent, ProgressSink
from .references import ReferenceExtractor
from .retry import RetryPolicy
from .translation import TranslationTable
from .workflows import find_step, find_workflow, shortest_path

__all__ = [
    "BatchProcessor",
    "BatchResult",
    "ItemResult",
    "CollectingProgressSink",
    "LoggingProgressSink",
    "ProgressEvent",
    "ProgressSink",
    "ReferenceExtractor",
    "RetryPolicy",
    "TranslationTable",
    "find_step",
    "find_workflow",
    "shortest_path",
]
