"""Extractors exporting migration data from a source."""

from .base import BaseExtractor, ExtractionResult
from .environment_extractor import EnvironmentExtractor

__all__ = [
    "BaseExtractor",
    "ExtractionResult",
    "EnvironmentExtractor",
]
