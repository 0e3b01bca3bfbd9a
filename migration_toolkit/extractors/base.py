"""Base extractor interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from ..models.record import MigrationData

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Result of an extraction operation."""
    data: MigrationData = field(default_factory=MigrationData)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def total_items(self) -> int:
        return len(self.data.items)

    @property
    def total_assets(self) -> int:
        return len(self.data.assets)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def success(self) -> bool:
        """Check if extraction was successful."""
        return len(self.errors) == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "total_items": self.total_items,
            "total_assets": self.total_assets,
            "errors": self.errors,
            "warnings": self.warnings,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
        }


class BaseExtractor(ABC):
    """
    Base class for extractors.

    Extractors pull content out of a source and convert it to the neutral
    migration representation.
    """

    def __init__(self):
        self._errors: List[Dict[str, Any]] = []
        self._warnings: List[str] = []

    @abstractmethod
    def extract(self) -> ExtractionResult:
        """
        Extract all content selected for migration.

        Returns:
            ExtractionResult containing migration items and assets
        """
        pass

    def _add_error(self, entity: str, key: str, error: BaseException) -> None:
        """Record an error for an entity that could not be extracted."""
        self._errors.append({
            "entity": entity,
            "key": key,
            "error": str(error),
            "error_type": type(error).__name__,
        })
        logger.error(f"Failed to extract {entity} '{key}': {error}")

    def _add_warning(self, message: str) -> None:
        self._warnings.append(message)
        logger.warning(message)
