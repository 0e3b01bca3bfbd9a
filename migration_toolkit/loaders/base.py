"""Base importer interface for the target environment."""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Generic, List, Sequence, TypeVar
import logging

from ..clients.base import ManagementClientBase
from ..exceptions import MigrationToolkitError, RemoteApiError
from ..models.migration import ImportStage, MigrationStatus
from ..services.batch import BatchProcessor, BatchResult
from .context import ImportContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ImportAction(str, Enum):
    """What importing a single entity did to the target environment."""
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


class BaseImporter(ABC, Generic[T]):
    """
    Base class for importers.

    Importers load one kind of entity into the target environment. Entities
    are imported concurrently through the batch processor; a failure of one
    entity is recorded on the stage and never stops the others.
    """

    entity: str = ""

    def __init__(
        self,
        client: ManagementClientBase,
        context: ImportContext,
        batch_processor: BatchProcessor
    ):
        """
        Initialize the importer.

        Args:
            client: Management client of the target environment
            context: Resolved target environment context
            batch_processor: Executor for concurrent imports
        """
        self.client = client
        self.context = context
        self.batch_processor = batch_processor

    @property
    def table(self):
        return self.context.table

    @abstractmethod
    def import_one(self, entry: T) -> ImportAction:
        """
        Import a single entity.

        Args:
            entry: Entity to import

        Returns:
            The action taken
        """
        pass

    @abstractmethod
    def label(self, entry: T) -> str:
        """Human readable label of an entity."""
        pass

    def error_details(self, entry: T) -> dict:
        return {"codename": self.label(entry)}

    def import_all(self, entries: Sequence[T], stage: ImportStage) -> BatchResult:
        """
        Import all entities and record the outcome on the stage.

        Args:
            entries: Entities to import
            stage: Stage receiving counts and errors

        Returns:
            BatchResult of the underlying batch
        """
        stage.status = MigrationStatus.IMPORTING
        stage.started_at = stage.started_at or datetime.utcnow()

        batch = self.batch_processor.run(entries, self.import_one, self.label, title=self.entity)

        for result in batch.results:
            if result.success:
                action = result.output
                if action == ImportAction.CREATED:
                    stage.created += 1
                elif action == ImportAction.UPDATED:
                    stage.updated += 1
                else:
                    stage.skipped += 1
            else:
                stage.failed += 1
                stage.errors.append(_error_record(self.error_details(result.input), result.error))
                logger.error(f"Failed to import {self.entity} '{self.label(result.input)}': {result.error}")

        stage.completed_at = datetime.utcnow()
        stage.status = MigrationStatus.COMPLETED if not stage.failed else MigrationStatus.COMPLETED_WITH_ERRORS

        logger.info(
            f"Imported {self.entity}: {stage.created} created, {stage.updated} updated, "
            f"{stage.skipped} skipped, {stage.failed} failed"
        )
        return batch


def _error_record(details: dict, error: BaseException) -> dict:
    record: dict = {**details, "error": str(error), "error_type": type(error).__name__}
    if isinstance(error, RemoteApiError):
        record["error_kind"] = error.kind.value
        record["error_code"] = error.error_code
        record["status"] = error.status
    if isinstance(error, MigrationToolkitError) and error.details:
        record["details"] = error.details
    return record


def distinct_by(entries: Sequence[Any], key) -> List[Any]:
    """Keep the first entry for each key, preserving order."""
    seen = set()
    result = []
    for entry in entries:
        k = key(entry)
        if k in seen:
            continue
        seen.add(k)
        result.append(entry)
    return result
