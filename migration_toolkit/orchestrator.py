"""Import orchestrator - coordinates the staged import into a target environment."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from .clients.base import ManagementClientBase
from .exceptions import DuplicateMappingError, ImportAbortedError
from .loaders.asset_loader import AssetImporter
from .loaders.base import BaseImporter, distinct_by
from .loaders.content_item_loader import ContentItemImporter
from .loaders.context import ContextResolver, ImportContext
from .loaders.language_variant_loader import LanguageVariantImporter, importable_variants
from .models.migration import ImportResult, ImportStage, MigrationConfig, MigrationStatus
from .models.record import MigrationData
from .services.batch import BatchProcessor
from .services.progress import ProgressSink
from .services.references import ReferenceExtractor
from .services.translation import TranslationTable

logger = logging.getLogger(__name__)


class ImportOrchestrator:
    """
    Orchestrates the import of migration data.

    Stages run strictly one after another, because later stages reference
    what earlier stages created:
    1. Context resolution (fatal on failure)
    2. Assets
    3. Content items
    4. Language variants, including workflow transitions
    """

    def __init__(
        self,
        client: ManagementClientBase,
        config: Optional[MigrationConfig] = None,
        progress_sink: Optional[ProgressSink] = None,
        table: Optional[TranslationTable] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            client: Management client of the target environment
            config: Migration configuration
            progress_sink: Receives progress events
            table: Translation table, a fresh one per run when omitted
        """
        self.client = client
        self.config = config or MigrationConfig()
        self.batch_processor = BatchProcessor(self.config.concurrency, progress_sink)
        self.extractor = ReferenceExtractor()
        self._table = table

        # Runtime state
        self.result: Optional[ImportResult] = None
        self.table: Optional[TranslationTable] = None
        self.context: Optional[ImportContext] = None

    def import_data(self, data: MigrationData) -> ImportResult:
        """
        Import items and assets into the target environment.

        Args:
            data: Migration data

        Returns:
            ImportResult with created/updated/skipped/failed counts per stage
        """
        self.result = ImportResult(name=self.config.name)
        self.result.started_at = datetime.utcnow()
        self.table = self._table or TranslationTable()

        assets_stage = self.result.add_stage("Import assets", "assets")
        items_stage = self.result.add_stage("Import content items", "content_items")
        variants_stage = self.result.add_stage("Import language variants", "language_variants")

        try:
            logger.info("=== STAGE 1: CONTEXT RESOLUTION ===")
            self.result.status = MigrationStatus.RESOLVING_CONTEXT
            self.context = self._resolve_context(data)

            self.result.status = MigrationStatus.IMPORTING

            logger.info("=== STAGE 2: ASSETS ===")
            self._run_stage(AssetImporter, data.assets, assets_stage)

            components = [item for item in data.items if item.is_component]
            if components:
                logger.info(f"Skipping {len(components)} component items, they are imported inline")

            logger.info("=== STAGE 3: CONTENT ITEMS ===")
            items_stage.skipped += len(distinct_by(components, _codename))
            self._run_stage(
                ContentItemImporter,
                distinct_by(importable_variants(data.items), _codename),
                items_stage,
            )

            logger.info("=== STAGE 4: LANGUAGE VARIANTS ===")
            variants_stage.skipped += len(components)
            self._run_stage(LanguageVariantImporter, importable_variants(data.items), variants_stage)

            if any(stage.failed for stage in self.result.stages):
                self.result.status = MigrationStatus.COMPLETED_WITH_ERRORS
            else:
                self.result.status = MigrationStatus.COMPLETED
            logger.info("=== IMPORT COMPLETED ===")

        except ImportAbortedError as e:
            logger.error(f"Import failed: {e}")
            self.result.status = MigrationStatus.FAILED
            self.result.errors.append({
                "error": str(e),
                "error_type": type(e.__cause__ or e).__name__,
                "timestamp": datetime.utcnow().isoformat(),
            })

        finally:
            self.result.completed_at = datetime.utcnow()
            self.result.update_totals()
            if self.config.output_dir and self.config.save_report:
                self._save_report()

        return self.result

    def _resolve_context(self, data: MigrationData) -> ImportContext:
        """Resolve the target context; nothing can be imported without it."""
        resolver = ContextResolver(self.client, self.batch_processor, self.extractor)
        try:
            return resolver.resolve(data, self.table)
        except ImportAbortedError:
            raise
        except Exception as e:
            raise ImportAbortedError(f"Could not resolve target environment context: {e}") from e

    def _run_stage(self, importer_class, entries, stage: ImportStage) -> None:
        importer: BaseImporter = importer_class(self.client, self.context, self.batch_processor)
        batch = importer.import_all(entries, stage)

        for failure in batch.failed:
            if isinstance(failure.error, DuplicateMappingError):
                raise ImportAbortedError(str(failure.error)) from failure.error

        if batch.failed and not self.config.skip_failed_items:
            first = batch.failed[0]
            raise ImportAbortedError(
                f"Stopping after {len(batch.failed)} failed {stage.entity}, "
                f"first failure '{importer.label(first.input)}': {first.error}"
            ) from first.error

    def _save_report(self):
        """Save the import report."""
        reports_dir = Path(self.config.output_dir) / "reports"
        reports_dir.mkdir(parents=True, exist_ok=True)
        filepath = reports_dir / f"import_report_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.json"
        with open(filepath, 'w') as f:
            json.dump(self.result.to_dict(), f, indent=2, default=str)
        logger.info(f"Saved import report to {filepath}")


def _codename(item) -> str:
    return item.system.codename
