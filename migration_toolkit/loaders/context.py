"""Resolution of the target environment context an import runs against."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..clients.base import ManagementClientBase
from ..exceptions import ImportAbortedError, RemoteNotFoundError
from ..models.environment import (
    Collection,
    ContentType,
    ContentTypeElement,
    EnvironmentData,
    Language,
    Workflow,
    flatten_asset_folders,
)
from ..models.record import EntityKind, MigrationData
from ..services.batch import BatchProcessor
from ..services.references import ReferenceExtractor
from ..services.translation import TranslationTable

logger = logging.getLogger(__name__)


@dataclass
class ImportContext:
    """Target environment structure and the state of entities the import touches."""
    environment: EnvironmentData
    table: TranslationTable
    # codename -> contract in the target environment, None when it does not exist
    item_states: Dict[str, Optional[Dict[str, Any]]] = field(default_factory=dict)
    asset_states: Dict[str, Optional[Dict[str, Any]]] = field(default_factory=dict)

    def get_item_state(self, codename: str) -> Optional[Dict[str, Any]]:
        return self.item_states.get(codename)

    def get_asset_state(self, codename: str) -> Optional[Dict[str, Any]]:
        return self.asset_states.get(codename)


def fetch_environment(client: ManagementClientBase) -> EnvironmentData:
    """Fetch content types, collections, languages, workflows and asset folders."""
    snippets = {
        snippet["id"]: [ContentTypeElement.from_dict(e) for e in snippet.get("elements", [])]
        for snippet in client.list_snippets()
    }
    content_types = [ContentType.from_dict(t, snippets) for t in client.list_content_types()]
    collections = [
        Collection(id=c["id"], codename=c["codename"], name=c.get("name", ""))
        for c in client.list_collections()
    ]
    languages = [
        Language(
            id=lang["id"],
            codename=lang["codename"],
            name=lang.get("name", ""),
            is_default=lang.get("is_default", False),
            is_active=lang.get("is_active", True),
        )
        for lang in client.list_languages()
    ]
    workflows = [Workflow.from_dict(w) for w in client.list_workflows()]
    asset_folders = flatten_asset_folders(client.list_asset_folders())

    logger.info(
        f"Fetched environment: {len(content_types)} content types, {len(collections)} collections, "
        f"{len(languages)} languages, {len(workflows)} workflows, {len(asset_folders)} asset folders"
    )

    return EnvironmentData(
        content_types=content_types,
        collections=collections,
        languages=languages,
        workflows=workflows,
        asset_folders=asset_folders,
    )


class ContextResolver:
    """
    Builds the import context.

    Besides the environment structure, this fetches the target state of all
    items and assets that are imported or referenced, and records referenced
    entities that already exist in the translation table.
    """

    def __init__(
        self,
        client: ManagementClientBase,
        batch_processor: BatchProcessor,
        extractor: Optional[ReferenceExtractor] = None
    ):
        self.client = client
        self.batch_processor = batch_processor
        self.extractor = extractor or ReferenceExtractor()

    def resolve(self, data: MigrationData, table: TranslationTable) -> ImportContext:
        """
        Resolve the context for importing the migration data.

        Args:
            data: Items and assets to import
            table: Translation table of the run

        Returns:
            ImportContext

        Raises:
            ImportAbortedError: If the environment or entity state cannot be fetched
        """
        environment = fetch_environment(self.client)

        referenced = self.extractor.extract(data.items)
        imported_items = {item.system.codename for item in data.items if not item.is_component}
        imported_assets = {asset.codename for asset in data.assets}

        item_codenames = sorted(imported_items | referenced.item_codenames)
        asset_codenames = sorted(imported_assets | referenced.asset_codenames)

        item_states = self._fetch_states(
            item_codenames, lambda codename: self.client.get_item(codename=codename), "content items"
        )
        asset_states = self._fetch_states(
            asset_codenames, lambda codename: self.client.get_asset(codename=codename), "assets"
        )

        # Referenced entities outside of the migration data resolve to what already exists
        for codename in referenced.item_codenames - imported_items:
            state = item_states.get(codename)
            if state:
                table.record(EntityKind.ITEM, codename, state["id"], state["codename"])
        for codename in referenced.asset_codenames - imported_assets:
            state = asset_states.get(codename)
            if state:
                table.record(EntityKind.ASSET, codename, state["id"], state["codename"])

        return ImportContext(
            environment=environment,
            table=table,
            item_states=item_states,
            asset_states=asset_states,
        )

    def _fetch_states(
        self,
        codenames: List[str],
        fetch: Callable[[str], Dict[str, Any]],
        title: str
    ) -> Dict[str, Optional[Dict[str, Any]]]:
        def fetch_state(codename: str) -> Optional[Dict[str, Any]]:
            try:
                return fetch(codename)
            except RemoteNotFoundError:
                return None

        batch = self.batch_processor.run(codenames, fetch_state, title=f"fetch {title}")
        if batch.failed:
            first = batch.failed[0]
            raise ImportAbortedError(
                f"Could not fetch {len(batch.failed)} {title} from target environment, "
                f"first failure '{first.input}': {first.error}"
            ) from first.error

        return {result.input: result.output for result in batch.results}
