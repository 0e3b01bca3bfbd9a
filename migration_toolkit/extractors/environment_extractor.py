"""Extraction of migration data from a content environment through its management API."""

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

from .base import BaseExtractor, ExtractionResult
from ..clients.base import ManagementClientBase
from ..loaders.context import fetch_environment
from ..models.environment import ContentType, EnvironmentData, Workflow
from ..models.migration import MigrationConfig
from ..models.record import (
    AssetDescription,
    DateTimeElement,
    ElementType,
    EntityKind,
    ItemSchedule,
    ItemSystem,
    MigrationAsset,
    MigrationElement,
    MigrationItem,
    NumberElement,
    Reference,
    ReferenceListElement,
    RichTextComponent,
    RichTextElement,
    TextElement,
    UrlSlugElement,
)
from ..services import rich_text
from ..services.batch import BatchProcessor
from ..services.progress import ProgressSink
from ..services.references import ReferenceExtractor

logger = logging.getLogger(__name__)


class EnvironmentExtractor(BaseExtractor):
    """
    Exports language variants and the assets they reference.

    Environments reference content by id; the exported data references it
    by codename so it can be matched in another environment.
    """

    def __init__(
        self,
        client: ManagementClientBase,
        config: Optional[MigrationConfig] = None,
        progress_sink: Optional[ProgressSink] = None
    ):
        """
        Initialize the extractor.

        Args:
            client: Management client of the source environment
            config: Filters (languages, content types, item codenames) and concurrency
            progress_sink: Receives progress events
        """
        super().__init__()
        self.client = client
        self.config = config or MigrationConfig()
        self.batch_processor = BatchProcessor(self.config.concurrency, progress_sink)
        self.reference_extractor = ReferenceExtractor()

        # Lookups built during extraction
        self._environment: Optional[EnvironmentData] = None
        self._types_by_id: Dict[str, ContentType] = {}
        self._items_by_id: Dict[str, Dict[str, Any]] = {}
        self._assets_by_id: Dict[str, Dict[str, Any]] = {}
        self._terms_by_id: Dict[str, str] = {}

    def extract(self) -> ExtractionResult:
        result = ExtractionResult(started_at=datetime.utcnow())

        self._environment = fetch_environment(self.client)
        self._types_by_id = {t.id: t for t in self._environment.content_types}
        self._terms_by_id = _flatten_terms(self.client.list_taxonomies())
        self._items_by_id = {item["id"]: item for item in self.client.list_items()}

        items = self._select_items(list(self._items_by_id.values()))
        logger.info(f"Exporting {len(items)} content items")

        variants = self._fetch_variants(items)
        referenced = self.reference_extractor.extract_ids(variants, self._types_by_id)

        self._assets_by_id = {asset["id"]: asset for asset in self.client.list_assets()}
        for item_id in referenced.item_codenames:
            if item_id not in self._items_by_id:
                self._add_warning(f"Referenced content item '{item_id}' does not exist in source environment")

        for variant in variants:
            try:
                result.data.items.append(self._to_migration_item(variant))
            except Exception as e:
                self._add_error("language_variant", variant["item"]["id"], e)

        result.data.assets = self._export_assets(sorted(referenced.asset_codenames))

        result.errors = self._errors
        result.warnings = self._warnings
        result.completed_at = datetime.utcnow()
        logger.info(f"Exported {result.total_items} language variants and {result.total_assets} assets")
        return result

    def _select_items(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        selected = items
        if self.config.item_codenames:
            codenames = set(self.config.item_codenames)
            selected = [item for item in selected if item["codename"] in codenames]
        if self.config.content_types:
            type_codenames = set(self.config.content_types)
            selected = [
                item for item in selected
                if self._type_codename(item["type"]["id"]) in type_codenames
            ]
        return selected

    def _fetch_variants(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        batch = self.batch_processor.run(
            items,
            lambda item: self.client.list_item_variants(item["id"]),
            item_label=lambda item: item["codename"],
            title="content items",
        )

        languages_by_id = {lang.id: lang.codename for lang in self._environment.languages}
        variants = []
        for item_result in batch.results:
            item = item_result.input
            if not item_result.success:
                self._add_error("content_item", item["codename"], item_result.error)
                continue
            for variant in item_result.output:
                language = languages_by_id.get(variant["language"]["id"])
                if self.config.languages and language not in self.config.languages:
                    continue
                variants.append({**variant, "content_type": {"id": item["type"]["id"]}})
        return variants

    def _to_migration_item(self, variant: Dict[str, Any]) -> MigrationItem:
        item = self._items_by_id[variant["item"]["id"]]
        content_type = self._types_by_id[item["type"]["id"]]
        language = self._environment_lookup("languages", variant["language"]["id"])

        workflow_codename, step_codename = self._workflow_state(variant)
        collection = self._environment_lookup("collections", (item.get("collection") or {}).get("id"))
        schedule = variant.get("schedule") or {}

        return MigrationItem(
            system=ItemSystem(
                codename=item["codename"],
                name=item["name"],
                language=language,
                type=content_type.codename,
                collection=collection,
                workflow=workflow_codename,
                workflow_step=step_codename,
            ),
            elements=self._convert_elements(variant.get("elements", []), content_type),
            schedule=ItemSchedule(
                publish_time=schedule.get("publish_time"),
                publish_display_timezone=schedule.get("publish_display_timezone"),
                unpublish_time=schedule.get("unpublish_time"),
                unpublish_display_timezone=schedule.get("unpublish_display_timezone"),
            ),
        )

    def _workflow_state(self, variant: Dict[str, Any]):
        workflow_state = variant.get("workflow") or {}
        workflow_id = (workflow_state.get("workflow_identifier") or {}).get("id")
        step_id = (workflow_state.get("step_identifier") or {}).get("id")

        workflow: Optional[Workflow] = next(
            (w for w in self._environment.workflows if w.id == workflow_id), None
        )
        if workflow is None:
            raise ValueError(f"Workflow '{workflow_id}' does not exist in source environment")

        for step in workflow.all_steps:
            if step.id == step_id:
                return workflow.codename, step.codename
        raise ValueError(f"Workflow step '{step_id}' does not exist in workflow '{workflow.codename}'")

    def _environment_lookup(self, kind: str, entity_id: Optional[str]) -> Optional[str]:
        for entity in getattr(self._environment, kind):
            if entity.id == entity_id:
                return entity.codename
        return None

    def _type_codename(self, type_id: str) -> Optional[str]:
        content_type = self._types_by_id.get(type_id)
        return content_type.codename if content_type else None

    def _convert_elements(self, elements: List[Dict[str, Any]], content_type: ContentType) -> List[MigrationElement]:
        type_elements = {e.id: e for e in content_type.elements}
        converted = []
        for element in elements:
            type_element = type_elements.get(element["element"]["id"])
            if type_element is None or type_element.element_type is None:
                continue
            converted.append(self._convert_element(element, type_element))
        return converted

    def _convert_element(self, element: Dict[str, Any], type_element) -> MigrationElement:
        element_type = type_element.element_type
        codename = type_element.codename
        value = element.get("value")

        if element_type in (ElementType.TEXT, ElementType.CUSTOM):
            return TextElement(codename=codename, value=value, type=element_type)
        if element_type == ElementType.NUMBER:
            return NumberElement(codename=codename, value=value)
        if element_type == ElementType.DATE_TIME:
            return DateTimeElement(codename=codename, value=value, display_timezone=element.get("display_timezone"))
        if element_type == ElementType.URL_SLUG:
            return UrlSlugElement(codename=codename, value=value, mode=element.get("mode") or "autogenerated")
        if element_type == ElementType.RICH_TEXT:
            return RichTextElement(
                codename=codename,
                value=self._convert_rich_text(value),
                components=[self._convert_component(c) for c in element.get("components", [])],
            )

        lookups = {
            ElementType.MODULAR_CONTENT: lambda i: (self._items_by_id.get(i) or {}).get("codename"),
            ElementType.SUBPAGES: lambda i: (self._items_by_id.get(i) or {}).get("codename"),
            ElementType.ASSET: lambda i: (self._assets_by_id.get(i) or {}).get("codename"),
            ElementType.TAXONOMY: self._terms_by_id.get,
            ElementType.MULTIPLE_CHOICE: type_element.options.get,
        }
        references = []
        for reference in value or []:
            reference_codename = lookups[element_type](reference.get("id"))
            if reference_codename:
                references.append(Reference(codename=reference_codename))
            else:
                self._add_warning(
                    f"Skipping unknown {element_type.value} reference '{reference.get('id')}' in element '{codename}'"
                )
        return ReferenceListElement(codename=codename, type=element_type, value=references)

    def _convert_component(self, component: Dict[str, Any]) -> RichTextComponent:
        content_type = self._types_by_id[component["type"]["id"]]
        return RichTextComponent(
            id=component["id"],
            type=content_type.codename,
            elements=self._convert_elements(component.get("elements", []), content_type),
        )

    def _convert_rich_text(self, html: Optional[str]) -> Optional[str]:
        """Replace id markers with codename markers."""
        for marker in rich_text.ID_MARKERS:
            lookup = self._items_by_id if marker.kind == EntityKind.ITEM else self._assets_by_id
            codename_attribute = rich_text.CODENAME_ATTRIBUTE_FOR_ID[marker.attribute]

            def replace(entity_id, lookup=lookup, codename_attribute=codename_attribute):
                entity = lookup.get(entity_id)
                if entity is None:
                    return None
                return codename_attribute, entity["codename"]

            html = rich_text.replace_values(html, marker, replace)
        return html

    def _export_assets(self, asset_ids: List[str]) -> List[MigrationAsset]:
        assets = []
        for asset_id in asset_ids:
            if asset_id in self._assets_by_id:
                assets.append(self._assets_by_id[asset_id])
            else:
                self._add_warning(f"Referenced asset '{asset_id}' does not exist in source environment")

        batch = self.batch_processor.run(
            assets,
            self._export_asset,
            item_label=lambda asset: asset["codename"],
            title="assets",
        )
        exported = []
        for asset_result in batch.results:
            if asset_result.success:
                exported.append(asset_result.output)
            else:
                self._add_error("asset", asset_result.input["codename"], asset_result.error)
        return exported

    def _export_asset(self, asset: Dict[str, Any]) -> MigrationAsset:
        _, extension = os.path.splitext(asset["file_name"])
        folder = None
        folder_id = (asset.get("folder") or {}).get("id")
        for candidate in self._environment.asset_folders:
            if candidate.id == folder_id:
                folder = candidate.codename or candidate.name

        return MigrationAsset(
            codename=asset["codename"],
            filename=asset["file_name"],
            title=asset.get("title") or "",
            archive_filename=f"{asset['id']}{extension}",
            external_id=asset.get("external_id"),
            collection=self._environment_lookup(
                "collections", ((asset.get("collection") or {}).get("reference") or {}).get("id")
            ),
            folder=folder,
            descriptions=[
                AssetDescription(
                    language=self._environment_lookup("languages", d["language"]["id"]),
                    description=d.get("description"),
                )
                for d in asset.get("descriptions", [])
                if self._environment_lookup("languages", d["language"]["id"])
            ],
            binary_data=self.client.download_asset(asset["url"]),
        )


def _flatten_terms(taxonomies: List[Dict[str, Any]]) -> Dict[str, str]:
    """Map taxonomy term ids, at any depth, to their codenames."""
    terms: Dict[str, str] = {}
    stack = list(taxonomies)
    while stack:
        node = stack.pop()
        terms[node["id"]] = node["codename"]
        stack.extend(node.get("terms", []))
    return terms
