"""Importer of content items (the language independent shells of variants)."""

import logging
from typing import Any, Dict, Optional

from ..exceptions import NotFoundError
from ..models.record import EntityKind, MigrationItem
from ..services.transforms import item_external_id
from .base import BaseImporter, ImportAction

logger = logging.getLogger(__name__)


class ContentItemImporter(BaseImporter[MigrationItem]):
    """Creates missing content items and reuses existing ones, keeping name and collection in sync."""

    entity = "content_items"

    def label(self, item: MigrationItem) -> str:
        return item.system.codename

    def import_one(self, item: MigrationItem) -> ImportAction:
        codename = item.system.codename
        if self.context.environment.get_content_type(item.system.type) is None:
            raise NotFoundError(f"Content type '{item.system.type}' does not exist in target environment")

        existing = self.context.get_item_state(codename)
        if existing is not None:
            self.table.record(EntityKind.ITEM, codename, existing["id"], existing.get("codename") or codename)

            if not self._needs_update(item, existing):
                return ImportAction.SKIPPED

            data: Dict[str, Any] = {"name": item.system.name}
            if item.system.collection:
                data["collection"] = {"codename": item.system.collection}
            self.client.upsert_item(codename, data)
            return ImportAction.UPDATED

        data = {
            "name": item.system.name,
            "codename": codename,
            "type": {"codename": item.system.type},
            "external_id": item_external_id(codename),
        }
        if item.system.collection:
            data["collection"] = {"codename": item.system.collection}

        created = self.client.add_item(data)
        self.table.record(EntityKind.ITEM, codename, created["id"], created.get("codename") or codename)
        return ImportAction.CREATED

    def _needs_update(self, item: MigrationItem, existing: Dict[str, Any]) -> bool:
        if existing.get("name") != item.system.name:
            return True
        if item.system.collection is None:
            return False
        return self._collection_codename(existing) != item.system.collection

    def _collection_codename(self, existing: Dict[str, Any]) -> Optional[str]:
        reference = existing.get("collection") or {}
        if reference.get("codename"):
            return reference["codename"]
        for collection in self.context.environment.collections:
            if collection.id == reference.get("id"):
                return collection.codename
        return None
