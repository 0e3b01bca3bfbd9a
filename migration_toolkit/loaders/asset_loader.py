"""Importer of assets."""

import logging
import mimetypes
from typing import Any, Dict, Optional

from ..exceptions import NotFoundError
from ..models.record import EntityKind, MigrationAsset
from ..services.asset_comparer import AssetComparer
from ..services.transforms import asset_external_id
from .base import BaseImporter, ImportAction

logger = logging.getLogger(__name__)


class AssetImporter(BaseImporter[MigrationAsset]):
    """
    Creates missing assets and updates assets that differ.

    Binary files are uploaded only for new assets and for assets whose
    binary changed.
    """

    entity = "assets"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.comparer = AssetComparer(self.context.environment)

    def label(self, asset: MigrationAsset) -> str:
        return asset.codename

    def import_one(self, asset: MigrationAsset) -> ImportAction:
        existing = self.context.get_asset_state(asset.codename)

        if existing is None:
            return self._create(asset)

        self.table.record(EntityKind.ASSET, asset.codename, existing["id"], existing.get("codename") or asset.codename)

        if not self.comparer.needs_update(asset, existing):
            logger.debug(f"Asset '{asset.codename}' is up to date")
            return ImportAction.SKIPPED

        data = self._contract(asset)
        if asset.binary_data is not None and self.comparer.binary_differs(asset, existing):
            data["file_reference"] = self._upload(asset)
        self.client.upsert_asset(asset.codename, data)
        return ImportAction.UPDATED

    def _create(self, asset: MigrationAsset) -> ImportAction:
        if asset.binary_data is None:
            raise NotFoundError(f"Binary data of asset '{asset.codename}' ({asset.archive_filename}) is missing")

        data = self._contract(asset)
        data["file_reference"] = self._upload(asset)
        data["codename"] = asset.codename
        data["external_id"] = asset.external_id or asset_external_id(asset.codename)

        created = self.client.add_asset(data)
        self.table.record(EntityKind.ASSET, asset.codename, created["id"], created.get("codename") or asset.codename)
        return ImportAction.CREATED

    def _upload(self, asset: MigrationAsset) -> Dict[str, Any]:
        content_type = mimetypes.guess_type(asset.filename)[0] or "application/octet-stream"
        return self.client.upload_binary_file(asset.filename, asset.binary_data, content_type)

    def _contract(self, asset: MigrationAsset) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": asset.title,
            "descriptions": [
                {"language": {"codename": d.language}, "description": d.description}
                for d in asset.descriptions
            ],
        }
        if asset.collection:
            data["collection"] = {"reference": {"codename": asset.collection}}
        folder_id = self._folder_id(asset.folder)
        if folder_id:
            data["folder"] = {"id": folder_id}
        return data

    def _folder_id(self, key: Optional[str]) -> Optional[str]:
        if not key:
            return None
        folder = self.context.environment.get_asset_folder(key)
        if folder is None:
            raise NotFoundError(f"Asset folder '{key}' does not exist in target environment")
        return folder.id
