"""Decides whether an existing target asset differs from its migration asset."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..models.environment import EnvironmentData
from ..models.record import MigrationAsset

logger = logging.getLogger(__name__)


class AssetComparer:
    """Compares migration assets with assets already present in the target environment."""

    def __init__(self, environment: EnvironmentData):
        self.environment = environment

    def differences(self, asset: MigrationAsset, target_asset: Dict[str, Any]) -> List[str]:
        """
        List the attributes that differ.

        Args:
            asset: Migration asset
            target_asset: Asset contract from the target environment

        Returns:
            Names of differing attributes (empty when the asset is up to date)
        """
        differences = []

        if self._collection_codename(target_asset) != asset.collection:
            differences.append("collection")
        if (target_asset.get("title") or "") != (asset.title or ""):
            differences.append("title")
        if self._folder_key(target_asset, asset.folder) != asset.folder:
            differences.append("folder")
        if self._target_descriptions(target_asset) != _migration_descriptions(asset):
            differences.append("descriptions")
        if self.binary_differs(asset, target_asset):
            differences.append("binary")

        return differences

    def needs_update(self, asset: MigrationAsset, target_asset: Dict[str, Any]) -> bool:
        differences = self.differences(asset, target_asset)
        if differences:
            logger.debug(f"Asset '{asset.codename}' differs in: {', '.join(differences)}")
        return bool(differences)

    def binary_differs(self, asset: MigrationAsset, target_asset: Dict[str, Any]) -> bool:
        """Compare filename and size; without binary data only the filename is compared."""
        if target_asset.get("file_name") != asset.filename:
            return True
        if asset.binary_data is None:
            return False
        return target_asset.get("size") != len(asset.binary_data)

    def _collection_codename(self, target_asset: Dict[str, Any]) -> Optional[str]:
        reference = (target_asset.get("collection") or {}).get("reference") or {}
        if reference.get("codename"):
            return reference["codename"]
        for collection in self.environment.collections:
            if collection.id == reference.get("id"):
                return collection.codename
        return None

    def _folder_key(self, target_asset: Dict[str, Any], expected: Optional[str]) -> Optional[str]:
        """Key of the target folder, in the same form (codename or name) as the expected key."""
        folder_id = (target_asset.get("folder") or {}).get("id")
        for folder in self.environment.asset_folders:
            if folder.id == folder_id:
                if expected is not None and folder.name == expected:
                    return folder.name
                return folder.codename or folder.name
        return None

    def _target_descriptions(self, target_asset: Dict[str, Any]) -> List[Tuple[str, str]]:
        languages_by_id = {language.id: language.codename for language in self.environment.languages}
        descriptions = []
        for description in target_asset.get("descriptions") or []:
            language = description.get("language") or {}
            codename = language.get("codename") or languages_by_id.get(language.get("id"))
            if codename and description.get("description"):
                descriptions.append((codename, description["description"]))
        return sorted(descriptions)


def _migration_descriptions(asset: MigrationAsset) -> List[Tuple[str, str]]:
    return sorted(
        (d.language, d.description) for d in asset.descriptions if d.description
    )
