"""Zip archive format for exported migration data.

Layout of an archive:

    items.json                          list of migration items
    assets.json                         list of asset metadata
    assets/<prefix>/<archive_filename>  binary data of each asset

where <prefix> is the first three characters of the archive filename.
"""

import json
import logging
import zipfile
from pathlib import Path
from typing import Any, List, Union

from pydantic import ValidationError

from ..exceptions import ArchiveError, NotFoundError
from ..models.record import MigrationAsset, MigrationData, MigrationItem
from ..models.schema import MigrationAssetModel, MigrationItemModel

logger = logging.getLogger(__name__)

ITEMS_FILENAME = "items.json"
ASSETS_FILENAME = "assets.json"
ASSETS_FOLDER = "assets"


def asset_binary_path(archive_filename: str) -> str:
    """Path of an asset binary inside the archive."""
    return f"{ASSETS_FOLDER}/{archive_filename[:3]}/{archive_filename}"


class ArchiveAdapter:
    """Writes and reads migration data as a zip archive."""

    def write(self, data: MigrationData, path: Union[str, Path]) -> Path:
        """
        Write migration data to a zip archive.

        Args:
            data: Items and assets to write; assets must carry binary data
            path: Destination file

        Returns:
            Path of the written archive
        """
        for asset in data.assets:
            if asset.binary_data is None:
                raise NotFoundError(f"Asset '{asset.codename}' has no binary data to write")

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with zipfile.ZipFile(path, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(ITEMS_FILENAME, json.dumps([i.to_dict() for i in data.items], indent=2))
            archive.writestr(ASSETS_FILENAME, json.dumps([a.to_dict() for a in data.assets], indent=2))
            for asset in data.assets:
                archive.writestr(asset_binary_path(asset.archive_filename), asset.binary_data)

        logger.info(f"Wrote {len(data.items)} items and {len(data.assets)} assets to {path}")
        return path

    def read(self, path: Union[str, Path]) -> MigrationData:
        """
        Read migration data from a zip archive.

        Args:
            path: Archive file

        Returns:
            MigrationData with asset binaries loaded

        Raises:
            ArchiveError: If the archive or its documents are malformed
            NotFoundError: If an asset binary is missing from the archive
        """
        path = Path(path)
        try:
            archive = zipfile.ZipFile(path, mode="r")
        except (OSError, zipfile.BadZipFile) as e:
            raise ArchiveError(f"Could not open archive {path}: {e}") from e

        with archive:
            items = [
                MigrationItem.from_dict(raw)
                for raw in self._validated(archive, ITEMS_FILENAME, MigrationItemModel)
            ]
            assets = []
            for raw in self._validated(archive, ASSETS_FILENAME, MigrationAssetModel):
                binary_path = asset_binary_path(raw["archive_filename"])
                try:
                    binary_data = archive.read(binary_path)
                except KeyError:
                    raise NotFoundError(
                        f"Binary data of asset '{raw['codename']}' is missing from archive",
                        {"path": binary_path},
                    )
                assets.append(MigrationAsset.from_dict(raw, binary_data))

        logger.info(f"Read {len(items)} items and {len(assets)} assets from {path}")
        return MigrationData(items=items, assets=assets)

    def _validated(self, archive: zipfile.ZipFile, filename: str, model) -> List[Any]:
        try:
            documents = json.loads(archive.read(filename))
        except KeyError:
            raise ArchiveError(f"Archive does not contain {filename}")
        except json.JSONDecodeError as e:
            raise ArchiveError(f"{filename} is not valid JSON: {e}") from e

        if not isinstance(documents, list):
            raise ArchiveError(f"{filename} must contain a list")

        validated = []
        for index, document in enumerate(documents):
            try:
                validated.append(model.model_validate(document).model_dump(mode="json"))
            except ValidationError as e:
                raise ArchiveError(
                    f"Invalid entry {index} in {filename}: {e}",
                    {"errors": e.errors(include_url=False)},
                ) from e
        return validated
