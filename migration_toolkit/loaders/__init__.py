"""Importers loading migration data into a target environment."""

from .base import BaseImporter, ImportAction
from .context import ContextResolver, ImportContext, fetch_environment
from .asset_loader import AssetImporter
from .content_item_loader import ContentItemImporter
from .language_variant_loader import LanguageVariantImporter

__all__ = [
    "BaseImporter",
    "ImportAction",
    "ContextResolver",
    "ImportContext",
    "fetch_environment",
    "AssetImporter",
    "ContentItemImporter",
    "LanguageVariantImporter",
]
