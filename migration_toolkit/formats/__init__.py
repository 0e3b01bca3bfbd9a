"""File formats for exported migration data."""

from .archive import ArchiveAdapter, asset_binary_path

__all__ = ["ArchiveAdapter", "asset_binary_path"]
