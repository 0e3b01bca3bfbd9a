"""Run-scoped table translating source identifiers to target identifiers."""

import logging
import threading
from typing import Dict, List, Optional, Tuple

from ..exceptions import DuplicateMappingError
from ..models.record import EntityKind, TranslationEntry
from . import rich_text

logger = logging.getLogger(__name__)


class TranslationTable:
    """
    Accumulates source -> target identifier mappings during an import.

    Entries are keyed by (kind, original codename), written once and never
    replaced. All access is serialized with a lock so concurrent importers
    can record and resolve entries.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[Tuple[EntityKind, str], TranslationEntry] = {}
        self._by_original_id: Dict[Tuple[EntityKind, str], TranslationEntry] = {}
        self._target_ids: Dict[EntityKind, set] = {kind: set() for kind in EntityKind}

    def record(
        self,
        kind: EntityKind,
        original_codename: str,
        target_id: str,
        target_codename: str,
        original_id: Optional[str] = None
    ) -> TranslationEntry:
        """
        Record the target entity of a source entity.

        Args:
            kind: Item or asset
            original_codename: Codename in the source
            target_id: Id of the entity in the target
            target_codename: Codename of the entity in the target
            original_id: Id in the source, when known

        Returns:
            The stored entry

        Raises:
            DuplicateMappingError: If the key is already mapped to another target
        """
        entry = TranslationEntry(
            kind=kind,
            original_codename=original_codename,
            target_id=target_id,
            target_codename=target_codename,
            original_id=original_id,
        )
        key = (kind, original_codename)

        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                if not existing.same_target(entry):
                    raise DuplicateMappingError(kind.value, original_codename, existing.target_id, target_id)
                if original_id and not existing.original_id:
                    existing.original_id = original_id
                    self._by_original_id[(kind, original_id)] = existing
                return existing

            self._entries[key] = entry
            self._target_ids[kind].add(target_id)
            if original_id:
                self._by_original_id[(kind, original_id)] = entry

        logger.debug(f"Mapped {kind.value} '{original_codename}' -> '{target_id}'")
        return entry

    def resolve(self, kind: EntityKind, original_codename: str) -> Optional[str]:
        """Get the target id of a source entity, or None if it is not mapped."""
        entry = self.get(kind, original_codename)
        return entry.target_id if entry else None

    def resolve_id(self, kind: EntityKind, original_id: str) -> Optional[str]:
        """Get the target id of a source entity by its source id, or None if it is not mapped."""
        with self._lock:
            entry = self._by_original_id.get((kind, original_id))
        return entry.target_id if entry else None

    def get(self, kind: EntityKind, original_codename: str) -> Optional[TranslationEntry]:
        with self._lock:
            return self._entries.get((kind, original_codename))

    def entries(self) -> List[TranslationEntry]:
        with self._lock:
            return list(self._entries.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def rewrite_rich_text(self, html: Optional[str]) -> Optional[str]:
        """
        Replace resolvable references in rich text with target ids.

        Codename markers are turned into the matching id markers. Original id
        markers get the target id. Anything that does not resolve, and any
        value that already is a target id, is left untouched, which makes
        the rewrite idempotent.
        """
        if not html:
            return html

        for marker in rich_text.CODENAME_MARKERS:
            html = rich_text.replace_values(html, marker, self._codename_replacer(marker))

        for marker in rich_text.ID_MARKERS:
            html = rich_text.replace_values(html, marker, self._id_replacer(marker))

        return html

    def _codename_replacer(self, marker: rich_text.Marker):
        id_attribute = rich_text.ID_ATTRIBUTE_FOR_CODENAME[marker.attribute]

        def replace(codename: str):
            target_id = self.resolve(marker.kind, codename)
            if target_id is None:
                return None
            return id_attribute, target_id

        return replace

    def _id_replacer(self, marker: rich_text.Marker):
        def replace(value: str):
            with self._lock:
                if value in self._target_ids[marker.kind]:
                    return None
            target_id = self.resolve_id(marker.kind, value)
            if target_id is None:
                return None
            return marker.attribute, target_id

        return replace
