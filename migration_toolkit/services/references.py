"""Discovery of items and assets referenced by content."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..models.environment import ContentType
from ..models.record import (
    ElementType,
    EntityKind,
    ITEM_REFERENCE_TYPES,
    MigrationElement,
    MigrationItem,
    ReferenceListElement,
    ReferencedData,
    RichTextElement,
)
from . import rich_text

logger = logging.getLogger(__name__)


class ReferenceExtractor:
    """
    Finds the items and assets that content points at.

    Two input shapes are supported:
    - migration items, whose references are codenames
    - language variants of an environment, whose references are ids

    Taxonomy terms and multiple choice options are references too, but they
    never point at items or assets and so contribute nothing to the result.
    """

    def extract(self, items: Iterable[MigrationItem]) -> ReferencedData:
        """
        Collect codenames of items and assets referenced by migration items.

        Args:
            items: Migration items to scan

        Returns:
            ReferencedData with item and asset codenames, excluding each
            item's own codename
        """
        result = ReferencedData()
        for item in items:
            found = self.extract_from_elements(item.elements)
            found.item_codenames.discard(item.system.codename)
            result.merge(found)
        return result

    def extract_from_elements(self, elements: Iterable[MigrationElement]) -> ReferencedData:
        """Collect codenames referenced by elements, including inline components."""
        result = ReferencedData()
        for element in elements:
            if isinstance(element, ReferenceListElement):
                if element.type in ITEM_REFERENCE_TYPES:
                    result.item_codenames.update(element.codenames)
                elif element.type == ElementType.ASSET:
                    result.asset_codenames.update(element.codenames)
            elif isinstance(element, RichTextElement):
                result.merge(_scan_rich_text(element.value, rich_text.CODENAME_MARKERS))
                for component in element.components:
                    result.merge(self.extract_from_elements(component.elements))
        return result

    def extract_ids(
        self,
        variants: Iterable[Dict[str, Any]],
        content_types: Dict[str, ContentType]
    ) -> ReferencedData:
        """
        Collect ids of items and assets referenced by management API language variants.

        Args:
            variants: Language variant contracts
            content_types: Content type id -> content type, used to find element types

        Returns:
            ReferencedData holding ids instead of codenames
        """
        result = ReferencedData()
        for variant in variants:
            item_id = variant["item"]["id"]
            content_type = content_types.get(_content_type_id(variant))
            found = self._extract_ids_from_elements(variant.get("elements", []), content_type, content_types)
            found.item_codenames.discard(item_id)
            result.merge(found)
        return result

    def _extract_ids_from_elements(
        self,
        elements: List[Dict[str, Any]],
        content_type: Optional[ContentType],
        content_types: Dict[str, ContentType]
    ) -> ReferencedData:
        result = ReferencedData()
        if content_type is None:
            return result

        types_by_element_id = {e.id: e.element_type for e in content_type.elements}
        for element in elements:
            element_type = types_by_element_id.get(element["element"]["id"])
            value = element.get("value")

            if element_type in ITEM_REFERENCE_TYPES:
                result.item_codenames.update(r["id"] for r in value or [] if r.get("id"))
            elif element_type == ElementType.ASSET:
                result.asset_codenames.update(r["id"] for r in value or [] if r.get("id"))
            elif element_type == ElementType.RICH_TEXT:
                result.merge(_scan_rich_text(value, rich_text.ID_MARKERS))
                for component in element.get("components", []):
                    result.merge(self._extract_ids_from_elements(
                        component.get("elements", []),
                        content_types.get(component["type"]["id"]),
                        content_types,
                    ))
        return result


def _content_type_id(variant: Dict[str, Any]) -> Optional[str]:
    content_type = variant.get("content_type") or {}
    return content_type.get("id")


def _scan_rich_text(html: Optional[str], markers) -> ReferencedData:
    result = ReferencedData()
    for marker in markers:
        values = rich_text.find_values(html, marker)
        if marker.kind == EntityKind.ITEM:
            result.item_codenames.update(values)
        else:
            result.asset_codenames.update(values)
    return result
