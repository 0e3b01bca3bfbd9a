"""Conversion of migration elements into management API element contracts."""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import NotFoundError
from ..models.environment import ContentType, EnvironmentData
from ..models.record import (
    ElementType,
    EntityKind,
    MigrationElement,
    MigrationItem,
    ReferenceListElement,
    RichTextComponent,
    RichTextElement,
)
from . import rich_text
from .translation import TranslationTable

logger = logging.getLogger(__name__)


def item_external_id(codename: str) -> str:
    """External id assigned to items created by the import."""
    return f"item_{codename}"


def asset_external_id(codename: str) -> str:
    """External id assigned to assets created by the import."""
    return f"asset_{codename}"


def _external_id(kind: EntityKind, codename: str) -> str:
    if kind == EntityKind.ITEM:
        return item_external_id(codename)
    return asset_external_id(codename)


class ElementTransformer:
    """
    Builds language variant element contracts from migration elements.

    Item and asset references are resolved through the translation table.
    References that are not (yet) in the target fall back to the external id
    the import assigns, so they resolve once the entity is created.
    """

    def __init__(self, environment: EnvironmentData, table: TranslationTable):
        self.environment = environment
        self.table = table
        self._transforms: Dict[ElementType, Callable[[Any], Dict[str, Any]]] = {
            ElementType.TEXT: self._scalar,
            ElementType.CUSTOM: self._custom,
            ElementType.NUMBER: self._scalar,
            ElementType.DATE_TIME: self._date_time,
            ElementType.URL_SLUG: self._url_slug,
            ElementType.RICH_TEXT: self._rich_text,
            ElementType.MODULAR_CONTENT: self._item_references,
            ElementType.SUBPAGES: self._item_references,
            ElementType.ASSET: self._asset_references,
            ElementType.TAXONOMY: self._codename_references,
            ElementType.MULTIPLE_CHOICE: self._codename_references,
        }

    def transform_item(self, item: MigrationItem) -> List[Dict[str, Any]]:
        """
        Transform all elements of an item after validating them against its content type.

        Raises:
            NotFoundError: If the content type, or an element of the given type, does not exist
        """
        content_type = self._get_content_type(item.system.type)
        return self.transform_elements(item.elements, content_type)

    def transform_elements(
        self,
        elements: List[MigrationElement],
        content_type: ContentType
    ) -> List[Dict[str, Any]]:
        contracts = []
        for element in elements:
            self._validate(element, content_type)
            contracts.append(self.transform(element))
        return contracts

    def transform(self, element: MigrationElement) -> Dict[str, Any]:
        return self._transforms[element.type](element)

    def rewrite_rich_text(self, html: Optional[str]) -> Optional[str]:
        """Rewrite references to target ids, falling back to external ids."""
        html = self.table.rewrite_rich_text(html)
        for marker in rich_text.CODENAME_MARKERS:
            external_attribute = rich_text.EXTERNAL_ID_ATTRIBUTE_FOR_CODENAME[marker.attribute]
            html = rich_text.replace_values(
                html,
                marker,
                lambda codename, kind=marker.kind: (external_attribute, _external_id(kind, codename)),
            )
        return html

    def _get_content_type(self, codename: str) -> ContentType:
        content_type = self.environment.get_content_type(codename)
        if content_type is None:
            raise NotFoundError(f"Content type '{codename}' does not exist in target environment")
        return content_type

    def _validate(self, element: MigrationElement, content_type: ContentType) -> None:
        type_element = content_type.get_element(element.codename)
        if type_element is None:
            raise NotFoundError(
                f"Element '{element.codename}' does not exist in content type '{content_type.codename}'"
            )
        if type_element.element_type != element.type:
            raise NotFoundError(
                f"Element '{element.codename}' of content type '{content_type.codename}' has type "
                f"'{type_element.type}', not '{element.type.value}'"
            )

    @staticmethod
    def _base(element: MigrationElement) -> Dict[str, Any]:
        return {"element": {"codename": element.codename}}

    def _scalar(self, element) -> Dict[str, Any]:
        return {**self._base(element), "value": element.value}

    def _custom(self, element) -> Dict[str, Any]:
        return {**self._base(element), "value": element.value or ""}

    def _date_time(self, element) -> Dict[str, Any]:
        return {
            **self._base(element),
            "value": element.value,
            "display_timezone": element.display_timezone,
        }

    def _url_slug(self, element) -> Dict[str, Any]:
        return {**self._base(element), "value": element.value or "", "mode": element.mode}

    def _rich_text(self, element: RichTextElement) -> Dict[str, Any]:
        return {
            **self._base(element),
            "value": self.rewrite_rich_text(element.value) or "",
            "components": [self._component(c) for c in element.components],
        }

    def _component(self, component: RichTextComponent) -> Dict[str, Any]:
        content_type = self._get_content_type(component.type)
        return {
            "id": component.id,
            "type": {"codename": component.type},
            "elements": self.transform_elements(component.elements, content_type),
        }

    def _item_references(self, element: ReferenceListElement) -> Dict[str, Any]:
        return {**self._base(element), "value": self._resolve_references(EntityKind.ITEM, element)}

    def _asset_references(self, element: ReferenceListElement) -> Dict[str, Any]:
        return {**self._base(element), "value": self._resolve_references(EntityKind.ASSET, element)}

    def _codename_references(self, element: ReferenceListElement) -> Dict[str, Any]:
        return {**self._base(element), "value": [{"codename": c} for c in element.codenames]}

    def _resolve_references(self, kind: EntityKind, element: ReferenceListElement) -> List[Dict[str, str]]:
        references = []
        for codename in element.codenames:
            target_id = self.table.resolve(kind, codename)
            if target_id:
                references.append({"id": target_id})
            else:
                logger.debug(f"Unresolved {kind.value} reference '{codename}' in element '{element.codename}'")
                references.append({"external_id": _external_id(kind, codename)})
        return references
