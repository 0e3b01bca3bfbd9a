"""Record models for migration data."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from enum import Enum


class ElementType(str, Enum):
    """Type of a content element."""
    TEXT = "text"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    MULTIPLE_CHOICE = "multiple_choice"
    DATE_TIME = "date_time"
    ASSET = "asset"
    MODULAR_CONTENT = "modular_content"
    TAXONOMY = "taxonomy"
    URL_SLUG = "url_slug"
    CUSTOM = "custom"
    SUBPAGES = "subpages"


# Element types whose value is a list of references
REFERENCE_ELEMENT_TYPES = (
    ElementType.MODULAR_CONTENT,
    ElementType.SUBPAGES,
    ElementType.ASSET,
    ElementType.TAXONOMY,
    ElementType.MULTIPLE_CHOICE,
)

# Reference element types pointing at content items
ITEM_REFERENCE_TYPES = (ElementType.MODULAR_CONTENT, ElementType.SUBPAGES)


class EntityKind(str, Enum):
    """Kind of entity tracked in the identifier translation table."""
    ITEM = "item"
    ASSET = "asset"


@dataclass(frozen=True)
class Reference:
    """A weak pointer to another item, asset, term or option by codename."""
    codename: str

    def to_dict(self) -> Dict[str, Any]:
        return {"codename": self.codename}


@dataclass
class TextElement:
    """Text or custom element."""
    codename: str
    value: Optional[str] = None
    type: ElementType = ElementType.TEXT

    def to_dict(self) -> Dict[str, Any]:
        return {"codename": self.codename, "type": self.type.value, "value": self.value}


@dataclass
class NumberElement:
    codename: str
    value: Optional[float] = None
    type: ElementType = ElementType.NUMBER

    def to_dict(self) -> Dict[str, Any]:
        return {"codename": self.codename, "type": self.type.value, "value": self.value}


@dataclass
class DateTimeElement:
    codename: str
    value: Optional[str] = None
    display_timezone: Optional[str] = None
    type: ElementType = ElementType.DATE_TIME

    def to_dict(self) -> Dict[str, Any]:
        return {
            "codename": self.codename,
            "type": self.type.value,
            "value": self.value,
            "display_timezone": self.display_timezone,
        }


@dataclass
class UrlSlugElement:
    codename: str
    value: Optional[str] = None
    mode: str = "autogenerated"
    type: ElementType = ElementType.URL_SLUG

    def to_dict(self) -> Dict[str, Any]:
        return {
            "codename": self.codename,
            "type": self.type.value,
            "value": self.value,
            "mode": self.mode,
        }


@dataclass
class ReferenceListElement:
    """Element holding references: linked items, subpages, assets, taxonomy terms or options."""
    codename: str
    type: ElementType
    value: List[Reference] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "codename": self.codename,
            "type": self.type.value,
            "value": [r.to_dict() for r in self.value],
        }

    @property
    def codenames(self) -> List[str]:
        """Non-empty referenced codenames."""
        return [r.codename for r in self.value if r.codename]


@dataclass
class RichTextComponent:
    """A content item embedded inline in rich text."""
    id: str
    type: str
    elements: List["MigrationElement"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "elements": [e.to_dict() for e in self.elements],
        }


@dataclass
class RichTextElement:
    codename: str
    value: Optional[str] = None
    components: List[RichTextComponent] = field(default_factory=list)
    type: ElementType = ElementType.RICH_TEXT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "codename": self.codename,
            "type": self.type.value,
            "value": self.value,
            "components": [c.to_dict() for c in self.components],
        }


MigrationElement = Union[
    TextElement,
    NumberElement,
    DateTimeElement,
    UrlSlugElement,
    ReferenceListElement,
    RichTextElement,
]


def _text_from_dict(data: Dict[str, Any]) -> MigrationElement:
    value = data.get("value")
    return TextElement(
        codename=data["codename"],
        value=None if value is None else str(value),
        type=ElementType(data["type"]),
    )


def _number_from_dict(data: Dict[str, Any]) -> MigrationElement:
    value = data.get("value")
    return NumberElement(
        codename=data["codename"],
        value=None if value in (None, "") else float(value),
    )


def _date_time_from_dict(data: Dict[str, Any]) -> MigrationElement:
    return DateTimeElement(
        codename=data["codename"],
        value=data.get("value"),
        display_timezone=data.get("display_timezone"),
    )


def _url_slug_from_dict(data: Dict[str, Any]) -> MigrationElement:
    return UrlSlugElement(
        codename=data["codename"],
        value=data.get("value"),
        mode=data.get("mode") or "autogenerated",
    )


def _references_from_dict(data: Dict[str, Any]) -> MigrationElement:
    return ReferenceListElement(
        codename=data["codename"],
        type=ElementType(data["type"]),
        value=[Reference(codename=r["codename"]) for r in data.get("value") or []],
    )


def _rich_text_from_dict(data: Dict[str, Any]) -> MigrationElement:
    return RichTextElement(
        codename=data["codename"],
        value=data.get("value"),
        components=[
            RichTextComponent(
                id=c["id"],
                type=c["type"],
                elements=[element_from_dict(e) for e in c.get("elements", [])],
            )
            for c in data.get("components") or []
        ],
    )


_ELEMENT_PARSERS = {
    ElementType.TEXT: _text_from_dict,
    ElementType.CUSTOM: _text_from_dict,
    ElementType.NUMBER: _number_from_dict,
    ElementType.DATE_TIME: _date_time_from_dict,
    ElementType.URL_SLUG: _url_slug_from_dict,
    ElementType.RICH_TEXT: _rich_text_from_dict,
    ElementType.MODULAR_CONTENT: _references_from_dict,
    ElementType.SUBPAGES: _references_from_dict,
    ElementType.ASSET: _references_from_dict,
    ElementType.TAXONOMY: _references_from_dict,
    ElementType.MULTIPLE_CHOICE: _references_from_dict,
}


def element_from_dict(data: Dict[str, Any]) -> MigrationElement:
    """Create the element variant matching the 'type' tag of the data."""
    return _ELEMENT_PARSERS[ElementType(data["type"])](data)


@dataclass
class ItemSchedule:
    """Scheduled publishing or unpublishing of a language variant."""
    publish_time: Optional[str] = None
    publish_display_timezone: Optional[str] = None
    unpublish_time: Optional[str] = None
    unpublish_display_timezone: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "publish_time": self.publish_time,
            "publish_display_timezone": self.publish_display_timezone,
            "unpublish_time": self.unpublish_time,
            "unpublish_display_timezone": self.unpublish_display_timezone,
        }


@dataclass
class ItemSystem:
    """System attributes of a migration item."""
    codename: str
    name: str
    language: str
    type: str
    collection: Optional[str] = None
    workflow: Optional[str] = None
    # Undefined only for items representing rich text components
    workflow_step: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "codename": self.codename,
            "name": self.name,
            "language": self.language,
            "type": self.type,
            "collection": self.collection,
            "workflow": self.workflow,
            "workflow_step": self.workflow_step,
        }


@dataclass
class MigrationItem:
    """A language variant of a content item in its neutral representation."""
    system: ItemSystem
    elements: List[MigrationElement] = field(default_factory=list)
    schedule: ItemSchedule = field(default_factory=ItemSchedule)

    @property
    def key(self) -> tuple:
        """Identity key (codename, language)."""
        return (self.system.codename, self.system.language)

    @property
    def is_component(self) -> bool:
        """Items without a workflow step are inlined rich text components."""
        return not self.system.workflow_step

    def get_element(self, codename: str) -> Optional[MigrationElement]:
        for element in self.elements:
            if element.codename == codename:
                return element
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "system": self.system.to_dict(),
            "elements": [e.to_dict() for e in self.elements],
            "schedule": self.schedule.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationItem":
        """Create from dictionary representation."""
        system = data["system"]
        return cls(
            system=ItemSystem(
                codename=system["codename"],
                name=system.get("name") or system["codename"],
                language=system["language"],
                type=system["type"],
                collection=system.get("collection"),
                workflow=system.get("workflow"),
                workflow_step=system.get("workflow_step"),
            ),
            elements=[element_from_dict(e) for e in data.get("elements", [])],
            schedule=ItemSchedule(**(data.get("schedule") or {})),
        )


@dataclass
class AssetDescription:
    language: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"language": self.language, "description": self.description}


@dataclass
class MigrationAsset:
    """An asset with its metadata and (optionally) binary payload."""
    codename: str
    filename: str
    title: str
    archive_filename: str
    external_id: Optional[str] = None
    collection: Optional[str] = None
    folder: Optional[str] = None
    descriptions: List[AssetDescription] = field(default_factory=list)
    binary_data: Optional[bytes] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (without binary data)."""
        return {
            "codename": self.codename,
            "filename": self.filename,
            "title": self.title,
            "archive_filename": self.archive_filename,
            "external_id": self.external_id,
            "collection": self.collection,
            "folder": self.folder,
            "descriptions": [d.to_dict() for d in self.descriptions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], binary_data: Optional[bytes] = None) -> "MigrationAsset":
        """Create from dictionary representation."""
        return cls(
            codename=data["codename"],
            filename=data["filename"],
            title=data.get("title") or "",
            archive_filename=data.get("archive_filename") or data["filename"],
            external_id=data.get("external_id"),
            collection=data.get("collection"),
            folder=data.get("folder"),
            descriptions=[
                AssetDescription(language=d["language"], description=d.get("description"))
                for d in data.get("descriptions", [])
            ],
            binary_data=binary_data,
        )


@dataclass
class MigrationData:
    """Items and assets moved between environments."""
    items: List[MigrationItem] = field(default_factory=list)
    assets: List[MigrationAsset] = field(default_factory=list)


@dataclass
class ReferencedData:
    """Codenames (or ids) of items and assets referenced by content."""
    item_codenames: set = field(default_factory=set)
    asset_codenames: set = field(default_factory=set)

    def merge(self, other: "ReferencedData") -> None:
        self.item_codenames |= other.item_codenames
        self.asset_codenames |= other.asset_codenames


@dataclass
class TranslationEntry:
    """Mapping of a source entity to the entity created for it in the target."""
    kind: EntityKind
    original_codename: str
    target_id: str
    target_codename: str
    original_id: Optional[str] = None

    def same_target(self, other: "TranslationEntry") -> bool:
        return self.target_id == other.target_id and self.target_codename == other.target_codename
