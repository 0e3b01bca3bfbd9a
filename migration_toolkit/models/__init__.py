"""Data models for the migration toolkit."""

from .record import (
    ElementType,
    EntityKind,
    Reference,
    TextElement,
    NumberElement,
    DateTimeElement,
    UrlSlugElement,
    ReferenceListElement,
    RichTextElement,
    RichTextComponent,
    MigrationElement,
    ItemSystem,
    ItemSchedule,
    MigrationItem,
    AssetDescription,
    MigrationAsset,
    MigrationData,
    ReferencedData,
    TranslationEntry,
    element_from_dict,
)
from .environment import (
    Workflow,
    WorkflowStep,
    ContentType,
    ContentTypeElement,
    Collection,
    Language,
    AssetFolder,
    EnvironmentData,
)
from .migration import (
    MigrationConfig,
    EnvironmentConfig,
    RetryConfig,
    MigrationStatus,
    ImportStage,
    ImportResult,
)

__all__ = [
    "ElementType",
    "EntityKind",
    "Reference",
    "TextElement",
    "NumberElement",
    "DateTimeElement",
    "UrlSlugElement",
    "ReferenceListElement",
    "RichTextElement",
    "RichTextComponent",
    "MigrationElement",
    "ItemSystem",
    "ItemSchedule",
    "MigrationItem",
    "AssetDescription",
    "MigrationAsset",
    "MigrationData",
    "ReferencedData",
    "TranslationEntry",
    "element_from_dict",
    "Workflow",
    "WorkflowStep",
    "ContentType",
    "ContentTypeElement",
    "Collection",
    "Language",
    "AssetFolder",
    "EnvironmentData",
    "MigrationConfig",
    "EnvironmentConfig",
    "RetryConfig",
    "MigrationStatus",
    "ImportStage",
    "ImportResult",
]
