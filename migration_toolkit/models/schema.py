"""Pydantic models validating the JSON documents of a migration archive."""

from typing import Any, List, Optional
from pydantic import BaseModel, Field, model_validator

from .record import ElementType, REFERENCE_ELEMENT_TYPES

_STRING_ELEMENT_TYPES = (
    ElementType.TEXT,
    ElementType.CUSTOM,
    ElementType.DATE_TIME,
    ElementType.URL_SLUG,
    ElementType.RICH_TEXT,
)


class ReferenceModel(BaseModel):
    codename: str


class ElementModel(BaseModel):
    codename: str
    type: ElementType
    value: Any = None
    display_timezone: Optional[str] = None
    mode: Optional[str] = None
    components: List["ComponentModel"] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_value_shape(self) -> "ElementModel":
        if self.value is None:
            return self
        if self.type in REFERENCE_ELEMENT_TYPES:
            if not isinstance(self.value, list):
                raise ValueError(f"Element '{self.codename}' of type '{self.type.value}' must hold a list of references")
            self.value = [ReferenceModel.model_validate(v).model_dump() for v in self.value]
        elif self.type == ElementType.NUMBER:
            if isinstance(self.value, bool) or not isinstance(self.value, (int, float, str)):
                raise ValueError(f"Element '{self.codename}' must hold a number")
            if isinstance(self.value, str) and self.value:
                float(self.value)
        elif self.type in _STRING_ELEMENT_TYPES and not isinstance(self.value, str):
            raise ValueError(f"Element '{self.codename}' of type '{self.type.value}' must hold a string")
        return self


class ComponentModel(BaseModel):
    id: str
    type: str
    elements: List[ElementModel] = Field(default_factory=list)


ElementModel.model_rebuild()


class ItemSystemModel(BaseModel):
    codename: str
    name: str
    language: str
    type: str
    collection: Optional[str] = None
    workflow: Optional[str] = None
    workflow_step: Optional[str] = None


class ScheduleModel(BaseModel):
    publish_time: Optional[str] = None
    publish_display_timezone: Optional[str] = None
    unpublish_time: Optional[str] = None
    unpublish_display_timezone: Optional[str] = None


class MigrationItemModel(BaseModel):
    system: ItemSystemModel
    elements: List[ElementModel] = Field(default_factory=list)
    schedule: ScheduleModel = Field(default_factory=ScheduleModel)


class AssetDescriptionModel(BaseModel):
    language: str
    description: Optional[str] = None


class MigrationAssetModel(BaseModel):
    codename: str
    filename: str
    title: str = ""
    archive_filename: str
    external_id: Optional[str] = None
    collection: Optional[str] = None
    folder: Optional[str] = None
    descriptions: List[AssetDescriptionModel] = Field(default_factory=list)
