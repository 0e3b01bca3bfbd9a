"""Models describing the structure of a content environment."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .record import ElementType


@dataclass
class WorkflowStep:
    """A step of a workflow and the steps it may transition to."""
    id: str
    codename: str
    name: str = ""
    transitions_to: List[str] = field(default_factory=list)  # step codenames


@dataclass
class Workflow:
    """A workflow graph including its published, scheduled and archived steps."""
    id: str
    codename: str
    name: str
    steps: List[WorkflowStep]
    published_step: WorkflowStep
    scheduled_step: WorkflowStep
    archived_step: WorkflowStep
    content_type_ids: List[str] = field(default_factory=list)

    @property
    def all_steps(self) -> List[WorkflowStep]:
        return [*self.steps, self.published_step, self.scheduled_step, self.archived_step]

    @property
    def first_step(self) -> WorkflowStep:
        return self.steps[0]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Workflow":
        """Create from a management API workflow contract."""
        special = {
            key: WorkflowStep(
                id=data[key]["id"],
                codename=data[key]["codename"],
                name=data[key].get("name", ""),
            )
            for key in ("published_step", "scheduled_step", "archived_step")
        }
        codenames_by_id = {step["id"]: step["codename"] for step in data.get("steps", [])}
        codenames_by_id.update({step.id: step.codename for step in special.values()})

        steps = []
        for step in data.get("steps", []):
            transitions = []
            for transition in step.get("transitions_to", []):
                target_id = transition["step"]["id"]
                if target_id not in codenames_by_id:
                    raise ValueError(
                        f"Could not find transition step with id '{target_id}' "
                        f"in workflow '{data['codename']}'"
                    )
                transitions.append(codenames_by_id[target_id])
            steps.append(WorkflowStep(
                id=step["id"],
                codename=step["codename"],
                name=step.get("name", ""),
                transitions_to=transitions,
            ))

        content_type_ids = [
            content_type["id"]
            for scope in data.get("scopes", [])
            for content_type in scope.get("content_types", [])
            if content_type.get("id")
        ]

        return cls(
            id=data["id"],
            codename=data["codename"],
            name=data.get("name", ""),
            steps=steps,
            content_type_ids=content_type_ids,
            **special,
        )


@dataclass
class ContentTypeElement:
    id: str
    codename: str
    type: str
    options: Dict[str, str] = field(default_factory=dict)  # multiple choice option id -> codename

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentTypeElement":
        return cls(
            id=data["id"],
            codename=data["codename"],
            type=data["type"],
            options={o["id"]: o["codename"] for o in data.get("options", [])},
        )

    @property
    def element_type(self) -> Optional[ElementType]:
        """Migration element type, or None for non-value elements such as guidelines."""
        try:
            return ElementType(self.type)
        except ValueError:
            return None


@dataclass
class ContentType:
    """A content type with its elements, snippet elements flattened in."""
    id: str
    codename: str
    name: str
    elements: List[ContentTypeElement] = field(default_factory=list)

    def get_element(self, codename: str) -> Optional[ContentTypeElement]:
        for element in self.elements:
            if element.codename == codename:
                return element
        return None

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        snippets: Optional[Dict[str, List[ContentTypeElement]]] = None
    ) -> "ContentType":
        """
        Create from a management API content type contract.

        Args:
            data: Content type contract
            snippets: Snippet id -> elements of that snippet

        Returns:
            ContentType with snippet elements expanded
        """
        snippets = snippets or {}
        elements = []
        for element in data.get("elements", []):
            if element["type"] == "snippet":
                elements.extend(snippets.get(element["snippet"]["id"], []))
                continue
            elements.append(ContentTypeElement.from_dict(element))
        return cls(id=data["id"], codename=data["codename"], name=data.get("name", ""), elements=elements)


@dataclass
class Collection:
    id: str
    codename: str
    name: str = ""


@dataclass
class Language:
    id: str
    codename: str
    name: str = ""
    is_default: bool = False
    is_active: bool = True


@dataclass
class AssetFolder:
    id: str
    name: str
    codename: Optional[str] = None
    external_id: Optional[str] = None


def flatten_asset_folders(folders: List[Dict[str, Any]]) -> List[AssetFolder]:
    """Flatten the nested asset folder tree."""
    flattened = []
    for folder in folders:
        flattened.append(AssetFolder(
            id=folder["id"],
            name=folder.get("name", ""),
            codename=folder.get("codename"),
            external_id=folder.get("external_id"),
        ))
        flattened.extend(flatten_asset_folders(folder.get("folders", [])))
    return flattened


@dataclass
class EnvironmentData:
    """Structure of an environment needed to import content into it."""
    content_types: List[ContentType] = field(default_factory=list)
    collections: List[Collection] = field(default_factory=list)
    languages: List[Language] = field(default_factory=list)
    workflows: List[Workflow] = field(default_factory=list)
    asset_folders: List[AssetFolder] = field(default_factory=list)

    def get_content_type(self, codename: str) -> Optional[ContentType]:
        for content_type in self.content_types:
            if content_type.codename == codename:
                return content_type
        return None

    def get_language(self, codename: str) -> Optional[Language]:
        for language in self.languages:
            if language.codename == codename:
                return language
        return None

    def get_collection(self, codename: str) -> Optional[Collection]:
        for collection in self.collections:
            if collection.codename == codename:
                return collection
        return None

    def get_asset_folder(self, key: str) -> Optional[AssetFolder]:
        """Find an asset folder by codename, falling back to its name."""
        for folder in self.asset_folders:
            if folder.codename == key:
                return folder
        for folder in self.asset_folders:
            if folder.name == key:
                return folder
        return None
