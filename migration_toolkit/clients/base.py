"""Interface of the content management API used by the toolkit."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class ManagementClientBase(ABC):
    """
    Narrow contract of a content management API.

    Every operation returns the API contract as a dictionary or raises a
    RemoteApiError subclass. Lookups of missing entities raise
    RemoteNotFoundError.
    """

    # Environment structure

    @abstractmethod
    def list_content_types(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_snippets(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_collections(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_languages(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_workflows(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_taxonomies(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def list_asset_folders(self) -> List[Dict[str, Any]]:
        pass

    # Content items

    @abstractmethod
    def list_items(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def get_item(self, codename: Optional[str] = None, item_id: Optional[str] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    def add_item(self, data: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    def upsert_item(self, codename: str, data: Dict[str, Any]) -> Dict[str, Any]:
        pass

    # Language variants

    @abstractmethod
    def get_variant(self, item_codename: str, language_codename: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def list_item_variants(self, item_id: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def upsert_variant(self, item_codename: str, language_codename: str, data: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    def publish_variant(
        self,
        item_codename: str,
        language_codename: str,
        scheduled_to: Optional[str] = None,
        display_timezone: Optional[str] = None
    ) -> None:
        pass

    @abstractmethod
    def unpublish_variant(
        self,
        item_codename: str,
        language_codename: str,
        scheduled_to: Optional[str] = None,
        display_timezone: Optional[str] = None
    ) -> None:
        pass

    @abstractmethod
    def create_new_version(self, item_codename: str, language_codename: str) -> None:
        pass

    @abstractmethod
    def cancel_scheduled_publish(self, item_codename: str, language_codename: str) -> None:
        pass

    @abstractmethod
    def cancel_scheduled_unpublish(self, item_codename: str, language_codename: str) -> None:
        pass

    @abstractmethod
    def change_workflow(
        self,
        item_codename: str,
        language_codename: str,
        workflow_codename: str,
        step_codename: str
    ) -> None:
        pass

    # Assets

    @abstractmethod
    def list_assets(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def get_asset(self, codename: Optional[str] = None, asset_id: Optional[str] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    def upload_binary_file(self, filename: str, data: bytes, content_type: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def add_asset(self, data: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    def upsert_asset(self, codename: str, data: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    def download_asset(self, url: str) -> bytes:
        pass
