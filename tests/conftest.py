"""Shared fixtures: an in-memory management client and a small environment."""

import copy
import threading
import uuid
from typing import Any, Dict, List, Optional

import pytest

from migration_toolkit.clients.base import ManagementClientBase
from migration_toolkit.exceptions import RemoteNotFoundError
from migration_toolkit.loaders.context import fetch_environment
from migration_toolkit.models.record import (
    ElementType,
    ItemSchedule,
    ItemSystem,
    MigrationAsset,
    MigrationData,
    MigrationItem,
    Reference,
    ReferenceListElement,
    RichTextComponent,
    RichTextElement,
    TextElement,
)
from migration_toolkit.services.batch import BatchProcessor
from migration_toolkit.services.progress import CollectingProgressSink


def workflow_contract() -> Dict[str, Any]:
    """draft -> review -> {published, scheduled, archived}"""
    return {
        "id": "wf-default",
        "codename": "default",
        "name": "Default",
        "scopes": [],
        "steps": [
            {
                "id": "s-draft",
                "codename": "draft",
                "name": "Draft",
                "transitions_to": [{"step": {"id": "s-review"}}],
            },
            {
                "id": "s-review",
                "codename": "review",
                "name": "Review",
                "transitions_to": [
                    {"step": {"id": "s-published"}},
                    {"step": {"id": "s-scheduled"}},
                    {"step": {"id": "s-archived"}},
                ],
            },
        ],
        "published_step": {"id": "s-published", "codename": "published", "name": "Published"},
        "scheduled_step": {"id": "s-scheduled", "codename": "scheduled", "name": "Scheduled"},
        "archived_step": {"id": "s-archived", "codename": "archived", "name": "Archived"},
    }


def environment_contracts() -> Dict[str, Any]:
    return {
        "types": [
            {
                "id": "t-article",
                "codename": "article",
                "name": "Article",
                "elements": [
                    {"id": "e-title", "codename": "title", "type": "text"},
                    {"id": "e-body", "codename": "body", "type": "rich_text"},
                    {"id": "e-related", "codename": "related", "type": "modular_content"},
                    {"id": "e-image", "codename": "image", "type": "asset"},
                    {"id": "e-guidelines", "codename": "guidelines", "type": "guidelines"},
                    {"id": "e-seo", "type": "snippet", "codename": "seo", "snippet": {"id": "sn-seo"}},
                ],
            },
            {
                "id": "t-callout",
                "codename": "callout",
                "name": "Callout",
                "elements": [
                    {"id": "e-message", "codename": "message", "type": "text"},
                    {"id": "e-icon", "codename": "icon", "type": "asset"},
                ],
            },
        ],
        "snippets": [
            {
                "id": "sn-seo",
                "codename": "seo",
                "elements": [
                    {"id": "e-tags", "codename": "seo__tags", "type": "taxonomy"},
                    {
                        "id": "e-category",
                        "codename": "seo__category",
                        "type": "multiple_choice",
                        "options": [
                            {"id": "o-news", "codename": "news"},
                            {"id": "o-blog", "codename": "blog"},
                        ],
                    },
                    {"id": "e-slug", "codename": "seo__slug", "type": "url_slug"},
                ],
            }
        ],
        "collections": [{"id": "c-default", "codename": "default", "name": "Default"}],
        "languages": [
            {"id": "l-en", "codename": "en", "name": "English", "is_default": True},
            {"id": "l-de", "codename": "de", "name": "German"},
        ],
        "workflows": [workflow_contract()],
        "taxonomies": [
            {
                "id": "tx-topics",
                "codename": "topics",
                "terms": [
                    {"id": "tm-travel", "codename": "travel", "terms": [
                        {"id": "tm-hiking", "codename": "hiking", "terms": []},
                    ]},
                ],
            }
        ],
        "folders": [
            {"id": "f-media", "name": "Media", "codename": "media", "folders": [
                {"id": "f-images", "name": "Images", "codename": "images", "folders": []},
            ]},
        ],
    }


class FakeManagementClient(ManagementClientBase):
    """
    In-memory management API.

    Every mutating call is appended to `calls` as (operation, *key) so tests
    can assert on order. `failures` maps (operation, key) to an exception
    raised instead of performing the call.
    """

    def __init__(self, contracts: Optional[Dict[str, Any]] = None):
        self.contracts = contracts if contracts is not None else environment_contracts()
        self.items: Dict[str, Dict[str, Any]] = {}
        self.variants: Dict[tuple, Dict[str, Any]] = {}
        self.assets: Dict[str, Dict[str, Any]] = {}
        self.binaries: Dict[str, bytes] = {}
        self.uploads: List[Dict[str, Any]] = []
        self.calls: List[tuple] = []
        self.failures: Dict[tuple, Exception] = {}
        self._lock = threading.Lock()

    def _call(self, *call) -> None:
        with self._lock:
            self.calls.append(call)
        failure = self.failures.get(call[:2])
        if failure is not None:
            raise failure

    def calls_of(self, operation: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == operation]

    # Test setup helpers

    def add_existing_item(self, codename: str, type_id: str = "t-article", name: Optional[str] = None) -> Dict[str, Any]:
        item = {
            "id": f"target-{codename}",
            "codename": codename,
            "name": name or codename.title(),
            "type": {"id": type_id},
            "collection": {"id": "c-default"},
        }
        self.items[codename] = item
        return item

    def add_existing_asset(self, codename: str, **fields) -> Dict[str, Any]:
        asset = {
            "id": f"target-{codename}",
            "codename": codename,
            "file_name": f"{codename}.png",
            "title": "",
            "size": 3,
            "descriptions": [],
            "collection": None,
            "folder": None,
            "url": f"https://assets.example.com/{codename}.png",
        }
        asset.update(fields)
        self.assets[codename] = asset
        return asset

    # Environment structure

    def list_content_types(self):
        return copy.deepcopy(self.contracts["types"])

    def list_snippets(self):
        return copy.deepcopy(self.contracts["snippets"])

    def list_collections(self):
        return copy.deepcopy(self.contracts["collections"])

    def list_languages(self):
        return copy.deepcopy(self.contracts["languages"])

    def list_workflows(self):
        return copy.deepcopy(self.contracts["workflows"])

    def list_taxonomies(self):
        return copy.deepcopy(self.contracts["taxonomies"])

    def list_asset_folders(self):
        return copy.deepcopy(self.contracts["folders"])

    # Content items

    def list_items(self):
        return list(self.items.values())

    def get_item(self, codename=None, item_id=None):
        self._call("get_item", codename or item_id)
        for item in self.items.values():
            if item["codename"] == codename or item["id"] == item_id:
                return item
        raise RemoteNotFoundError(f"Item '{codename or item_id}' not found", status=404)

    def add_item(self, data):
        self._call("add_item", data["codename"])
        item = {**data, "id": f"target-{data['codename']}"}
        self.items[data["codename"]] = item
        return item

    def upsert_item(self, codename, data):
        self._call("upsert_item", codename)
        self.items[codename].update(data)
        return self.items[codename]

    # Language variants

    def get_variant(self, item_codename, language_codename):
        self._call("get_variant", item_codename, language_codename)
        variant = self.variants.get((item_codename, language_codename))
        if variant is None:
            raise RemoteNotFoundError("Variant not found", status=404)
        return variant

    def list_item_variants(self, item_id):
        return [v for v in self.variants.values() if v["item"]["id"] == item_id]

    def upsert_variant(self, item_codename, language_codename, data):
        self._call("upsert_variant", item_codename, language_codename)
        variant = {"item": {"codename": item_codename}, "language": {"codename": language_codename}, **data}
        self.variants[(item_codename, language_codename)] = variant
        return variant

    def publish_variant(self, item_codename, language_codename, scheduled_to=None, display_timezone=None):
        self._call("publish_variant", item_codename, language_codename, scheduled_to)

    def unpublish_variant(self, item_codename, language_codename, scheduled_to=None, display_timezone=None):
        self._call("unpublish_variant", item_codename, language_codename, scheduled_to)

    def create_new_version(self, item_codename, language_codename):
        self._call("create_new_version", item_codename, language_codename)

    def cancel_scheduled_publish(self, item_codename, language_codename):
        self._call("cancel_scheduled_publish", item_codename, language_codename)

    def cancel_scheduled_unpublish(self, item_codename, language_codename):
        self._call("cancel_scheduled_unpublish", item_codename, language_codename)

    def change_workflow(self, item_codename, language_codename, workflow_codename, step_codename):
        self._call("change_workflow", item_codename, language_codename, step_codename)

    # Assets

    def list_assets(self):
        return list(self.assets.values())

    def get_asset(self, codename=None, asset_id=None):
        self._call("get_asset", codename or asset_id)
        for asset in self.assets.values():
            if asset["codename"] == codename or asset["id"] == asset_id:
                return asset
        raise RemoteNotFoundError(f"Asset '{codename or asset_id}' not found", status=404)

    def upload_binary_file(self, filename, data, content_type):
        self._call("upload_binary_file", filename)
        reference = {"id": str(uuid.uuid4()), "type": "internal"}
        self.uploads.append({"filename": filename, "content_type": content_type, "size": len(data)})
        return reference

    def add_asset(self, data):
        self._call("add_asset", data["codename"])
        asset = {**data, "id": f"target-{data['codename']}"}
        self.assets[data["codename"]] = asset
        return asset

    def upsert_asset(self, codename, data):
        self._call("upsert_asset", codename)
        self.assets[codename].update(data)
        return self.assets[codename]

    def download_asset(self, url):
        return self.binaries[url]


def make_item(
    codename: str,
    language: str = "en",
    content_type: str = "article",
    step: Optional[str] = "published",
    elements=None,
    schedule: Optional[ItemSchedule] = None,
    workflow: Optional[str] = "default",
) -> MigrationItem:
    return MigrationItem(
        system=ItemSystem(
            codename=codename,
            name=codename.replace("_", " ").title(),
            language=language,
            type=content_type,
            collection="default",
            workflow=workflow if step else None,
            workflow_step=step,
        ),
        elements=list(elements or []),
        schedule=schedule or ItemSchedule(),
    )


def make_asset(codename: str, binary_data: Optional[bytes] = b"png", **fields) -> MigrationAsset:
    values = {
        "codename": codename,
        "filename": f"{codename}.png",
        "title": "",
        "archive_filename": f"{codename}-source.png",
        "binary_data": binary_data,
    }
    values.update(fields)
    return MigrationAsset(**values)


def migration_data() -> MigrationData:
    """Two articles in two languages, an inline component and an asset."""
    body = RichTextElement(
        "body",
        '<a data-item-codename="about">About</a>'
        '<object type="application/kenticocloud" data-type="component" data-id="c1"></object>',
        components=[RichTextComponent("c1", "callout", [TextElement("message", "Hi")])],
    )
    return MigrationData(
        items=[
            make_item("home", elements=[
                TextElement("title", "Home"),
                body,
                ReferenceListElement("image", ElementType.ASSET, [Reference("logo")]),
                ReferenceListElement("related", ElementType.MODULAR_CONTENT, [Reference("about")]),
            ]),
            make_item("home", language="de", step="draft", elements=[TextElement("title", "Heim")]),
            make_item("about", elements=[TextElement("title", "About")]),
            make_item("inline_box", content_type="callout", step=None),
        ],
        assets=[make_asset("logo")],
    )


@pytest.fixture
def fake_client():
    return FakeManagementClient()


@pytest.fixture
def environment(fake_client):
    return fetch_environment(fake_client)


@pytest.fixture
def progress_sink():
    return CollectingProgressSink()


@pytest.fixture
def batch_processor(progress_sink):
    return BatchProcessor(concurrency=3, progress_sink=progress_sink)
