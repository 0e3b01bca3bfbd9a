import pytest

from migration_toolkit.extractors.environment_extractor import EnvironmentExtractor
from migration_toolkit.formats.archive import ArchiveAdapter
from migration_toolkit.models.migration import MigrationConfig, MigrationStatus
from migration_toolkit.models.record import (
    ElementType,
    ReferenceListElement,
    RichTextElement,
    TextElement,
    UrlSlugElement,
)
from migration_toolkit.orchestrator import ImportOrchestrator

from conftest import FakeManagementClient

HOME_BODY = (
    '<p><a data-item-id="i-about">About</a></p>'
    '<figure data-asset-id="a-logo"><img src="#"></figure>'
    '<object type="application/kenticocloud" data-type="component" data-id="cmp-1"></object>'
)


def workflow_state(step_id):
    return {"workflow_identifier": {"id": "wf-default"}, "step_identifier": {"id": step_id}}


@pytest.fixture
def source_client():
    client = FakeManagementClient()
    client.items = {
        "home": {
            "id": "i-home", "codename": "home", "name": "Home",
            "type": {"id": "t-article"}, "collection": {"id": "c-default"},
        },
        "about": {
            "id": "i-about", "codename": "about", "name": "About us",
            "type": {"id": "t-article"}, "collection": {"id": "c-default"},
        },
    }
    client.variants = {
        ("home", "en"): {
            "item": {"id": "i-home"},
            "language": {"id": "l-en"},
            "workflow": workflow_state("s-published"),
            "elements": [
                {"element": {"id": "e-title"}, "value": "Home"},
                {
                    "element": {"id": "e-body"},
                    "value": HOME_BODY,
                    "components": [{
                        "id": "cmp-1",
                        "type": {"id": "t-callout"},
                        "elements": [
                            {"element": {"id": "e-message"}, "value": "Hi"},
                            {"element": {"id": "e-icon"}, "value": [{"id": "a-icon"}]},
                        ],
                    }],
                },
                {"element": {"id": "e-related"}, "value": [{"id": "i-about"}, {"id": "i-deleted"}]},
                {"element": {"id": "e-image"}, "value": [{"id": "a-logo"}]},
                {"element": {"id": "e-tags"}, "value": [{"id": "tm-hiking"}]},
                {"element": {"id": "e-category"}, "value": [{"id": "o-news"}]},
                {"element": {"id": "e-slug"}, "value": "home", "mode": "custom"},
            ],
        },
        ("home", "de"): {
            "item": {"id": "i-home"},
            "language": {"id": "l-de"},
            "workflow": workflow_state("s-draft"),
            "elements": [{"element": {"id": "e-title"}, "value": "Startseite"}],
        },
        ("about", "en"): {
            "item": {"id": "i-about"},
            "language": {"id": "l-en"},
            "workflow": workflow_state("s-draft"),
            "elements": [{"element": {"id": "e-title"}, "value": "About us"}],
        },
    }
    client.assets = {
        "logo": {
            "id": "a-logo", "codename": "logo", "file_name": "logo.png", "title": "Logo",
            "url": "https://cdn.example.com/logo.png", "size": 4,
            "folder": {"id": "f-images"},
            "collection": {"reference": {"id": "c-default"}},
            "descriptions": [{"language": {"id": "l-en"}, "description": "Company logo"}],
        },
        "icon": {
            "id": "a-icon", "codename": "icon", "file_name": "icon.svg", "title": "",
            "url": "https://cdn.example.com/icon.svg", "size": 5, "descriptions": [],
        },
        "unused": {
            "id": "a-unused", "codename": "unused", "file_name": "unused.txt",
            "url": "https://cdn.example.com/unused.txt",
        },
    }
    client.binaries = {
        "https://cdn.example.com/logo.png": b"logo",
        "https://cdn.example.com/icon.svg": b"<svg>",
    }
    return client


def extract(client, progress_sink, **config):
    return EnvironmentExtractor(client, MigrationConfig(**config), progress_sink).extract()


def test_export_converts_ids_to_codenames(source_client, progress_sink):
    result = extract(source_client, progress_sink, languages=["en"])

    assert [item.key for item in result.data.items] == [("home", "en"), ("about", "en")]
    home = result.data.items[0]
    assert home.system.to_dict() == {
        "codename": "home",
        "name": "Home",
        "language": "en",
        "type": "article",
        "collection": "default",
        "workflow": "default",
        "workflow_step": "published",
    }

    body = home.get_element("body")
    assert isinstance(body, RichTextElement)
    assert body.value == (
        '<p><a data-item-codename="about">About</a></p>'
        '<figure data-asset-codename="logo"><img src="#"></figure>'
        '<object type="application/kenticocloud" data-type="component" data-id="cmp-1"></object>'
    )
    component = body.components[0]
    assert (component.id, component.type) == ("cmp-1", "callout")
    assert component.elements[1].codenames == ["icon"]

    assert home.get_element("related").codenames == ["about"]
    assert home.get_element("image").codenames == ["logo"]
    assert home.get_element("seo__tags").codenames == ["hiking"]
    assert home.get_element("seo__category").codenames == ["news"]
    assert home.get_element("seo__category").type == ElementType.MULTIPLE_CHOICE
    slug = home.get_element("seo__slug")
    assert isinstance(slug, UrlSlugElement)
    assert (slug.value, slug.mode) == ("home", "custom")


def test_export_includes_only_referenced_assets(source_client, progress_sink):
    result = extract(source_client, progress_sink, languages=["en"])

    assert [a.codename for a in result.data.assets] == ["icon", "logo"]
    logo = result.data.assets[1]
    assert logo.archive_filename == "a-logo.png"
    assert (logo.folder, logo.collection) == ("images", "default")
    assert [(d.language, d.description) for d in logo.descriptions] == [("en", "Company logo")]
    assert logo.binary_data == b"logo"


def test_missing_references_are_warnings(source_client, progress_sink):
    result = extract(source_client, progress_sink)

    assert result.success
    assert any("i-deleted" in warning for warning in result.warnings)
    assert result.total_items == 3


def test_export_filters(source_client, progress_sink):
    by_codename = extract(source_client, progress_sink, item_codenames=["about"])
    by_type = extract(source_client, progress_sink, content_types=["callout"])

    assert [item.key for item in by_codename.data.items] == [("about", "en")]
    assert by_type.data.items == []


def test_unknown_workflow_step_is_an_error(source_client, progress_sink):
    source_client.variants[("about", "en")]["workflow"] = workflow_state("s-removed")

    result = extract(source_client, progress_sink, languages=["en"])

    assert not result.success
    assert result.errors[0]["key"] == "i-about"
    assert [item.key for item in result.data.items] == [("home", "en")]


def test_exported_archive_imports_into_another_environment(source_client, progress_sink, tmp_path):
    exported = extract(source_client, progress_sink, languages=["en"])
    ArchiveAdapter().write(exported.data, tmp_path / "export.zip")
    data = ArchiveAdapter().read(tmp_path / "export.zip")
    target = FakeManagementClient()

    result = ImportOrchestrator(target, MigrationConfig(), progress_sink).import_data(data)

    assert result.status == MigrationStatus.COMPLETED
    assert sorted(target.assets) == ["icon", "logo"]
    assert sorted(target.items) == ["about", "home"]
    elements = {e["element"]["codename"]: e for e in target.variants[("home", "en")]["elements"]}
    assert elements["related"]["value"] == [{"id": "target-about"}]
    assert 'data-asset-id="target-logo"' in elements["body"]["value"]
    assert elements["body"]["components"][0]["elements"][1]["value"] == [{"id": "target-icon"}]
    assert ("publish_variant", "home", "en", None) in target.calls
    assert isinstance(data.items[0].get_element("title"), TextElement)
    assert isinstance(data.items[0].get_element("image"), ReferenceListElement)
