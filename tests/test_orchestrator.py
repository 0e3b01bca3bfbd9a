import json

import pytest

from migration_toolkit.exceptions import TransportError
from migration_toolkit.models.migration import MigrationConfig, MigrationStatus
from migration_toolkit.models.record import (
    ElementType,
    EntityKind,
    ItemSchedule,
    MigrationData,
    Reference,
    ReferenceListElement,
    TextElement,
)
from migration_toolkit.orchestrator import ImportOrchestrator
from migration_toolkit.services.translation import TranslationTable

from conftest import make_asset, make_item, migration_data


def run_import(client, data, progress_sink, **config):
    config.setdefault("concurrency", 2)
    orchestrator = ImportOrchestrator(client, MigrationConfig(**config), progress_sink)
    return orchestrator, orchestrator.import_data(data)


def variant_calls(client, codename, language):
    return [c for c in client.calls if c[1:3] == (codename, language)]


def test_import_creates_everything_in_stage_order(fake_client, progress_sink):
    _, result = run_import(fake_client, migration_data(), progress_sink)

    assert result.status == MigrationStatus.COMPLETED
    assets, items, variants = result.stages
    assert (assets.entity, assets.created) == ("assets", 1)
    assert (items.entity, items.created, items.skipped) == ("content_items", 2, 1)
    assert (variants.entity, variants.created, variants.skipped) == ("language_variants", 3, 1)
    assert result.total_created == 6
    assert result.total_failed == 0

    operations = [c[0] for c in fake_client.calls]
    last_creation = max(i for i, op in enumerate(operations) if op in ("add_asset", "add_item"))
    first_variant = operations.index("upsert_variant")
    assert last_creation < first_variant
    assert max(i for i, op in enumerate(operations) if op == "add_asset") < operations.index("add_item")


def test_components_are_never_imported_on_their_own(fake_client, progress_sink):
    run_import(fake_client, migration_data(), progress_sink)

    assert "inline_box" not in fake_client.items
    assert all(key[0] != "inline_box" for key in fake_client.variants)


def test_variant_references_are_rewritten_to_target_ids(fake_client, progress_sink):
    run_import(fake_client, migration_data(), progress_sink)

    elements = {e["element"]["codename"]: e for e in fake_client.variants[("home", "en")]["elements"]}
    assert elements["body"]["value"].startswith('<a data-item-id="target-about">')
    assert elements["body"]["components"][0]["elements"] == [
        {"element": {"codename": "message"}, "value": "Hi"}
    ]
    assert elements["image"]["value"] == [{"id": "target-logo"}]
    assert elements["related"]["value"] == [{"id": "target-about"}]


def test_variant_walks_workflow_to_its_step(fake_client, progress_sink):
    run_import(fake_client, migration_data(), progress_sink)

    assert variant_calls(fake_client, "home", "en") == [
        ("get_variant", "home", "en"),
        ("upsert_variant", "home", "en"),
        ("change_workflow", "home", "en", "review"),
        ("publish_variant", "home", "en", None),
    ]
    assert fake_client.variants[("home", "en")]["workflow"]["step_identifier"] == {"codename": "draft"}
    assert variant_calls(fake_client, "home", "de") == [
        ("get_variant", "home", "de"),
        ("upsert_variant", "home", "de"),
    ]


def test_published_variant_gets_new_version(fake_client, progress_sink):
    fake_client.add_existing_item("home")
    fake_client.variants[("home", "en")] = {
        "item": {"id": "target-home"},
        "workflow": {"step_identifier": {"id": "s-published"}},
    }
    data = MigrationData(items=[make_item("home", elements=[TextElement("title", "Home")])])

    _, result = run_import(fake_client, data, progress_sink)

    assert result.get_stage("content_items").skipped == 1
    assert result.get_stage("language_variants").updated == 1
    assert [c[0] for c in variant_calls(fake_client, "home", "en")] == [
        "get_variant",
        "create_new_version",
        "upsert_variant",
        "change_workflow",
        "publish_variant",
    ]


def test_archived_variant_is_restored_and_archived_again(fake_client, progress_sink):
    fake_client.add_existing_item("home")
    fake_client.variants[("home", "en")] = {
        "item": {"id": "target-home"},
        "workflow": {"step_identifier": {"id": "s-archived"}},
    }
    data = MigrationData(items=[make_item("home", step="archived")])

    run_import(fake_client, data, progress_sink)

    assert variant_calls(fake_client, "home", "en")[1:] == [
        ("change_workflow", "home", "en", "draft"),
        ("upsert_variant", "home", "en"),
        ("change_workflow", "home", "en", "review"),
        ("change_workflow", "home", "en", "archived"),
    ]


def test_scheduled_variant_is_scheduled_for_publishing(fake_client, progress_sink):
    schedule = ItemSchedule(publish_time="2030-01-01T10:00:00Z", publish_display_timezone="UTC")
    data = MigrationData(items=[make_item("home", step="scheduled", schedule=schedule)])

    run_import(fake_client, data, progress_sink)

    assert variant_calls(fake_client, "home", "en")[1:] == [
        ("upsert_variant", "home", "en"),
        ("change_workflow", "home", "en", "review"),
        ("publish_variant", "home", "en", "2030-01-01T10:00:00Z"),
    ]


def test_pending_schedules_of_existing_variant_are_cancelled(fake_client, progress_sink):
    fake_client.add_existing_item("home")
    fake_client.add_existing_item("about")
    fake_client.variants[("home", "en")] = {
        "item": {"id": "target-home"},
        "workflow": {"step_identifier": {"id": "s-scheduled"}},
    }
    fake_client.variants[("about", "en")] = {
        "item": {"id": "target-about"},
        "workflow": {"step_identifier": {"id": "s-published"}},
        "schedule": {"unpublish_time": "2030-01-01T10:00:00Z"},
    }
    data = MigrationData(items=[make_item("home", step="draft"), make_item("about", step="draft")])

    run_import(fake_client, data, progress_sink)

    assert [c[0] for c in variant_calls(fake_client, "home", "en")] == [
        "get_variant",
        "cancel_scheduled_publish",
        "upsert_variant",
    ]
    assert [c[0] for c in variant_calls(fake_client, "about", "en")] == [
        "get_variant",
        "cancel_scheduled_unpublish",
        "create_new_version",
        "upsert_variant",
    ]


def test_unreachable_step_fails_only_that_variant(fake_client, progress_sink):
    review = fake_client.contracts["workflows"][0]["steps"][1]
    review["transitions_to"] = [t for t in review["transitions_to"] if t["step"]["id"] != "s-archived"]
    data = MigrationData(items=[make_item("home", step="archived"), make_item("about")])

    _, result = run_import(fake_client, data, progress_sink)

    variants = result.get_stage("language_variants")
    assert result.status == MigrationStatus.COMPLETED_WITH_ERRORS
    assert (variants.created, variants.failed) == (1, 1)
    assert variants.errors[0]["error_type"] == "NoPathError"
    assert variants.errors[0]["codename"] == "home"
    # the path is resolved before anything is written
    assert ("upsert_variant", "home", "en") not in fake_client.calls


def test_context_failure_is_fatal(fake_client, progress_sink):
    fake_client.failures[("get_item", "about")] = TransportError("connection reset")

    _, result = run_import(fake_client, migration_data(), progress_sink)

    assert result.status == MigrationStatus.FAILED
    assert result.errors[0]["error_type"] == "TransportError"
    assert fake_client.calls_of("add_asset") == []
    assert fake_client.calls_of("add_item") == []


def test_failed_items_are_skipped_by_default(fake_client, progress_sink):
    data = migration_data()
    data.assets.append(make_asset("broken", binary_data=None))

    _, result = run_import(fake_client, data, progress_sink)

    assert result.status == MigrationStatus.COMPLETED_WITH_ERRORS
    assert result.get_stage("assets").failed == 1
    assert result.get_stage("assets").errors[0]["codename"] == "broken"
    assert result.get_stage("language_variants").created == 3


def test_failed_items_abort_when_not_skipped(fake_client, progress_sink):
    data = migration_data()
    data.assets.append(make_asset("broken", binary_data=None))

    _, result = run_import(fake_client, data, progress_sink, skip_failed_items=False)

    assert result.status == MigrationStatus.FAILED
    assert result.get_stage("assets").created == 1
    assert fake_client.calls_of("add_item") == []


def test_conflicting_mapping_aborts(fake_client, progress_sink):
    fake_client.add_existing_item("about")
    table = TranslationTable()
    table.record(EntityKind.ITEM, "about", "some-other-id", "about")
    orchestrator = ImportOrchestrator(fake_client, MigrationConfig(), progress_sink, table=table)

    result = orchestrator.import_data(MigrationData(items=[make_item("about")]))

    assert result.status == MigrationStatus.FAILED
    assert fake_client.calls_of("upsert_variant") == []


def test_existing_referenced_entities_are_resolved(fake_client, progress_sink):
    fake_client.add_existing_item("contact")
    fake_client.add_existing_asset("banner")
    item = make_item("home", elements=[
        ReferenceListElement("related", ElementType.MODULAR_CONTENT, [Reference("contact")]),
        ReferenceListElement("image", ElementType.ASSET, [Reference("banner"), Reference("unknown")]),
    ])

    orchestrator, _ = run_import(fake_client, MigrationData(items=[item]), progress_sink)

    assert orchestrator.table.resolve(EntityKind.ITEM, "contact") == "target-contact"
    elements = {e["element"]["codename"]: e for e in fake_client.variants[("home", "en")]["elements"]}
    assert elements["image"]["value"] == [{"id": "target-banner"}, {"external_id": "asset_unknown"}]


def test_report_is_saved(fake_client, progress_sink, tmp_path):
    _, result = run_import(fake_client, migration_data(), progress_sink, output_dir=str(tmp_path))

    reports = list((tmp_path / "reports").glob("import_report_*.json"))
    assert len(reports) == 1
    report = json.loads(reports[0].read_text())
    assert report["status"] == "completed"
    assert report["id"] == result.id
    assert [s["entity"] for s in report["stages"]] == ["assets", "content_items", "language_variants"]


@pytest.mark.parametrize("concurrency", [1, 4])
def test_progress_is_reported_per_stage(fake_client, progress_sink, concurrency):
    run_import(fake_client, migration_data(), progress_sink, concurrency=concurrency)

    final = [e for e in progress_sink.counted("language_variants") if e.count.processed == e.count.total]
    assert len(final) == 1
    assert final[0].count.total == 3
