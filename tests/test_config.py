import json

import pytest

from migration_toolkit import cli
from migration_toolkit.exceptions import MigrationToolkitError
from migration_toolkit.models.migration import (
    DEFAULT_BASE_URL,
    ImportResult,
    MigrationConfig,
    MigrationStatus,
)


def test_config_defaults():
    config = MigrationConfig.from_dict({})

    assert config.concurrency == 3
    assert config.skip_failed_items is True
    assert config.retry.max_attempts == 3
    assert config.source is None


def test_api_keys_come_from_environment(monkeypatch):
    monkeypatch.setenv("MIGRATION_SOURCE_API_KEY", "source-key")
    monkeypatch.setenv("MIGRATION_TARGET_API_KEY", "target-key")

    config = MigrationConfig.from_dict({
        "source": {"environment_id": "src"},
        "target": {"environment_id": "dst", "api_key": "explicit"},
    })

    assert config.source.api_key == "source-key"
    assert config.source.base_url == DEFAULT_BASE_URL
    assert config.target.api_key == "explicit"


def test_config_round_trip_omits_api_keys():
    data = {
        "name": "staging-to-prod",
        "source": {"environment_id": "src", "api_key": "a"},
        "target": {"environment_id": "dst", "api_key": "b"},
        "languages": ["en"],
        "content_types": ["article"],
        "item_codenames": ["home"],
        "concurrency": 5,
        "skip_failed_items": False,
        "retry": {"max_attempts": 4, "delta_backoff": 0.5, "add_jitter": False},
        "output_dir": "out",
        "archive_path": "out/data.zip",
        "save_report": False,
    }

    dumped = MigrationConfig.from_dict(data).to_dict()

    assert "api_key" not in json.dumps(dumped)
    assert dumped["retry"] == data["retry"]
    assert dumped["concurrency"] == 5
    assert dumped["skip_failed_items"] is False


def test_load_config_errors(tmp_path):
    broken = tmp_path / "config.json"
    broken.write_text("{not json")

    with pytest.raises(MigrationToolkitError):
        cli.load_config(str(broken))
    with pytest.raises(MigrationToolkitError):
        cli.load_config(str(tmp_path / "missing.json"))


def test_cli_requires_environment_credentials(tmp_path, monkeypatch):
    monkeypatch.delenv("MIGRATION_SOURCE_API_KEY", raising=False)
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"source": {"environment_id": "src"}}))

    exit_code = cli.main(["export", "--config", str(config_path), "--archive", str(tmp_path / "out.zip")])

    assert exit_code == 1


def test_cli_without_command_prints_help(capsys):
    assert cli.main([]) == 2
    assert "export" in capsys.readouterr().out


def test_exit_codes():
    assert cli.exit_code(ImportResult(status=MigrationStatus.COMPLETED)) == 0
    assert cli.exit_code(ImportResult(status=MigrationStatus.COMPLETED_WITH_ERRORS)) == 3
    assert cli.exit_code(ImportResult(status=MigrationStatus.FAILED)) == 1
