"""Command line interface for exporting, importing and migrating content."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .clients.management_client import ManagementClient
from .exceptions import MigrationToolkitError
from .extractors.environment_extractor import EnvironmentExtractor
from .formats.archive import ArchiveAdapter
from .models.migration import EnvironmentConfig, ImportResult, MigrationConfig, MigrationStatus
from .orchestrator import ImportOrchestrator
from .services.progress import LoggingProgressSink
from .services.retry import RetryPolicy

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose, args.log_file)

    if not args.command:
        parser.print_help()
        return 2

    try:
        config = load_config(args.config)
        if args.archive:
            config.archive_path = args.archive
        if args.concurrency:
            config.concurrency = args.concurrency
        if args.stop_on_failure:
            config.skip_failed_items = False

        if args.command == "export":
            return run_export(config)
        if args.command == "import":
            return run_import(config)
        return run_migrate(config)

    except MigrationToolkitError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Migration Toolkit - Move content items and assets between environments"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--log-file", help="Also write log output to this file")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    export_parser = subparsers.add_parser("export", help="Export content from the source environment to an archive")
    import_parser = subparsers.add_parser("import", help="Import an archive into the target environment")
    migrate_parser = subparsers.add_parser("migrate", help="Export from source and import into target directly")

    for sub in (export_parser, import_parser, migrate_parser):
        sub.add_argument("--config", required=True, help="Path to migration config file")
        sub.add_argument("--concurrency", type=int, help="Maximum number of parallel requests")
        sub.add_argument(
            "--stop-on-failure",
            action="store_true",
            help="Stop after a stage in which any item failed",
        )
    for sub in (export_parser, import_parser):
        sub.add_argument("--archive", help="Path of the migration archive (overrides config)")
    migrate_parser.set_defaults(archive=None)

    return parser


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Configure root logging for the CLI."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
    )


def load_config(path: str) -> MigrationConfig:
    """Load the migration config from a JSON file."""
    try:
        with open(path) as f:
            config_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise MigrationToolkitError(f"Could not load config {path}: {e}") from e
    return MigrationConfig.from_dict(config_data)


def create_client(environment: Optional[EnvironmentConfig], role: str, config: MigrationConfig) -> ManagementClient:
    if environment is None or not environment.environment_id:
        raise MigrationToolkitError(f"Config does not define the {role} environment")
    if not environment.api_key:
        raise MigrationToolkitError(f"No API key configured for the {role} environment")
    return ManagementClient(
        environment,
        retry_policy=RetryPolicy.from_config(config.retry),
        pool_size=max(config.concurrency, 10),
    )


def run_export(config: MigrationConfig) -> int:
    """Export content into an archive."""
    if not config.archive_path:
        raise MigrationToolkitError("No archive path given, use --archive or set archive_path in config")

    client = create_client(config.source, "source", config)
    extraction = EnvironmentExtractor(client, config, LoggingProgressSink()).extract()
    ArchiveAdapter().write(extraction.data, config.archive_path)

    print("\n" + "=" * 60)
    print("EXPORT COMPLETE")
    print("=" * 60)
    print(f"Archive: {config.archive_path}")
    print(f"Language Variants: {extraction.total_items}")
    print(f"Assets: {extraction.total_assets}")
    print(f"Errors: {len(extraction.errors)}")
    print(f"Warnings: {len(extraction.warnings)}")
    if extraction.duration_seconds:
        print(f"Duration: {extraction.duration_seconds:.2f} seconds")

    return 0 if extraction.success else 1


def run_import(config: MigrationConfig) -> int:
    """Import content from an archive."""
    if not config.archive_path:
        raise MigrationToolkitError("No archive path given, use --archive or set archive_path in config")

    data = ArchiveAdapter().read(config.archive_path)
    client = create_client(config.target, "target", config)
    result = ImportOrchestrator(client, config, LoggingProgressSink()).import_data(data)
    print_import_summary(result)
    return exit_code(result)


def run_migrate(config: MigrationConfig) -> int:
    """Export from the source environment and import into the target environment."""
    source_client = create_client(config.source, "source", config)
    target_client = create_client(config.target, "target", config)
    progress_sink = LoggingProgressSink()

    extraction = EnvironmentExtractor(source_client, config, progress_sink).extract()
    if not extraction.success:
        logger.warning(f"Export finished with {len(extraction.errors)} errors, importing what was exported")

    result = ImportOrchestrator(target_client, config, progress_sink).import_data(extraction.data)
    print_import_summary(result)
    return exit_code(result)


def print_import_summary(result: ImportResult) -> None:
    print("\n" + "=" * 60)
    print("IMPORT COMPLETE")
    print("=" * 60)
    print(f"Status: {result.status.value}")
    for stage in result.stages:
        print(
            f"  {stage.entity}: created {stage.created}, updated {stage.updated}, "
            f"skipped {stage.skipped}, failed {stage.failed}"
        )
    print(f"Created: {result.total_created}")
    print(f"Updated: {result.total_updated}")
    print(f"Skipped: {result.total_skipped}")
    print(f"Failed: {result.total_failed}")
    for error in result.errors:
        print(f"Error: {error['error']}")
    if result.duration_seconds:
        print(f"Duration: {result.duration_seconds:.2f} seconds")


def exit_code(result: ImportResult) -> int:
    if result.status == MigrationStatus.FAILED:
        return 1
    if result.status == MigrationStatus.COMPLETED_WITH_ERRORS:
        return 3
    return 0


if __name__ == "__main__":
    sys.exit(main())
