"""
Command-line interface for trax batch processing.

Usage:
    trax-etl run --config config/pipeline.yaml [--dry-run] [--metrics-port 8000]
    trax-etl import --config config/pipeline.yaml --file exports/square_trax.csv --platform square
    trax-etl init-db --config config/pipeline.yaml
    trax-etl check-db --config config/pipeline.yaml
"""

import argparse
import asyncio
import sys
from collections.abc import Sequence

from psycopg import OperationalError

from trax_etl.batch import BatchPipeline, deprovision, scan_folder
from trax_etl.core.config import ConfigLoader, PipelineConfig
from trax_etl.core.errors import TraxEtlError
from trax_etl.core.models import FileOutcome, Platform, RecordKind
from trax_etl.observability.logger import configure_logging, get_logger, log_operation
from trax_etl.observability.metrics import start_metrics_server
from trax_etl.warehouse import AsyncDatabaseConnectionPool, IsolatedWriter, SchemaManager, UnifiedWriter

logger = get_logger(__name__)


def load_config(args) -> PipelineConfig:
    """
    Load configuration and apply command-line overrides.

    Args:
        args: Parsed command-line arguments

    Returns:
        PipelineConfig with logging configured from it
    """
    config = ConfigLoader(args.config).load()
    if getattr(args, "dry_run", False):
        config = config.model_copy(update={"dry_run": True})
    configure_logging(level=config.log_level, format_type=config.log_format)
    return config


def exit_code_for(outcomes: Sequence[FileOutcome], on_empty: str = "warn") -> int:
    """
    Process exit code for a run.

    Args:
        outcomes: Outcomes of every processed file
        on_empty: Policy when no files were found (ignore | warn | fail)

    Returns:
        0 if every file succeeded, 1 otherwise
    """
    if not outcomes:
        return 1 if on_empty == "fail" else 0
    return 0 if all(outcome.succeeded for outcome in outcomes) else 1


def log_summary(outcomes: Sequence[FileOutcome]) -> None:
    succeeded = [o for o in outcomes if o.succeeded]
    logger.info(
        f"Run complete: {len(succeeded)} of {len(outcomes)} files succeeded",
        extra={
            "files": len(outcomes),
            "succeeded": len(succeeded),
            "failed": len(outcomes) - len(succeeded),
            "rows": sum(o.row_count for o in outcomes),
            "row_errors": sum(len(o.row_errors) for o in outcomes),
        },
    )
    for outcome in outcomes:
        if not outcome.succeeded:
            logger.error(f"File failed: {outcome.file_path}: {outcome.error}")


async def run_pipeline(config: PipelineConfig) -> list[FileOutcome]:
    """
    Scan, process and deprovision every matching file.

    Returns:
        Outcomes in scan order; empty if no files were found
    """
    files = scan_folder(config.raw_csv_dir, config.file_regex)
    if not files:
        message = f"No files matching {config.file_regex!r} under {config.raw_csv_dir}"
        if config.on_empty == "fail":
            logger.error(message)
        elif config.on_empty == "warn":
            logger.warning(message)
        else:
            logger.info(message)
        return []

    async with AsyncDatabaseConnectionPool.from_settings(config.database) as pool:
        pipeline = BatchPipeline(config, IsolatedWriter(pool), UnifiedWriter(pool))
        with log_operation("Processing trax files", logger=logger, files=len(files)):
            outcomes = await pipeline.process_files(files)

    deprovision(outcomes, config)
    return outcomes


async def import_file(
    config: PipelineConfig,
    file_path: str,
    platform: Platform | None = None,
    kind: RecordKind | None = None,
) -> FileOutcome:
    """Process one file in place; the file is never moved."""
    async with AsyncDatabaseConnectionPool.from_settings(config.database) as pool:
        pipeline = BatchPipeline(config, IsolatedWriter(pool), UnifiedWriter(pool))
        return await pipeline.process_file(file_path, platform=platform, kind=kind)


async def init_db(config: PipelineConfig) -> list[str]:
    async with AsyncDatabaseConnectionPool.from_settings(config.database) as pool:
        manager = SchemaManager(pool)
        await manager.create_tables()
        return manager.table_names


async def check_db(config: PipelineConfig) -> bool:
    async with AsyncDatabaseConnectionPool.from_settings(config.database) as pool:
        result = await pool.execute_query("SELECT 1 AS ok")
        return bool(result) and result[0]["ok"] == 1


def run_command(args) -> int:
    config = load_config(args)
    if args.metrics_port:
        start_metrics_server(args.metrics_port)
        logger.info(f"Serving metrics on port {args.metrics_port}")

    outcomes = asyncio.run(run_pipeline(config))
    if outcomes:
        log_summary(outcomes)
    return exit_code_for(outcomes, config.on_empty)


def import_command(args) -> int:
    config = load_config(args)
    platform = Platform(args.platform) if args.platform else None
    kind = RecordKind(args.kind) if args.kind else None

    outcome = asyncio.run(import_file(config, args.file, platform, kind))
    log_summary([outcome])
    return exit_code_for([outcome])


def init_db_command(args) -> int:
    config = load_config(args)
    tables = asyncio.run(init_db(config))
    logger.info(f"Schema ready: {', '.join(tables)}")
    return 0


def check_db_command(args) -> int:
    config = load_config(args)
    try:
        ok = asyncio.run(check_db(config))
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        return 1
    if ok:
        logger.info("Database connection OK")
        return 0
    logger.error("Database check query returned an unexpected result")
    return 1


COMMANDS = {
    "run": run_command,
    "import": import_command,
    "init-db": init_db_command,
    "check-db": check_db_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trax-etl",
        description="POS transaction export ETL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Process every export under raw_csv_dir, then archive/quarantine them
  trax-etl run --config config/pipeline.yaml

  # Process without moving files afterwards
  trax-etl run --config config/pipeline.yaml --dry-run

  # Import one file whose directory does not name its platform
  trax-etl import --config config/pipeline.yaml --file exports/march.csv \\
      --platform slice --kind trax
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_command(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--config",
            default="config/pipeline.yaml",
            help="Path to pipeline YAML configuration (default: config/pipeline.yaml)"
        )
        return sub

    run_parser = add_command("run", "Process every export in the raw CSV directory")
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Process files but leave them in place"
    )
    run_parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Serve Prometheus metrics on this port"
    )

    import_parser = add_command("import", "Process a single export file in place")
    import_parser.add_argument(
        "--file",
        required=True,
        help="Path to the export file"
    )
    import_parser.add_argument(
        "--platform",
        choices=[p.value for p in Platform],
        help="Platform (default: inferred from the parent directory)"
    )
    import_parser.add_argument(
        "--kind",
        choices=[k.value for k in RecordKind],
        help="Record kind (default: inferred from the file name)"
    )

    add_command("init-db", "Create the trax tables")
    add_command("check-db", "Verify the database connection")

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        code = COMMANDS[args.command](args)
    except TraxEtlError as e:
        logger.error(f"{args.command} failed: {e}")
        code = 1
    except OperationalError as e:
        logger.error(f"Database unavailable: {e}")
        code = 1
    except OSError as e:
        logger.error(f"{args.command} failed: {e}")
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
