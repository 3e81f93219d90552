"""
Directory scanning and file deprovisioning.

Exports land in one subdirectory per platform under the raw CSV directory
(raw_csv/slice/..., raw_csv/square/...). After processing, each file is
moved to the archive directory on success or the failed directory
otherwise, unless the run is a dry run.
"""

import re
import shutil
from collections.abc import Iterable
from pathlib import Path

from trax_etl.core.config import PipelineConfig
from trax_etl.core.models import FileOutcome
from trax_etl.observability.logger import get_logger

logger = get_logger(__name__)


def scan_folder(root: str | Path, pattern: str | re.Pattern) -> list[Path]:
    """
    Find files in the immediate subdirectories of root matching pattern.

    Files directly under root and anything nested deeper are ignored.

    Args:
        root: Raw CSV directory
        pattern: Regex searched in each file name

    Returns:
        Matching paths, sorted

    Raises:
        FileNotFoundError: If root does not exist
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Raw CSV directory not found: {root}")

    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    matches = [
        path
        for subdir in root.iterdir() if subdir.is_dir()
        for path in subdir.iterdir()
        if path.is_file() and regex.search(path.name)
    ]
    return sorted(matches)


def move_file(path: str | Path, destination_dir: str | Path) -> Path:
    """
    Move a file into destination_dir, creating the directory if needed.

    Returns:
        The file's new path
    """
    destination_dir = Path(destination_dir)
    destination_dir.mkdir(parents=True, exist_ok=True)
    target = destination_dir / Path(path).name
    shutil.move(str(path), str(target))
    return target


def deprovision(outcomes: Iterable[FileOutcome], config: PipelineConfig) -> list[Path]:
    """
    Archive successful files and quarantine failed ones.

    Nothing is moved on a dry run. A failed move is logged and does not
    affect the other files.

    Args:
        outcomes: Terminal outcomes from the pipeline
        config: Pipeline configuration (archive_path, failed_path, dry_run)

    Returns:
        New paths of the files that were moved
    """
    if config.dry_run:
        logger.info("Dry run: leaving processed files in place")
        return []

    moved = []
    for outcome in outcomes:
        destination = config.archive_path if outcome.succeeded else config.failed_path
        try:
            target = move_file(outcome.file_path, destination)
        except OSError as e:
            logger.error(
                f"Failed to move file {outcome.file_path}: {e}",
                extra={"file_path": outcome.file_path, "destination": str(destination)},
            )
            continue
        logger.debug(
            f"Moved file {outcome.file_path} to {destination}",
            extra={"file_path": outcome.file_path, "status": outcome.status},
        )
        moved.append(target)
    return moved
