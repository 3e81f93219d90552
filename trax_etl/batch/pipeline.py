"""
Batch processing pipeline orchestration.

Coordinates the flow per file: classify -> check headers -> decode rows ->
{isolated write, unified map + write} -> outcome
"""

import asyncio
import csv
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from trax_etl.core.config import PipelineConfig
from trax_etl.core.errors import (
    ClassificationError,
    PersistenceFailure,
    RowDecodeError,
    TraxEtlError,
)
from trax_etl.core.models import (
    FileOutcome,
    Platform,
    PlatformRecord,
    RecordKind,
    RowError,
)
from trax_etl.core.platforms import PlatformComponents, get_components
from trax_etl.core.validators import HeaderContractValidator, is_repeated_header
from trax_etl.batch.readers import CSVReader
from trax_etl.observability import metrics
from trax_etl.observability.logger import get_logger

logger = get_logger(__name__)

# Errors that abort a single file; anything else is a bug and propagates
FILE_LEVEL_ERRORS = (TraxEtlError, OSError, csv.Error, UnicodeDecodeError)


class RecordWriter(Protocol):
    async def write(self, record) -> bool:
        ...


@dataclass
class RowResult:
    """Result of persisting one decoded row."""

    line_number: int
    natural_key: str
    isolated_inserted: bool = False
    unified_inserted: bool = False
    error: str | None = None

    @property
    def outcome(self) -> str:
        if self.error is not None:
            return "write_error"
        if self.isolated_inserted or self.unified_inserted:
            return "inserted"
        return "duplicate"


class BatchPipeline:
    """
    Orchestrates trax file processing.

    Flow per file:
    1. Classify platform (parent directory) and record kind (file name)
    2. Look up the platform's decoder and unified mapper
    3. Check the header contract; a missing header aborts the file
    4. Decode rows in file order; repeated header rows are skipped and
       undecodable rows recorded as row errors
    5. Persist each decoded row: the isolated write and the unified
       map + write run concurrently, and rows run concurrently up to
       max_concurrent_writes
    6. Report a FileOutcome

    Row-level failures never abort a file. Files are processed
    concurrently; the only shared state is the writers' storage.
    """

    def __init__(
        self,
        config: PipelineConfig,
        isolated_writer: RecordWriter,
        unified_writer: RecordWriter,
    ):
        """
        Initialize batch pipeline.

        Args:
            config: Pipeline configuration
            isolated_writer: Writer for platform records (upsert-or-ignore)
            unified_writer: Writer for unified records (upsert-or-ignore)
        """
        self.config = config
        self.isolated_writer = isolated_writer
        self.unified_writer = unified_writer

    def classify(
        self,
        file_path: str | Path,
        platform: Platform | None = None,
        kind: RecordKind | None = None,
    ) -> tuple[Platform, RecordKind]:
        """
        Determine a file's platform and record kind.

        Args:
            file_path: File to classify
            platform: Override for the platform implied by the parent directory
            kind: Override for the kind implied by the file name

        Returns:
            (platform, kind)

        Raises:
            ClassificationError: If either cannot be determined
        """
        path = Path(file_path)

        if platform is None:
            folder = path.parent.name.lower()
            try:
                platform = Platform(folder)
            except ValueError:
                raise ClassificationError(
                    str(path), f"Unknown platform directory '{folder}'"
                ) from None

        if kind is None:
            kind = self.config.file_type_regexes.classify(path.name)
            if kind is None:
                raise ClassificationError(
                    str(path), "File name matches neither the trax nor the itemz pattern"
                )

        return platform, kind

    async def process_files(self, file_paths: Iterable[str | Path]) -> list[FileOutcome]:
        """
        Process files concurrently.

        Returns:
            One outcome per file, in input order
        """
        return list(await asyncio.gather(*(self.process_file(p) for p in file_paths)))

    async def process_file(
        self,
        file_path: str | Path,
        platform: Platform | None = None,
        kind: RecordKind | None = None,
    ) -> FileOutcome:
        """
        Process one file to a terminal outcome.

        Args:
            file_path: CSV export to process
            platform: Optional platform override
            kind: Optional record kind override

        Returns:
            FileOutcome; status "failed" carries the file-level error
        """
        path = Path(file_path)
        source_file = str(path)
        start = time.perf_counter()

        row_errors: list[RowError] = []
        results: list[RowResult] = []
        skipped_rows = 0
        classified: tuple[Platform, RecordKind] | None = None

        try:
            platform, kind = self.classify(path, platform, kind)
            classified = (platform, kind)
            components = get_components(platform, kind, source_file)
            settings = self.config.platform_settings(platform)
            decoder = components.decoder
            header_validator = HeaderContractValidator(
                settings.expected_headers or decoder.expected_headers
            )

            logger.info(
                f"Processing file {source_file}",
                extra={"file_path": source_file, "platform": platform.value, "kind": kind.value},
            )

            semaphore = asyncio.Semaphore(self.config.max_concurrent_writes)
            tasks: list[asyncio.Task] = []
            try:
                with CSVReader(path) as reader:
                    header_validator.validate(reader.headers)

                    for line_number, row in reader.rows():
                        if is_repeated_header(row, decoder.natural_key_field):
                            skipped_rows += 1
                            metrics.record_row(platform.value, "skipped_header")
                            logger.debug(
                                f"Skipping repeated header row at line {line_number}",
                                extra={"file_path": source_file, "line_number": line_number},
                            )
                            continue

                        try:
                            record = decoder.decode(row, source_file)
                        except RowDecodeError as e:
                            row_errors.append(RowError(
                                line_number=line_number,
                                natural_key=(row.get(decoder.natural_key_field) or "").strip() or None,
                                error_type="decode_error",
                                message=str(e),
                            ))
                            metrics.record_row(platform.value, "decode_error")
                            logger.warning(
                                f"Rejected row at line {line_number}: {e}",
                                extra={"file_path": source_file, "line_number": line_number},
                            )
                            continue

                        await semaphore.acquire()
                        tasks.append(asyncio.create_task(
                            self._persist(record, components, settings.write_isolated, line_number, semaphore)
                        ))
            finally:
                # In-flight writes always finish before the file is reported,
                # and their results count even when the file aborts
                finished = await asyncio.gather(*tasks, return_exceptions=True)
                results.extend(r for r in finished if isinstance(r, RowResult))
                for result in finished:
                    if isinstance(result, BaseException):
                        raise result

        except FILE_LEVEL_ERRORS as e:
            self._record_results(results, row_errors, classified[0] if classified else None, source_file)
            outcome = self._outcome(
                source_file, "failed", classified, results, row_errors, skipped_rows, start, error=str(e)
            )
            logger.error(
                f"Failed processing file {source_file}: {e}",
                extra={"file_path": source_file, "error_type": type(e).__name__},
            )
            metrics.record_file_outcome(outcome)
            return outcome

        self._record_results(results, row_errors, platform, source_file)

        outcome = self._outcome(source_file, "success", classified, results, row_errors, skipped_rows, start)
        logger.info(
            f"Processed file {source_file}: {outcome.row_count} rows",
            extra={
                "file_path": source_file,
                "row_count": outcome.row_count,
                "isolated_inserted": outcome.isolated_inserted,
                "unified_inserted": outcome.unified_inserted,
                "skipped_rows": outcome.skipped_rows,
                "row_errors": len(outcome.row_errors),
                "duration_seconds": round(outcome.duration_seconds, 3),
            },
        )
        metrics.record_file_outcome(outcome)
        return outcome

    async def _persist(
        self,
        record: PlatformRecord,
        components: PlatformComponents,
        write_isolated: bool,
        line_number: int,
        semaphore: asyncio.Semaphore,
    ) -> RowResult:
        """Fan out one row's writes and join them."""
        try:
            unified = components.mapper.map(record)
            writes = [self.unified_writer.write(unified)]
            if write_isolated:
                writes.append(self.isolated_writer.write(record))
            written = await asyncio.gather(*writes, return_exceptions=True)
        finally:
            semaphore.release()

        result = RowResult(line_number=line_number, natural_key=record.natural_key)
        failures = []
        for value in written:
            if isinstance(value, PersistenceFailure):
                failures.append(str(value))
            elif isinstance(value, BaseException):
                raise value
        if failures:
            result.error = "; ".join(failures)

        result.unified_inserted = written[0] is True
        if write_isolated:
            result.isolated_inserted = written[1] is True
        return result

    @staticmethod
    def _record_results(
        results: list[RowResult],
        row_errors: list[RowError],
        platform: Platform | None,
        source_file: str,
    ) -> None:
        """Count persisted rows in metrics and turn write failures into row errors."""
        for result in results:
            if platform is not None:
                metrics.record_row(platform.value, result.outcome)
            if result.error is not None:
                row_errors.append(RowError(
                    line_number=result.line_number,
                    natural_key=result.natural_key,
                    error_type="write_error",
                    message=result.error,
                ))
                logger.warning(
                    f"Failed to persist row at line {result.line_number}: {result.error}",
                    extra={"file_path": source_file, "line_number": result.line_number},
                )
        row_errors.sort(key=lambda e: e.line_number)

    @staticmethod
    def _outcome(
        source_file: str,
        status: str,
        classified: tuple[Platform, RecordKind] | None,
        results: list[RowResult],
        row_errors: list[RowError],
        skipped_rows: int,
        start: float,
        error: str | None = None,
    ) -> FileOutcome:
        return FileOutcome(
            file_path=source_file,
            status=status,
            platform=classified[0] if classified else None,
            record_kind=classified[1] if classified else None,
            row_count=sum(1 for r in results if r.error is None),
            isolated_inserted=sum(1 for r in results if r.isolated_inserted),
            unified_inserted=sum(1 for r in results if r.unified_inserted),
            skipped_rows=skipped_rows,
            row_errors=row_errors,
            error=error,
            duration_seconds=time.perf_counter() - start,
        )
