"""
Per-file processing outcome reported by the pipeline (ephemeral).
"""

from typing import Literal

from pydantic import BaseModel, Field

from .platform import Platform, RecordKind


class RowError(BaseModel):
    """
    A row that was rejected or failed to persist.

    Attributes:
        line_number: Physical line in the source file
        natural_key: Natural key of the row, when it could be read
        error_type: "decode_error" or "write_error"
        message: Human-readable description
    """

    line_number: int
    natural_key: str | None = None
    error_type: Literal["decode_error", "write_error"]
    message: str


class FileOutcome(BaseModel):
    """
    Terminal outcome of processing one file.

    Attributes:
        file_path: The processed file
        status: "success" when the stream ran to the end, "failed" on abort
        platform: Platform the file was classified as
        record_kind: Export kind the file was classified as
        row_count: Rows decoded and persisted without a persistence failure
        isolated_inserted: Rows newly inserted into the isolated table
        unified_inserted: Rows newly inserted into the unified table
        skipped_rows: Repeated header rows skipped silently
        row_errors: Per-row decode and persistence errors
        error: File-level error message when status is "failed"
        duration_seconds: Wall-clock processing time
    """

    file_path: str
    status: Literal["success", "failed"]
    platform: Platform | None = None
    record_kind: RecordKind | None = None
    row_count: int = 0
    isolated_inserted: int = 0
    unified_inserted: int = 0
    skipped_rows: int = 0
    row_errors: list[RowError] = Field(default_factory=list)
    error: str | None = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == "success"
