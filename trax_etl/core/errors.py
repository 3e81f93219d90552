"""
Error taxonomy for the trax pipeline.

File-level errors (classification, header contract) abort a single file.
Row-level errors (decode, persistence) are recorded and the file continues.
A key conflict on write is not an error: writers report it as a no-op.
"""

from typing import Any


class TraxEtlError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(TraxEtlError, ValueError):
    """Raised when pipeline configuration is missing or invalid."""


class ClassificationError(TraxEtlError):
    """Raised when a file's platform or record kind cannot be determined."""

    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        self.message = message
        super().__init__(f"{file_path}: {message}")


class HeaderContractError(TraxEtlError):
    """Raised when a file does not carry every expected header."""

    def __init__(self, missing_headers: list[str], message: str | None = None):
        self.missing_headers = missing_headers
        super().__init__(message or f"Missing headers in file: {', '.join(missing_headers)}")


class HeaderCollisionError(HeaderContractError):
    """Raised when two raw headers normalize to the same key."""

    def __init__(self, collisions: dict[str, list[str]]):
        self.collisions = collisions
        details = "; ".join(
            f"{key} <- {', '.join(repr(raw) for raw in raws)}"
            for key, raws in collisions.items()
        )
        super().__init__([], f"Header collision after normalization: {details}")


class RowDecodeError(TraxEtlError):
    """Raised when a single row cannot be decoded into a platform record."""

    def __init__(self, field_name: str, value: Any, message: str):
        self.field_name = field_name
        self.value = value
        self.message = message
        super().__init__(f"[{field_name}] {message}")


class PersistenceFailure(TraxEtlError):
    """Raised when a write fails for a reason other than a key conflict."""

    def __init__(self, table: str, key: str | None, message: str):
        self.table = table
        self.key = key
        self.message = message
        super().__init__(f"{table}[{key}]: {message}")
