"""
Base model for typed, per-platform records decoded from a CSV row.
"""

from decimal import Decimal
from typing import ClassVar

from pydantic import BaseModel, Field, model_validator

from .platform import Platform


class PlatformRecord(BaseModel):
    """
    A typed record decoded from one export row (immutable).

    Subclasses declare their fields in isolated-table column order and set
    the class-level platform, table name and natural key.

    Attributes:
        source_file: Path of the export the row came from (provenance)
        raw_fields: The normalized raw row, kept verbatim for unified metadata
    """

    platform: ClassVar[Platform]
    table_name: ClassVar[str]
    natural_key_field: ClassVar[str]

    source_file: str = Field(..., min_length=1)
    raw_fields: dict[str, str | None] = Field(default_factory=dict, exclude=True)

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_money_is_finite(self):
        """Reject NaN and infinite decimals on any numeric field."""
        for name in type(self).model_fields:
            value = getattr(self, name)
            if isinstance(value, Decimal) and not value.is_finite():
                raise ValueError(f"{name} must be a finite decimal, got {value}")
        return self

    @model_validator(mode="after")
    def check_natural_key(self):
        """The natural key must be present and non-empty."""
        key = getattr(self, self.natural_key_field, None)
        if key is None or not str(key).strip():
            raise ValueError(f"{self.natural_key_field} must be a non-empty string")
        return self

    @property
    def natural_key(self) -> str:
        return getattr(self, self.natural_key_field)

    @classmethod
    def isolated_columns(cls) -> list[str]:
        """Columns persisted to the isolated table, provenance last."""
        columns = [
            name for name in cls.model_fields
            if name not in ("raw_fields", "source_file")
        ]
        return columns + ["source_file"]

    def isolated_values(self) -> list:
        return [getattr(self, name) for name in self.isolated_columns()]
