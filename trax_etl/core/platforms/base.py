"""
Shared machinery for platform rules.

A platform is described by an ordered field table: which normalized header
feeds which record attribute through which coercer. RecordDecoder turns a
raw row into a typed record using that table; UnifiedMapper is the
interface every platform's unified mapping implements.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from trax_etl.core.errors import RowDecodeError
from trax_etl.core.models import PlatformRecord, UnifiedRecord
from trax_etl.core.normalization import maybe_null
from trax_etl.core.validators import RequiredFieldValidator

RawRow = Mapping[str, str | None]
Coercer = Callable[[str | None], Any]


@dataclass(frozen=True)
class FieldSpec:
    """
    One entry of a platform field table.

    Attributes:
        header: Normalized header key read from the row
        attribute: Record attribute the coerced value is assigned to
        coerce: Coercer applied to the raw cell
    """

    header: str
    attribute: str
    coerce: Coercer = maybe_null


def text(header: str, attribute: str | None = None) -> FieldSpec:
    return FieldSpec(header, attribute or header, maybe_null)


def typed(header: str, coerce: Coercer, attribute: str | None = None) -> FieldSpec:
    return FieldSpec(header, attribute or header, coerce)


class RecordDecoder:
    """
    Decodes raw rows into one platform's typed records.

    Decoding never returns a partial record: a blank natural key, a
    malformed non-empty cell, or a model validation failure all raise
    RowDecodeError for the row.
    """

    def __init__(
        self,
        record_cls: type[PlatformRecord],
        fields: Sequence[FieldSpec],
        derived: Callable[[RawRow], dict[str, Any]] | None = None,
    ):
        """
        Initialize decoder.

        Args:
            record_cls: PlatformRecord subclass to build
            fields: Ordered field table
            derived: Optional hook computing extra attributes from the whole
                row; it raises RowDecodeError itself
        """
        self.record_cls = record_cls
        self.fields = tuple(fields)
        self.derived = derived
        self.key_validator = RequiredFieldValidator(record_cls.natural_key_field)

    @property
    def natural_key_field(self) -> str:
        return self.record_cls.natural_key_field

    @property
    def expected_headers(self) -> list[str]:
        """Default header contract: the field table's header keys, in order."""
        return [spec.header for spec in self.fields]

    def decode(self, row: RawRow, source_file: str) -> PlatformRecord:
        """
        Decode one raw row.

        Args:
            row: Normalized raw row
            source_file: Provenance path stored on the record

        Returns:
            Immutable platform record

        Raises:
            RowDecodeError: If the row cannot be decoded
        """
        self.key_validator.validate(row)

        values: dict[str, Any] = {}
        for spec in self.fields:
            raw = row.get(spec.header)
            try:
                values[spec.attribute] = spec.coerce(raw)
            except ValueError as e:
                raise RowDecodeError(spec.header, raw, str(e)) from e

        if self.derived is not None:
            values.update(self.derived(row))

        try:
            return self.record_cls(
                **values,
                source_file=source_file,
                raw_fields=dict(row),
            )
        except ValidationError as e:
            first = e.errors()[0]
            field_name = ".".join(str(part) for part in first["loc"]) or "record"
            raise RowDecodeError(field_name, None, first["msg"]) from e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.record_cls.__name__}, fields={len(self.fields)})"


class UnifiedMapper(ABC):
    """
    Maps one platform's records to the unified shape.

    Mappers are pure: no I/O and no failure for a valid record. Every raw
    field whose header is not in consumed_headers is carried into metadata
    as the raw string, unchanged.
    """

    consumed_headers: frozenset[str] = frozenset()

    @abstractmethod
    def map(self, record: PlatformRecord) -> UnifiedRecord:
        """
        Map a platform record to a unified record.

        Args:
            record: Decoded platform record

        Returns:
            Unified record with identity (platform, external_order_id)
        """
        pass

    def metadata(self, record: PlatformRecord) -> dict[str, str | None]:
        return {
            key: value
            for key, value in record.raw_fields.items()
            if key not in self.consumed_headers
        }
