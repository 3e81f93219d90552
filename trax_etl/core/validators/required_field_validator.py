"""
RequiredFieldValidator - ensures a row's natural key is present and not blank.
"""

from collections.abc import Mapping

from trax_etl.core.errors import RowDecodeError
from trax_etl.core.normalization import normalize_header


class RequiredFieldValidator:
    """
    Validates that a required field is present and not null/empty.

    Fails if:
    - Field is missing from the row
    - Field value is None
    - Field value is blank after trimming
    """

    def __init__(self, field_name: str):
        self.field_name = field_name

    def validate(self, row: Mapping[str, str | None]) -> str:
        """
        Validate the field and return its trimmed value.

        Args:
            row: Normalized raw row

        Returns:
            The trimmed, non-empty value

        Raises:
            RowDecodeError: If the field is missing, None, or blank
        """
        if self.field_name not in row:
            raise RowDecodeError(self.field_name, None, "Field is missing from row")

        value = row[self.field_name]
        if value is None:
            raise RowDecodeError(self.field_name, None, "Field value is null")

        if value.strip() == "":
            raise RowDecodeError(self.field_name, value, "Field value is empty string")

        return value.strip()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name})"


def is_repeated_header(row: Mapping[str, str | None], key_field: str) -> bool:
    """
    Detect a header row repeated mid-file as data.

    Some exports repeat the header row; such a row carries the header label
    itself in the natural key column ("Order #" under order_number).
    """
    value = row.get(key_field)
    if value is None or not value.strip():
        return False
    return normalize_header(value) == key_field
