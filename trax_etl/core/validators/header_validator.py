"""
HeaderContractValidator - ensures a file carries every expected header.
"""

from collections.abc import Iterable, Sequence

from trax_etl.core.errors import HeaderContractError
from trax_etl.core.normalization import normalize_header


class HeaderContractValidator:
    """
    Validates a file's normalized header row against a platform contract.

    A missing header is a whole-file failure: it means the export format is
    structurally wrong or stale, so no row of it is trusted.
    """

    def __init__(self, expected_headers: Iterable[str]):
        """
        Initialize validator.

        Args:
            expected_headers: Expected header names; normalized on the way in
                so configuration may list them in either raw or canonical form
        """
        self.expected_headers = [normalize_header(h) for h in expected_headers]

    def missing(self, headers: Sequence[str]) -> list[str]:
        present = set(headers)
        return [h for h in self.expected_headers if h not in present]

    def validate(self, headers: Sequence[str]) -> None:
        """
        Validate a normalized header row.

        Args:
            headers: Normalized header keys read from the file

        Raises:
            HeaderContractError: Listing every expected header that is absent
        """
        missing = self.missing(headers)
        if missing:
            raise HeaderContractError(missing)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(expected={len(self.expected_headers)})"
