"""
Validation rules for export files and rows.

The header contract is checked once per file; the natural key rule and the
repeated-header check run per row.
"""

from .header_validator import HeaderContractValidator
from .required_field_validator import RequiredFieldValidator, is_repeated_header

__all__ = [
    "HeaderContractValidator",
    "RequiredFieldValidator",
    "is_repeated_header",
]
