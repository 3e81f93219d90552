"""
Unit tests for header and row validation rules.
"""

import pytest

from trax_etl.core.errors import HeaderContractError, RowDecodeError
from trax_etl.core.validators import (
    HeaderContractValidator,
    RequiredFieldValidator,
    is_repeated_header,
)


class TestHeaderContractValidator:
    """Tests for HeaderContractValidator"""

    def test_all_present(self):
        validator = HeaderContractValidator(["order_number", "status"])
        validator.validate(["order_number", "status", "extra"])  # Should not raise

    def test_missing_headers_are_listed(self):
        validator = HeaderContractValidator(["order_number", "status", "tax"])

        with pytest.raises(HeaderContractError) as exc_info:
            validator.validate(["order_number"])

        assert exc_info.value.missing_headers == ["status", "tax"]
        assert "status, tax" in str(exc_info.value)

    def test_expected_headers_are_normalized(self):
        validator = HeaderContractValidator(["Order #", "Net Total"])
        assert validator.expected_headers == ["order_number", "net_total"]
        validator.validate(["order_number", "net_total"])


class TestRequiredFieldValidator:
    """Tests for RequiredFieldValidator"""

    def test_returns_trimmed_value(self):
        validator = RequiredFieldValidator("order_number")
        assert validator.validate({"order_number": " 1001 "}) == "1001"

    def test_missing_field(self):
        validator = RequiredFieldValidator("order_number")

        with pytest.raises(RowDecodeError) as exc_info:
            validator.validate({"status": "Completed"})

        assert "missing" in str(exc_info.value).lower()
        assert exc_info.value.field_name == "order_number"

    def test_null_field(self):
        with pytest.raises(RowDecodeError, match="null"):
            RequiredFieldValidator("order_uuid").validate({"order_uuid": None})

    def test_blank_field(self):
        with pytest.raises(RowDecodeError, match="empty"):
            RequiredFieldValidator("transaction_id").validate({"transaction_id": "   "})


class TestRepeatedHeader:
    """Tests for is_repeated_header"""

    def test_literal_header_in_key_column(self):
        assert is_repeated_header({"order_number": "Order #"}, "order_number")
        assert is_repeated_header({"transaction_id": "Transaction ID"}, "transaction_id")
        assert is_repeated_header({"order_uuid": "order uuid"}, "order_uuid")

    def test_data_rows(self):
        assert not is_repeated_header({"order_number": "1001"}, "order_number")
        assert not is_repeated_header({"order_number": ""}, "order_number")
        assert not is_repeated_header({"order_number": None}, "order_number")
        assert not is_repeated_header({}, "order_number")
