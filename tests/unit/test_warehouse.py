"""
Unit tests for warehouse operations (schema mapping, pool setup and writers).

Database-backed behavior lives in tests/integration/test_writers.py.
"""

import asyncio
from datetime import datetime
from decimal import Decimal

import psycopg
import pytest

from trax_etl.core.config import DatabaseSettings
from trax_etl.core.errors import ConfigurationError, PersistenceFailure
from trax_etl.core.models import SliceOrder, SquareTransaction, UnifiedRecord
from trax_etl.warehouse import AsyncDatabaseConnectionPool, IsolatedWriter, SchemaManager, UnifiedWriter
from trax_etl.warehouse.schema_mgmt import sql_type
from trax_etl.warehouse.upsert import UNIFIED_COLUMNS, dump_metadata


class FakePool:
    """Records commands and returns a fixed rowcount, or raises"""

    def __init__(self, rowcount: int = 1, error: Exception | None = None):
        self.rowcount = rowcount
        self.error = error
        self.commands = []

    async def execute_command(self, command, params=None) -> int:
        self.commands.append((command, params))
        if self.error is not None:
            raise self.error
        return self.rowcount


def slice_order() -> SliceOrder:
    return SliceOrder(order_number="1001", order_total=Decimal("10.80"), source_file="slice_trax.csv")


def unified_record() -> UnifiedRecord:
    return UnifiedRecord(
        platform="uber",
        external_order_id="u-1",
        order_timestamp=datetime(2025, 4, 1, 18, 5),
        metadata={"z": "1", "a": None},
        source_file="uber_trax.csv",
    )


@pytest.mark.unit
class TestSqlType:
    """Tests for column type mapping"""

    @pytest.mark.parametrize("annotation,expected", [
        (str, "TEXT"),
        (Decimal | None, "NUMERIC"),
        (datetime | None, "TIMESTAMP"),
        (bool | None, "BOOLEAN"),
        (int | None, "INTEGER"),
    ])
    def test_known_annotations(self, annotation, expected):
        assert sql_type(annotation) == expected

    def test_unknown_annotation_rejected(self):
        with pytest.raises(ValueError, match="No column type"):
            sql_type(list)

    def test_every_model_column_has_a_type(self):
        for model in (SliceOrder, SquareTransaction):
            for name in model.isolated_columns():
                sql_type(model.model_fields[name].annotation)

    def test_table_names(self):
        assert SchemaManager(FakePool()).table_names == [
            "slice_trax", "square_trax", "uber_trax", "unified_trax",
        ]


@pytest.mark.unit
class TestConnectionPoolSetup:
    """Tests for pool construction; no connections are opened"""

    def test_password_required(self):
        with pytest.raises(ConfigurationError, match="password"):
            AsyncDatabaseConnectionPool(password=None)

    def test_conninfo_used_as_is(self):
        pool = AsyncDatabaseConnectionPool(conninfo="postgresql://u:p@db/trax")

        assert pool.conninfo == "postgresql://u:p@db/trax"
        assert pool.is_open is False

    def test_from_settings(self):
        settings = DatabaseSettings(host="db", port=6543, name="pos", user="etl", password="secret")

        pool = AsyncDatabaseConnectionPool.from_settings(settings)

        assert "host=db" in pool.conninfo
        assert "port=6543" in pool.conninfo
        assert "dbname=pos" in pool.conninfo
        assert "password=secret" in pool.conninfo

    def test_settings_hide_password(self):
        settings = DatabaseSettings(password="secret")

        assert "secret" not in repr(settings)


@pytest.mark.unit
class TestWriters:
    """Tests for writer result and error mapping"""

    def test_isolated_insert_and_conflict(self):
        assert asyncio.run(IsolatedWriter(FakePool(rowcount=1)).write(slice_order())) is True
        assert asyncio.run(IsolatedWriter(FakePool(rowcount=0)).write(slice_order())) is False

    def test_isolated_params_follow_columns(self):
        pool = FakePool()

        asyncio.run(IsolatedWriter(pool).write(slice_order()))

        _, params = pool.commands[0]
        assert len(params) == len(SliceOrder.isolated_columns())
        assert params[0] == "1001"
        assert params[-1] == "slice_trax.csv"

    def test_isolated_failure_wrapped(self):
        pool = FakePool(error=psycopg.OperationalError("connection lost"))

        with pytest.raises(PersistenceFailure) as exc_info:
            asyncio.run(IsolatedWriter(pool).write(slice_order()))

        assert exc_info.value.table == "slice_trax"
        assert exc_info.value.key == "1001"

    def test_unified_params(self):
        pool = FakePool()

        assert asyncio.run(UnifiedWriter(pool).write(unified_record())) is True

        _, params = pool.commands[0]
        assert len(params) == len(UNIFIED_COLUMNS)
        assert params[0] == "uber"
        assert params[1] == "u-1"

    def test_unified_failure_wrapped(self):
        pool = FakePool(error=psycopg.errors.UndefinedTable("no table"))

        with pytest.raises(PersistenceFailure) as exc_info:
            asyncio.run(UnifiedWriter(pool).write(unified_record()))

        assert exc_info.value.table == "unified_trax"

    def test_metadata_dumped_with_sorted_keys(self):
        assert dump_metadata({"z": "1", "a": None}) == '{"a": null, "z": "1"}'
