"""
Integration tests for the PostgreSQL schema and writers.

Uses a PostgreSQL testcontainer; each test starts from empty tables.
"""

import asyncio
from datetime import datetime
from decimal import Decimal

import pytest

from trax_etl.core.errors import PersistenceFailure
from trax_etl.core.models import SliceOrder, SquareTransaction, UberOrder, UnifiedRecord
from trax_etl.warehouse import IsolatedWriter, SchemaManager, UnifiedWriter


def slice_order(**overrides) -> SliceOrder:
    values = {
        "order_number": "1001",
        "order_date": datetime(2025, 3, 1, 1, 47),
        "customer": "Jane",
        "order_total": Decimal("10.80"),
        "source_file": "raw_csv/slice/slice_trax.csv",
    }
    values.update(overrides)
    return SliceOrder(**values)


def unified(**overrides) -> UnifiedRecord:
    values = {
        "platform": "square",
        "external_order_id": "T1",
        "order_timestamp": datetime(2025, 4, 9, 14, 30),
        "order_total": Decimal("25.50"),
        "tip": Decimal("3.00"),
        "tax": Decimal("2.00"),
        "metadata": {"payment_id": "P1", "card_brand": None},
        "source_file": "raw_csv/square/square_trax.csv",
    }
    values.update(overrides)
    return UnifiedRecord(**values)


@pytest.mark.integration
class TestSchemaManager:
    """Tests for table creation"""

    def test_create_tables_is_repeatable(self, with_pool):
        async def scenario(pool):
            manager = SchemaManager(pool)
            await manager.create_tables()
            await manager.create_tables()
            return await manager.row_counts()

        counts = with_pool(scenario)

        assert counts == {"slice_trax": 0, "square_trax": 0, "uber_trax": 0, "unified_trax": 0}

    def test_isolated_columns_match_models(self, with_pool):
        async def scenario(pool):
            rows = await pool.execute_query(
                "SELECT table_name, column_name FROM information_schema.columns "
                "WHERE table_name IN ('slice_trax', 'square_trax', 'uber_trax')"
            )
            columns = {}
            for row in rows:
                columns.setdefault(row["table_name"], set()).add(row["column_name"])
            return columns

        columns = with_pool(scenario)

        for model in (SliceOrder, SquareTransaction, UberOrder):
            assert set(model.isolated_columns()) | {"id", "loaded_at"} == columns[model.table_name]


@pytest.mark.integration
class TestIsolatedWriter:
    """Tests for IsolatedWriter"""

    def test_second_write_is_a_no_op(self, with_pool):
        async def scenario(pool):
            writer = IsolatedWriter(pool)
            first = await writer.write(slice_order())
            second = await writer.write(slice_order(order_total=Decimal("99.00")))
            rows = await pool.execute_query("SELECT order_number, order_total, source_file FROM slice_trax")
            return first, second, rows

        first, second, rows = with_pool(scenario)

        assert first is True
        assert second is False
        assert rows == [{
            "order_number": "1001",
            "order_total": Decimal("10.80"),
            "source_file": "raw_csv/slice/slice_trax.csv",
        }]

    def test_every_platform_table(self, with_pool):
        async def scenario(pool):
            writer = IsolatedWriter(pool)
            await writer.write(slice_order())
            await writer.write(SquareTransaction(
                transaction_id="T1",
                transaction_date="2025-04-09",
                transaction_time="14:30",
                transaction_at=datetime(2025, 4, 9, 14, 30),
                free_processing_applied=True,
                source_file="square_trax.csv",
            ))
            await writer.write(UberOrder(
                order_uuid="u-1",
                scheduled=True,
                menu_item_count=3,
                courier_wait_time_restaurant=Decimal("4.5"),
                source_file="uber_trax.csv",
            ))
            return await SchemaManager(pool).row_counts()

        counts = with_pool(scenario)

        assert counts["slice_trax"] == 1
        assert counts["square_trax"] == 1
        assert counts["uber_trax"] == 1

    def test_concurrent_duplicates_insert_once(self, with_pool):
        async def scenario(pool):
            writer = IsolatedWriter(pool)
            results = await asyncio.gather(*(writer.write(slice_order()) for _ in range(8)))
            count = await pool.execute_query("SELECT COUNT(*) AS n FROM slice_trax")
            return results, count[0]["n"]

        results, count = with_pool(scenario)

        assert results.count(True) == 1
        assert count == 1


@pytest.mark.integration
class TestUnifiedWriter:
    """Tests for UnifiedWriter"""

    def test_identity_conflict_is_a_no_op(self, with_pool):
        async def scenario(pool):
            writer = UnifiedWriter(pool)
            first = await writer.write(unified())
            second = await writer.write(unified(order_total=Decimal("1.00")))
            rows = await pool.execute_query("SELECT * FROM unified_trax")
            return first, second, rows

        first, second, rows = with_pool(scenario)

        assert (first, second) == (True, False)
        assert len(rows) == 1
        row = rows[0]
        assert row["platform"] == "square"
        assert row["external_order_id"] == "T1"
        assert row["order_total"] == Decimal("25.50")
        assert row["metadata"] == {"card_brand": None, "payment_id": "P1"}

    def test_same_id_on_different_platforms(self, with_pool):
        async def scenario(pool):
            writer = UnifiedWriter(pool)
            return [
                await writer.write(unified(platform="square", external_order_id="1001")),
                await writer.write(unified(platform="slice", external_order_id="1001")),
            ]

        assert with_pool(scenario) == [True, True]

    def test_storage_failure_is_wrapped(self, with_pool):
        async def scenario(pool):
            await pool.execute_command("DROP TABLE unified_trax")
            try:
                await UnifiedWriter(pool).write(unified())
            finally:
                await SchemaManager(pool).create_tables()

        with pytest.raises(PersistenceFailure) as exc_info:
            with_pool(scenario)

        assert exc_info.value.table == "unified_trax"
        assert exc_info.value.key == "T1"
