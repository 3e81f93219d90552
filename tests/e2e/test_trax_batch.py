"""
End-to-end tests: CSV exports through the pipeline into PostgreSQL.

Tests the full flow: scan -> classify -> decode -> isolated + unified
writes -> archive/quarantine.
"""

import asyncio
from decimal import Decimal

import pytest

from trax_etl.batch import BatchPipeline
from trax_etl.cli.batch_cli import run_pipeline
from trax_etl.core.models import Platform
from trax_etl.warehouse import IsolatedWriter, SchemaManager, UnifiedWriter

SLICE_ROWS = [
    {
        "order_number": str(1000 + i),
        "order_date": "03-01-2025 01:47 AM",
        "customer": "Jane",
        "order_type": "Pickup",
        "subtotal": "$10.00",
        "tax": "$0.80",
        "order_total": "$10.80",
        "status": "Completed",
    }
    for i in range(5)
]

SQUARE_ROWS = [
    {
        "date": "2025-04-09",
        "time": "14:30",
        "transaction_id": "T1",
        "net_total": "$25.50",
        "tip": "$3.00",
        "tax": "$2.00",
        "location": "Main St",
    },
]

UBER_ROWS = [
    {
        "store": "Downtown",
        "order_uuid": "9f1c-77",
        "order_status": "Completed",
        "ticket_size": "$31.20",
        "time_customer_ordered": "2025-04-01 18:05:00",
        "scheduled": "1",
    },
]


@pytest.fixture
def e2e_config(pipeline_config, db_settings):
    return pipeline_config.model_copy(update={"database": db_settings})


@pytest.mark.e2e
class TestTraxBatch:
    """End-to-end pipeline tests"""

    def test_all_platforms_loaded(self, e2e_config, with_pool, write_export):
        write_export(Platform.SLICE, SLICE_ROWS)
        write_export(Platform.SQUARE, SQUARE_ROWS)
        write_export(Platform.UBER, UBER_ROWS)

        outcomes = asyncio.run(run_pipeline(e2e_config))

        assert [o.status for o in outcomes] == ["success", "success", "success"]
        counts = with_pool(lambda pool: SchemaManager(pool).row_counts())
        assert counts == {"slice_trax": 5, "square_trax": 1, "uber_trax": 1, "unified_trax": 7}

        rows = with_pool(lambda pool: pool.execute_query(
            "SELECT order_timestamp, order_total, tip, tax, store FROM unified_trax "
            "WHERE platform = 'square' AND external_order_id = 'T1'"
        ))
        assert rows[0]["order_total"] == Decimal("25.50")
        assert rows[0]["tip"] == Decimal("3.00")
        assert rows[0]["store"] == "Main St"
        assert rows[0]["order_timestamp"].isoformat() == "2025-04-09T14:30:00"

        # Processed files are archived
        archived = sorted(p.name for p in e2e_config.archive_path.iterdir())
        assert archived == ["slice_trax_2025-04.csv", "square_trax_2025-04.csv", "uber_trax_2025-04.csv"]

    def test_reprocessing_same_file_changes_nothing(self, e2e_config, with_pool, write_export):
        path = write_export(Platform.SLICE, SLICE_ROWS)

        async def process(pool):
            pipeline = BatchPipeline(e2e_config, IsolatedWriter(pool), UnifiedWriter(pool))
            return await pipeline.process_file(path)

        first = with_pool(process)
        counts_once = with_pool(lambda pool: SchemaManager(pool).row_counts())
        second = with_pool(process)
        counts_twice = with_pool(lambda pool: SchemaManager(pool).row_counts())

        assert first.isolated_inserted == 5
        assert second.status == "success"
        assert second.isolated_inserted == 0
        assert second.unified_inserted == 0
        assert counts_once == counts_twice

    def test_missing_header_file_is_quarantined(self, e2e_config, with_pool, write_export, raw_headers):
        headers = [h for h in raw_headers(Platform.UBER) if h != "Ticket Size"]
        write_export(Platform.UBER, UBER_ROWS, headers=headers)

        outcomes = asyncio.run(run_pipeline(e2e_config))

        assert outcomes[0].status == "failed"
        assert "ticket_size" in outcomes[0].error
        counts = with_pool(lambda pool: SchemaManager(pool).row_counts())
        assert counts == {"slice_trax": 0, "square_trax": 0, "uber_trax": 0, "unified_trax": 0}
        assert [p.name for p in e2e_config.failed_path.iterdir()] == ["uber_trax_2025-04.csv"]

    def test_dry_run_leaves_files_in_place(self, e2e_config, with_pool, write_export):
        path = write_export(Platform.SQUARE, SQUARE_ROWS)
        config = e2e_config.model_copy(update={"dry_run": True})

        outcomes = asyncio.run(run_pipeline(config))

        assert outcomes[0].status == "success"
        assert path.exists()
        assert not e2e_config.archive_path.exists()
