"""
Pytest configuration and fixtures for trax pipeline tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import asyncio
import csv
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from testcontainers.postgres import PostgresContainer

from trax_etl.core.config import DatabaseSettings, PipelineConfig, parse_config
from trax_etl.core.errors import PersistenceFailure
from trax_etl.core.models import Platform, RecordKind
from trax_etl.core.normalization import normalize_header
from trax_etl.core.platforms import get_components
from trax_etl.warehouse import AsyncDatabaseConnectionPool, SchemaManager


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_pipeline",
        password="test_password",
        dbname="test_trax"
    ) as postgres:
        yield postgres


@pytest.fixture(scope="session")
def db_settings(postgres_container) -> DatabaseSettings:
    """Connection settings pointing at the test container"""
    return DatabaseSettings(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        name="test_trax",
        user="test_pipeline",
        password="test_password",
        min_size=1,
        max_size=5,
    )


@pytest.fixture(scope="function")
def with_pool(db_settings) -> Callable:
    """
    Provide a runner for async code against a clean database

    Tables are created and truncated once per test. Each call opens a
    fresh pool inside its own event loop, so a test can simulate separate
    runs of the pipeline.

    Usage:
        counts = with_pool(lambda pool: SchemaManager(pool).row_counts())
    """
    def run(fn):
        async def main():
            async with AsyncDatabaseConnectionPool.from_settings(db_settings) as pool:
                return await fn(pool)
        return asyncio.run(main())

    async def reset(pool):
        manager = SchemaManager(pool)
        await manager.create_tables()
        await manager.truncate_tables()

    run(reset)
    return run


# =======================
# IN-MEMORY WRITERS
# =======================

class InMemoryWriter:
    """
    Upsert-or-ignore writer keyed in a dict

    Mirrors the database writers' contract: write() returns True on insert
    and False on a key conflict, leaving the stored record unchanged.
    """

    def __init__(self, key: Callable, fail_keys: set | None = None):
        self.key = key
        self.fail_keys = fail_keys or set()
        self.rows: dict = {}
        self.attempts = 0

    async def write(self, record) -> bool:
        self.attempts += 1
        await asyncio.sleep(0)
        key = self.key(record)
        if key in self.fail_keys:
            raise PersistenceFailure("memory", str(key), "storage unavailable")
        if key in self.rows:
            return False
        self.rows[key] = record
        return True


@pytest.fixture
def isolated_writer() -> InMemoryWriter:
    return InMemoryWriter(key=lambda r: (r.table_name, r.natural_key))


@pytest.fixture
def unified_writer() -> InMemoryWriter:
    return InMemoryWriter(key=lambda r: r.identity)


@pytest.fixture
def writer_factory() -> Callable[..., InMemoryWriter]:
    """Build in-memory writers with custom failing keys"""
    return InMemoryWriter


# =======================
# FILE FIXTURES
# =======================

def raw_header(key: str) -> str:
    """Human-style header that normalizes back to key ("net_total" -> "Net Total")"""
    if key == "order_number":
        return "Order #"
    return " ".join(part.capitalize() for part in key.split("_"))


@pytest.fixture
def raw_headers() -> Callable[[Platform], list[str]]:
    """Raw export header row for a platform's trax export"""
    def build(platform: Platform) -> list[str]:
        decoder = get_components(platform, RecordKind.TRAX).decoder
        return [raw_header(key) for key in decoder.expected_headers]
    return build


@pytest.fixture
def raw_csv_dir(tmp_path) -> Path:
    path = tmp_path / "raw_csv"
    path.mkdir()
    return path


@pytest.fixture
def write_export(raw_csv_dir, raw_headers) -> Callable[..., Path]:
    """
    Write a CSV export under raw_csv/<platform>/

    Rows are dicts keyed by normalized header; absent keys are written
    as empty cells. headers overrides the platform's raw header row.
    """
    def write(
        platform: Platform,
        rows: list[dict],
        name: str | None = None,
        headers: list[str] | None = None,
        raw_lines: list[list[str]] | None = None,
    ) -> Path:
        header_row = headers if headers is not None else raw_headers(platform)
        keys = [normalize_header(h) for h in header_row]
        folder = raw_csv_dir / platform.value
        folder.mkdir(exist_ok=True)
        path = folder / (name or f"{platform.value}_trax_2025-04.csv")
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header_row)
            for row in rows:
                writer.writerow([row.get(key, "") for key in keys])
            for line in raw_lines or []:
                writer.writerow(line)
        return path
    return write


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture
def pipeline_config(tmp_path, raw_csv_dir) -> PipelineConfig:
    """Configuration rooted in the test's tmp_path"""
    return parse_config({
        "raw_csv_dir": str(raw_csv_dir),
        "archive_path": str(tmp_path / "archive"),
        "failed_path": str(tmp_path / "failed"),
        "max_concurrent_writes": 4,
        "database": {"password": "unused"},
    })
