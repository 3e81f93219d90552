"""
Idempotent upsert-or-ignore writes for the trax tables.

Implements INSERT ... ON CONFLICT DO NOTHING: the first write of a key wins
and re-importing the same export never duplicates or overwrites rows. The
database's unique constraint enforces this under concurrent writers.
"""

import json
from functools import lru_cache, partial

import psycopg
from psycopg import sql
from psycopg.types.json import Jsonb

from trax_etl.core.errors import PersistenceFailure
from trax_etl.core.models import PlatformRecord, UnifiedRecord

from .connection import AsyncDatabaseConnectionPool
from .schema_mgmt import UNIFIED_TABLE

dump_metadata = partial(json.dumps, sort_keys=True, default=str)

UNIFIED_COLUMNS = (
    "platform",
    "external_order_id",
    "order_timestamp",
    "customer",
    "store",
    "fulfillment_type",
    "order_status",
    "order_total",
    "tip",
    "tax",
    "metadata",
    "source_file",
)


def insert_or_ignore(table: str, columns: tuple[str, ...], conflict: tuple[str, ...]) -> sql.Composed:
    return sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values}) ON CONFLICT ({conflict}) DO NOTHING").format(
        table=sql.Identifier(table),
        columns=sql.SQL(", ").join(map(sql.Identifier, columns)),
        values=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        conflict=sql.SQL(", ").join(map(sql.Identifier, conflict)),
    )


@lru_cache(maxsize=None)
def isolated_insert(record_cls: type[PlatformRecord]) -> sql.Composed:
    return insert_or_ignore(
        record_cls.table_name,
        tuple(record_cls.isolated_columns()),
        (record_cls.natural_key_field,),
    )


UNIFIED_INSERT = insert_or_ignore(UNIFIED_TABLE, UNIFIED_COLUMNS, ("platform", "external_order_id"))


class IsolatedWriter:
    """
    Writes platform records to their platform's isolated table.

    One writer serves every platform; the target table, columns and
    conflict key come from the record's class.
    """

    def __init__(self, pool: AsyncDatabaseConnectionPool):
        """
        Initialize isolated writer.

        Args:
            pool: Database connection pool
        """
        self.pool = pool

    async def write(self, record: PlatformRecord) -> bool:
        """
        Insert a record unless its natural key already exists.

        Args:
            record: Decoded platform record

        Returns:
            True if a row was inserted, False on a key conflict (no-op)

        Raises:
            PersistenceFailure: If the write fails for any other reason
        """
        try:
            rowcount = await self.pool.execute_command(
                isolated_insert(type(record)),
                tuple(record.isolated_values()),
            )
        except psycopg.Error as e:
            raise PersistenceFailure(record.table_name, record.natural_key, str(e)) from e
        return rowcount == 1


class UnifiedWriter:
    """
    Writes unified records keyed by (platform, external_order_id).
    """

    def __init__(self, pool: AsyncDatabaseConnectionPool):
        self.pool = pool

    async def write(self, record: UnifiedRecord) -> bool:
        """
        Insert a unified record unless its identity already exists.

        metadata is stored as JSON with sorted keys.

        Returns:
            True if a row was inserted, False on an identity conflict (no-op)

        Raises:
            PersistenceFailure: If the write fails for any other reason
        """
        params = (
            record.platform.value,
            record.external_order_id,
            record.order_timestamp,
            record.customer,
            record.store,
            record.fulfillment_type,
            record.order_status,
            record.order_total,
            record.tip,
            record.tax,
            Jsonb(record.metadata, dumps=dump_metadata),
            record.source_file,
        )
        try:
            rowcount = await self.pool.execute_command(UNIFIED_INSERT, params)
        except psycopg.Error as e:
            raise PersistenceFailure(UNIFIED_TABLE, record.external_order_id, str(e)) from e
        return rowcount == 1
