"""
Schema management for the trax tables.

Each isolated table's columns are derived from its record model, so the
table, the decoder's field table and the writer never drift apart.
"""

import types
from datetime import datetime
from decimal import Decimal
from typing import Union, get_args, get_origin

from psycopg import sql

from trax_etl.core.models import PlatformRecord, SliceOrder, SquareTransaction, UberOrder

from .connection import AsyncDatabaseConnectionPool

ISOLATED_MODELS: tuple[type[PlatformRecord], ...] = (SliceOrder, SquareTransaction, UberOrder)

UNIFIED_TABLE = "unified_trax"

SQL_TYPES = {
    str: "TEXT",
    Decimal: "NUMERIC",
    datetime: "TIMESTAMP",
    bool: "BOOLEAN",
    int: "INTEGER",
}

UNIFIED_DDL = """
    CREATE TABLE IF NOT EXISTS unified_trax (
        id BIGSERIAL PRIMARY KEY,
        platform TEXT NOT NULL,
        external_order_id TEXT NOT NULL,
        order_timestamp TIMESTAMP,
        customer TEXT,
        store TEXT,
        fulfillment_type TEXT,
        order_status TEXT,
        order_total NUMERIC,
        tip NUMERIC,
        tax NUMERIC,
        metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
        source_file TEXT NOT NULL,
        loaded_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        CONSTRAINT unified_trax_identity UNIQUE (platform, external_order_id)
    )
"""


def sql_type(annotation) -> str:
    """
    Map a model field annotation to a PostgreSQL column type.

    Optional annotations (X | None) map to the type of X.
    """
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        annotation = args[0]
    try:
        return SQL_TYPES[annotation]
    except KeyError:
        raise ValueError(f"No column type for annotation {annotation!r}") from None


def isolated_table_ddl(record_cls: type[PlatformRecord]) -> sql.Composed:
    """CREATE TABLE statement for one platform's isolated table."""
    columns = [sql.SQL("id BIGSERIAL PRIMARY KEY")]
    for name in record_cls.isolated_columns():
        column_type = sql_type(record_cls.model_fields[name].annotation)
        if name == record_cls.natural_key_field:
            suffix = " NOT NULL UNIQUE"
        elif name == "source_file":
            suffix = " NOT NULL"
        else:
            suffix = ""
        columns.append(sql.SQL("{} " + column_type + suffix).format(sql.Identifier(name)))
    columns.append(sql.SQL("loaded_at TIMESTAMPTZ NOT NULL DEFAULT now()"))

    return sql.SQL("CREATE TABLE IF NOT EXISTS {} ({})").format(
        sql.Identifier(record_cls.table_name),
        sql.SQL(", ").join(columns),
    )


class SchemaManager:
    """
    Creates and inspects the isolated and unified tables.
    """

    def __init__(self, pool: AsyncDatabaseConnectionPool):
        """
        Initialize schema manager.

        Args:
            pool: Database connection pool
        """
        self.pool = pool

    @property
    def table_names(self) -> list[str]:
        return [model.table_name for model in ISOLATED_MODELS] + [UNIFIED_TABLE]

    async def create_tables(self) -> None:
        """Create every table that does not exist yet. Safe to re-run."""
        for model in ISOLATED_MODELS:
            await self.pool.execute_command(isolated_table_ddl(model))
        await self.pool.execute_command(UNIFIED_DDL)

    async def truncate_tables(self) -> None:
        """Remove all rows from every trax table."""
        await self.pool.execute_command(
            sql.SQL("TRUNCATE {}").format(
                sql.SQL(", ").join(sql.Identifier(name) for name in self.table_names)
            )
        )

    async def row_counts(self) -> dict[str, int]:
        """Row count per table."""
        counts = {}
        for name in self.table_names:
            result = await self.pool.execute_query(
                sql.SQL("SELECT COUNT(*) AS n FROM {}").format(sql.Identifier(name))
            )
            counts[name] = result[0]["n"]
        return counts
