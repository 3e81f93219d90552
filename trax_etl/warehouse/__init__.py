"""
PostgreSQL access: connection pool, schema and idempotent writers.
"""

from .connection import AsyncDatabaseConnectionPool
from .schema_mgmt import SchemaManager
from .upsert import IsolatedWriter, UnifiedWriter

__all__ = [
    "AsyncDatabaseConnectionPool",
    "SchemaManager",
    "IsolatedWriter",
    "UnifiedWriter",
]
