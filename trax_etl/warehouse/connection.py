"""
PostgreSQL connection pool management using psycopg3

This module provides an async connection pool shared by every concurrent
row write and every concurrent file in a pipeline run.
"""
import asyncio
from contextlib import asynccontextmanager

from psycopg import OperationalError
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from trax_etl.core.config import DatabaseSettings
from trax_etl.core.errors import ConfigurationError


class AsyncDatabaseConnectionPool:
    """
    PostgreSQL async connection pool manager using psycopg3

    Provides connection pooling with retry on open and connection
    lifecycle management.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "trax",
        user: str = "pipeline",
        password: str | None = None,
        conninfo: str | None = None,
        min_size: int = 2,
        max_size: int = 10,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize database connection pool

        Args:
            host: Database host
            port: Database port
            database: Database name
            user: Database user
            password: Database password (required unless conninfo is given)
            conninfo: Full libpq connection string, used as-is when set
            min_size: Minimum pool size
            max_size: Maximum pool size
            timeout: Connection timeout in seconds

        Raises:
            ConfigurationError: If no password is available
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout

        if conninfo:
            self.conninfo = conninfo
        else:
            # Security: Require password to be explicitly set
            if not password:
                raise ConfigurationError(
                    "Database password must be provided. "
                    "Set DB_PASSWORD environment variable or database.password in config."
                )
            self.conninfo = (
                f"host={host} "
                f"port={port} "
                f"dbname={database} "
                f"user={user} "
                f"password={password} "
                f"connect_timeout={int(timeout)}"
            )

        self._pool: AsyncConnectionPool | None = None

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "AsyncDatabaseConnectionPool":
        return cls(
            host=settings.host,
            port=settings.port,
            database=settings.name,
            user=settings.user,
            password=settings.password,
            conninfo=settings.conninfo,
            min_size=settings.min_size,
            max_size=settings.max_size,
            timeout=settings.timeout,
        )

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def _new_pool(self) -> AsyncConnectionPool:
        return AsyncConnectionPool(
            conninfo=self.conninfo,
            min_size=self.min_size,
            max_size=self.max_size,
            timeout=self.timeout,
            kwargs={"row_factory": dict_row},  # Return rows as dictionaries
            open=False,
        )

    async def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the connection pool with retry logic.

        Args:
            max_retries: Maximum number of connection attempts
            retry_delay: Delay between retries in seconds

        Raises:
            OperationalError: If connection fails after all retries
        """
        if self._pool is not None:
            return

        for attempt in range(1, max_retries + 1):
            pool = self._new_pool()
            try:
                await pool.open(wait=True, timeout=self.timeout)
            except OperationalError as e:
                await pool.close()
                if attempt == max_retries:
                    raise OperationalError(
                        f"Failed to connect to database after {max_retries} attempts: {e}"
                    ) from e
                await asyncio.sleep(retry_delay)
            else:
                self._pool = pool
                return

    async def close(self) -> None:
        """Close the connection pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self):
        """
        Get a connection from the pool

        Yields:
            psycopg.AsyncConnection: Database connection

        Raises:
            RuntimeError: If pool is not open
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open. Call open() first.")

        async with self._pool.connection() as conn:
            yield conn

    async def execute_query(self, query, params: tuple | None = None) -> list[dict]:
        """
        Execute a SELECT query and return results

        Args:
            query: SQL SELECT query
            params: Query parameters (optional)

        Returns:
            List of dictionaries (one per row)
        """
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchall()

    async def execute_command(self, command, params: tuple | None = None) -> int:
        """
        Execute an INSERT/UPDATE/DELETE/DDL command

        Args:
            command: SQL command
            params: Command parameters (optional)

        Returns:
            Number of rows affected
        """
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(command, params)
                rowcount = cur.rowcount
            await conn.commit()
            return rowcount

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False
