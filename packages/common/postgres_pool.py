"""Thread-safe PostgreSQL connection pool shared by the content repositories.

Repository calls run in worker threads (``asyncio.to_thread``), so each call
checks out its own connection instead of sharing one across threads.
"""

from collections.abc import Generator
from contextlib import contextmanager

import psycopg2
from psycopg2.extensions import connection as PgConnection  # noqa: N812
from psycopg2.pool import ThreadedConnectionPool

from packages.common.config import PersonalOSConfig
from packages.common.logging import get_logger

logger = get_logger(__name__)


class PostgresPoolError(Exception):
    """Raised when a connection cannot be opened, checked out or used."""


class PostgresPool:
    """Pool of psycopg2 connections sized from configuration.

    Example:
        >>> with PostgresPool(config) as pool:
        ...     with pool.get_connection() as conn:
        ...         ensure_schema(conn)
    """

    def __init__(self, config: PersonalOSConfig) -> None:
        self._host = config.postgres_host
        self._database = config.postgres_db
        try:
            self.pool = ThreadedConnectionPool(
                minconn=config.postgres_min_pool_size,
                maxconn=config.postgres_max_pool_size,
                host=config.postgres_host,
                port=config.postgres_port,
                database=config.postgres_db,
                user=config.postgres_user,
                password=config.postgres_password.get_secret_value(),
            )
        except psycopg2.Error as e:
            logger.exception(
                "Failed to open PostgreSQL pool",
                extra={"host": self._host, "database": self._database},
            )
            raise PostgresPoolError(f"Failed to open PostgreSQL pool: {e}") from e

        logger.info(
            "PostgreSQL pool opened",
            extra={
                "host": self._host,
                "database": self._database,
                "max_pool_size": config.postgres_max_pool_size,
            },
        )

    @contextmanager
    def get_connection(self) -> Generator[PgConnection, None, None]:
        """Check out a connection and return it to the pool on exit.

        Raises:
            PostgresPoolError: If checkout fails or a database error escapes
                the block.
        """
        conn = None
        try:
            conn = self.pool.getconn()
            yield conn
        except psycopg2.Error as e:
            raise PostgresPoolError(f"PostgreSQL error: {e}") from e
        finally:
            if conn is not None:
                self.pool.putconn(conn)

    def close_all(self) -> None:
        """Close every pooled connection; safe to call twice."""
        if self.pool.closed:
            return
        self.pool.closeall()
        logger.info("PostgreSQL pool closed", extra={"host": self._host})

    def __enter__(self) -> "PostgresPool":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close_all()


__all__ = ["PostgresPool", "PostgresPoolError"]
