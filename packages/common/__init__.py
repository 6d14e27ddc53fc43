"""Common utilities for the Personal OS content pipeline.

This package provides reusable utilities like logging, config, tracing,
retry policies and the PostgreSQL connection pool.
"""

from packages.common.postgres_pool import PostgresPool, PostgresPoolError

__all__ = ["PostgresPool", "PostgresPoolError"]
