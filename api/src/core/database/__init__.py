"""Database connection module."""

from src.core.database.async_cassandra import (
    TRANSIENT_DRIVER_ERRORS,
    AsyncCassandraConnection,
    init_async_cassandra,
    shutdown_async_cassandra,
)


__all__ = [
    "TRANSIENT_DRIVER_ERRORS",
    "AsyncCassandraConnection",
    "init_async_cassandra",
    "shutdown_async_cassandra",
]
