"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for creating new database connections
2. The `ConnectionWrapper` class, the statement executor used by the schema
   factory, wrapping a SQLAlchemy connection
3. Engine creation and management through a thread-safe registry

Statements run on the underlying DBAPI connection with autocommit enabled,
so each DDL statement takes effect immediately.
"""
import atexit
import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import fields
from typing import Any, Self

import sqlalchemy as sa
from schemata.exceptions import QueryError
from schemata.options import DatabaseOptions
from schemata.strategy import get_db_strategy, get_strategy
from schemata.utils import get_dialect_name
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

__all__ = [
    'ConnectionWrapper',
    'connect',
    'configure_connection',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def get_engine_for_options(options: DatabaseOptions, use_pool: bool = True,
                           pool_size: int = 5, pool_recycle: int = 300,
                           pool_timeout: int = 30,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.
    """
    key = f'{str(options)}_{use_pool}_{pool_size}_{pool_recycle}_{pool_timeout}'

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        url = get_strategy(options.drivername).build_connection_url(options)

        engine_kwargs: dict[str, Any] = {'echo': False}

        if not use_pool:
            engine_kwargs['poolclass'] = NullPool
        else:
            engine_kwargs['pool_size'] = pool_size
            engine_kwargs['pool_recycle'] = pool_recycle
            engine_kwargs['pool_timeout'] = pool_timeout
            engine_kwargs['max_overflow'] = 10
            engine_kwargs['pool_pre_ping'] = True
            engine_kwargs['pool_reset_on_return'] = 'rollback'

        engine_kwargs.update(kwargs)

        engine = sa.create_engine(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in list(_engine_registry.values()):
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class ConnectionWrapper:
    """Wraps a SQLAlchemy connection object to track calls and execution time

    This class provides a thin wrapper around SQLAlchemy connection objects that:
    1. Executes statements and scalar/column queries on the DBAPI connection
    2. Tracks query execution counts and timing
    3. Supports context manager protocol for explicit resource management
    4. Delegates attribute access to the SQLAlchemy connection object
    """

    def __init__(self, sa_connection: sa.engine.Connection | None = None,
                 options: DatabaseOptions | None = None) -> None:
        """Initialize a connection wrapper
        """
        self.sa_connection = sa_connection
        self.engine = sa_connection.engine if sa_connection else None
        self.options = options
        self.dbapi_connection = sa_connection.connection if sa_connection else None
        self._dialect = get_dialect_name(sa_connection) if sa_connection else None
        self.calls = 0
        self.time = 0

    def __enter__(self) -> Self:
        """Support for context manager protocol
        """
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        """Return the connection to the pool when exiting the context manager
        """
        self.close()
        logger.debug('Closed connection via context manager')

    def __getattr__(self, name: str) -> Any:
        """Delegate attribute access to the SQLAlchemy connection.
        """
        if name in {'sa_connection', 'dbapi_connection'}:
            raise AttributeError(name)
        return getattr(self.sa_connection, name)

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    @property
    def dialect(self) -> str:
        """Return the dialect name ('postgresql')."""
        return self._dialect

    @property
    def closed(self) -> bool:
        return self.sa_connection is None or self.sa_connection.closed

    @contextmanager
    def _cursor(self, sql: str, args: tuple) -> Iterator[Any]:
        """Open a DBAPI cursor, execute ``sql`` and close the cursor afterwards.
        """
        if self.closed:
            raise QueryError('connection is closed')
        start = time.time()
        cursor = self.dbapi_connection.cursor()
        try:
            cursor.execute(sql, args or None)
            yield cursor
        finally:
            cursor.close()
            self.addcall(time.time() - start)

    def execute(self, sql: str, *args: Any) -> int:
        """Execute a SQL statement with the given parameters and return affected row count.
        """
        with self._cursor(sql, args) as cursor:
            logger.debug(f'Executed statement with {len(args)} parameters')
            return cursor.rowcount

    def select_column(self, sql: str, *args: Any) -> list[Any]:
        """Execute a query and return the first column as a list.
        """
        with self._cursor(sql, args) as cursor:
            return [row[0] for row in cursor.fetchall()]

    def select_scalar(self, sql: str, *args: Any) -> Any:
        """Execute a query and return a single scalar value.

        Raises QueryError if the query returns zero or multiple rows.
        """
        data = self.select_column(sql, *args)
        if len(data) != 1:
            raise QueryError(f'Expected one row, got {len(data)}')
        result = data[0]
        logger.debug(f'Scalar query returned value of type {type(result).__name__}')
        return result

    def invalidate(self) -> None:
        """Discard the underlying DBAPI connection instead of pooling it again.
        """
        if not self.closed:
            self.sa_connection.invalidate()
            logger.debug('Connection invalidated')

    def close(self) -> None:
        """Close the SQLAlchemy connection, returning it to the pool
        """
        if not self.closed:
            self.sa_connection.close()
            logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per query)')


def configure_connection(sa_connection: sa.engine.Connection) -> None:
    """Configure a SQLAlchemy connection with database-specific settings.
    """
    strategy = get_db_strategy(sa_connection)
    strategy.configure_connection(sa_connection.connection)


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> ConnectionWrapper:
    """Connect to a database using SQLAlchemy for connection management

    Args:
        options: Can be:
                - DatabaseOptions object
                - String name of a settings block on `config`
                - Dictionary of options
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        ConnectionWrapper object for connecting to the database
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options, use_pool=options.use_pool,
                                    pool_size=options.pool_max_connections,
                                    pool_recycle=options.pool_max_idle_time,
                                    pool_timeout=options.pool_wait_timeout)

    sa_connection = engine.connect()
    configure_connection(sa_connection)

    return ConnectionWrapper(sa_connection, options)
