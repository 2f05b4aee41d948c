"""
Connection pool used by the schema factory.

A thin checkout/return surface over a pooled SQLAlchemy engine. Connections
come back configured for the dialect (autocommit on) and wrapped in
`ConnectionWrapper`.
"""
import logging
from dataclasses import fields
from typing import Any

from schemata.connection import ConnectionWrapper, configure_connection
from schemata.connection import get_engine_for_options
from schemata.exceptions import ConnectionFailure, DriverError
from schemata.options import DatabaseOptions
from schemata.utils import get_dialect_name
from sqlalchemy.engine import Engine

from libb import load_options

__all__ = ['ConnectionPool', 'create_pool']

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Hands out `ConnectionWrapper` objects from a SQLAlchemy engine.

    Thread safety comes from the engine's own pool; this class keeps no
    mutable state of its own.
    """

    def __init__(self, engine: Engine, options: DatabaseOptions | None = None) -> None:
        self.engine = engine
        self.options = options

    @property
    def dialect(self) -> str:
        return get_dialect_name(self.engine)

    def acquire(self) -> ConnectionWrapper:
        """Check out a connection.

        Raises ConnectionFailure if the engine cannot provide one.
        """
        try:
            sa_connection = self.engine.connect()
        except DriverError as err:
            raise ConnectionFailure(f'could not acquire connection: {err}') from err
        try:
            configure_connection(sa_connection)
        except DriverError as err:
            sa_connection.invalidate()
            sa_connection.close()
            raise ConnectionFailure(f'could not configure connection: {err}') from err
        return ConnectionWrapper(sa_connection, self.options)

    def release(self, cn: ConnectionWrapper, invalidate: bool = False) -> None:
        """Return a connection to the pool.

        With ``invalidate`` the DBAPI connection is discarded rather than
        reused, so session state such as the search path cannot leak into
        the next checkout.
        """
        if invalidate:
            cn.invalidate()
        cn.close()

    def dispose(self) -> None:
        """Close every idle pooled connection.
        """
        self.engine.dispose()
        logger.debug('Connection pool disposed')


@load_options(cls=DatabaseOptions)
def create_pool(options: DatabaseOptions | dict[str, Any] | str,
                config: Any | None = None, **kw: Any) -> ConnectionPool:
    """Create a connection pool from database options.

    Accepts the same option forms as `schemata.connection.connect`.
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
    return ConnectionPool(engine, options)
