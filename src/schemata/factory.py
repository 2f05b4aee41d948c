"""
Temporary schema factory for data-layer tests.

A `SchemaFactory` provisions uniquely named schemas holding structural
copies of tables from a source schema, hands back a connection bound to the
new schema, and drops the schema again on release.

Typical use from a test suite::

    factory = create_factory('postgresql', config=config)

    cn = factory.provision('users', 'orders')
    try:
        cn.execute('insert into users (name) values (%s)', 'alice')
        ...
    finally:
        factory.release(cn)

Provision and release raise a `schemata.exceptions.SchemaError` subclass on
failure and never swallow the driver error. Whether that aborts the test is
up to the caller; see `schemata.testing` for the pytest failure sink.

Provisioning does not roll back: if a table clone fails, the schema and the
tables cloned before it stay in the database and are reported by a warning.
"""
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import fields
from typing import Any

from schemata.connection import ConnectionWrapper
from schemata.exceptions import CurrentSchemaError, DriverError, QueryError
from schemata.exceptions import SchemaBindError, SchemaCreateError
from schemata.exceptions import SchemaDropError, SchemaMismatchError
from schemata.exceptions import SearchPathResetError
from schemata.exceptions import SourceSchemaViolation, TableCloneError
from schemata.exceptions import ValidationError
from schemata.options import FactoryOptions
from schemata.pool import ConnectionPool, create_pool
from schemata.strategy import get_db_strategy

from libb import load_options

__all__ = ['SchemaFactory', 'create_factory']

logger = logging.getLogger(__name__)


class SchemaFactory:
    """Creates temporary schemas populated with copies of source tables.

    One factory is meant to be shared by every test in a run, including
    tests running in parallel threads. Names are ``<prefix>_<n>`` with ``n``
    taken from a per-factory counter, so two factories sharing a prefix can
    collide; give each factory its own prefix.
    """

    def __init__(self, pool: ConnectionPool, source_schema: str,
                 prefix: str) -> None:
        if not source_schema:
            raise ValidationError('source_schema cannot be empty')
        if not prefix:
            raise ValidationError('prefix cannot be empty')
        self.pool = pool
        self.strategy = get_db_strategy(pool)
        self._source_schema = source_schema
        self._prefix = prefix
        self._counter = 0
        self._issued: dict[ConnectionWrapper, str] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f'{type(self).__name__}(source_schema={self._source_schema!r}, prefix={self._prefix!r})'

    @property
    def source_schema(self) -> str:
        return self._source_schema

    @property
    def prefix(self) -> str:
        return self._prefix

    def new_schema_name(self) -> str:
        """Return a schema name no other call on this factory will return.

        Raises ValidationError if the name would exceed the dialect's
        identifier length; the counter still advances.
        """
        with self._lock:
            name = f'{self._prefix}_{self._counter}'
            self._counter += 1
        if len(name.encode()) > self.strategy.max_identifier_length:
            raise ValidationError(
                f'schema name {name!r} exceeds {self.strategy.max_identifier_length} bytes')
        return name

    def outstanding(self) -> list[str]:
        """Names of schemas provisioned and not yet released.
        """
        with self._lock:
            return sorted(self._issued.values())

    def provision(self, *tables: str) -> ConnectionWrapper:
        """Create a schema holding empty clones of ``tables`` and bind a connection to it.

        Tables are cloned in the given order from the source schema with
        their indexes, constraints and defaults. Existence of the source
        tables is not checked up front; a missing table surfaces as a
        TableCloneError.

        Returns the connection with its current schema set to the new one.
        The caller owns it until it is passed to `release`.
        """
        cn = self.pool.acquire()
        try:
            name = self.new_schema_name()
            self._run(cn, self.strategy.create_schema_sql(name), SchemaCreateError,
                      f'could not create schema {name}', name)
            self._run(cn, self.strategy.set_schema_sql(name), SchemaBindError,
                      f'could not set current schema to {name}', name)
            for table in tables:
                sql = self.strategy.clone_table_sql(name, table, self._source_schema)
                try:
                    self._execute(cn, sql)
                except DriverError as err:
                    logger.warning(f'Schema {name} left behind after failed clone of {table}')
                    raise TableCloneError(
                        f'could not clone {self._source_schema}.{table} into {name}: {err}',
                        schema=name, table=table) from err
        except BaseException:
            self.pool.release(cn, invalidate=True)
            raise

        with self._lock:
            self._issued[cn] = name
        logger.info(f'Provisioned schema {name} with {len(tables)} table(s)')
        return cn

    def release(self, cn: ConnectionWrapper) -> None:
        """Drop the schema bound to ``cn`` and return the connection to the pool.

        Refuses to drop anything when the connection is bound to the source
        schema, or when its live schema is not the one this factory handed
        out for it. The connection is returned to the pool in every case.
        """
        with self._lock:
            recorded = self._issued.pop(cn, None)

        failed = True
        try:
            if cn.closed:
                raise CurrentSchemaError('connection already released or closed',
                                         schema=recorded)
            current = self._current_schema(cn, recorded)
            if current == self._source_schema:
                logger.error(f'Refusing to drop {current}: connection is bound to the source schema')
                raise SourceSchemaViolation(
                    f'found current schema was {current} (same as source schema), '
                    'expected a provisioned schema', schema=current)
            if recorded != current:
                raise SchemaMismatchError(
                    f'current schema is {current} but this factory provisioned '
                    f'{recorded or "nothing"} for the connection', schema=current)
            self._run(cn, self.strategy.drop_schema_sql(current), SchemaDropError,
                      f'could not drop schema {current}', current)
            self._run(cn, self.strategy.reset_schema_sql(), SearchPathResetError,
                      f'dropped schema {current} but could not reset search path', current)
            failed = False
            logger.info(f'Dropped schema {current}')
        finally:
            self.pool.release(cn, invalidate=failed)

    @contextmanager
    def schema(self, *tables: str) -> Iterator[ConnectionWrapper]:
        """Provision a schema for the duration of a ``with`` block.
        """
        cn = self.provision(*tables)
        try:
            yield cn
        finally:
            self.release(cn)

    def _current_schema(self, cn: ConnectionWrapper, recorded: str | None) -> str:
        try:
            return cn.select_scalar(self.strategy.current_schema_sql())
        except (QueryError, *DriverError) as err:
            raise CurrentSchemaError(f'could not query current schema: {err}',
                                     schema=recorded) from err

    def _run(self, cn: ConnectionWrapper, sql: str, error: type, message: str,
             schema: str) -> None:
        try:
            self._execute(cn, sql)
        except DriverError as err:
            raise error(f'{message}: {err}', schema=schema) from err

    def _execute(self, cn: ConnectionWrapper, sql: str) -> None:
        logger.debug(sql)
        cn.execute(sql)


@load_options(cls=FactoryOptions)
def create_factory(options: FactoryOptions | dict[str, Any] | str,
                   config: Any | None = None, **kw: Any) -> SchemaFactory:
    """Build a connection pool and a schema factory from options.

    Args:
        options: FactoryOptions, a dict of options, or the name of a
                 settings block on `config`
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options
    """
    if isinstance(options, FactoryOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=FactoryOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    pool = create_pool(options)
    return SchemaFactory(pool, options.source_schema, options.schema_prefix)
