"""
Temporary PostgreSQL schemas for isolated data-layer tests.

A SchemaFactory clones named tables from a source schema into a fresh,
uniquely named schema, hands back a connection bound to it, and drops the
schema on release:

    factory = schemata.create_factory('postgresql', config=config)
    with factory.schema('users', 'orders') as cn:
        cn.execute('insert into users (name) values (%s)', 'alice')
"""
__version__ = '0.1.0'

from schemata.connection import ConnectionWrapper, connect
from schemata.exceptions import ConnectionFailure, CurrentSchemaError
from schemata.exceptions import DatabaseError, QueryError, SchemaBindError
from schemata.exceptions import SchemaCreateError, SchemaDropError
from schemata.exceptions import SchemaError, SchemaMismatchError
from schemata.exceptions import SearchPathResetError
from schemata.exceptions import SourceSchemaViolation, TableCloneError
from schemata.exceptions import ValidationError
from schemata.factory import SchemaFactory, create_factory
from schemata.options import DatabaseOptions, FactoryOptions
from schemata.pool import ConnectionPool, create_pool

__all__ = [
    'connect',
    'create_pool',
    'create_factory',
    'ConnectionWrapper',
    'ConnectionPool',
    'SchemaFactory',
    'DatabaseOptions',
    'FactoryOptions',
    'DatabaseError',
    'ConnectionFailure',
    'QueryError',
    'ValidationError',
    'SchemaError',
    'SchemaCreateError',
    'SchemaBindError',
    'TableCloneError',
    'CurrentSchemaError',
    'SchemaDropError',
    'SourceSchemaViolation',
    'SchemaMismatchError',
    'SearchPathResetError',
]
