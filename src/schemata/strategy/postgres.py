"""
PostgreSQL-specific strategy implementation.

This module implements the DatabaseStrategy interface for PostgreSQL:
- Schema DDL (CREATE SCHEMA, SET SCHEMA, DROP SCHEMA ... CASCADE)
- Structural table clones via CREATE TABLE ... (LIKE ... INCLUDING ALL)
- Catalog lookups against information_schema, pg_indexes and pg_constraint
"""
import logging
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from schemata.sql import escape_literal
from schemata.strategy.base import DatabaseStrategy, register_strategy
from schemata.utils import get_raw_connection

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from schemata.connection import ConnectionWrapper
    from schemata.options import DatabaseOptions


@register_strategy('postgresql')
class PostgresStrategy(DatabaseStrategy):
    """PostgreSQL-specific operations.
    """

    max_identifier_length = 63

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        if options.appname:
            query['application_name'] = options.appname

        return sa.URL.create(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port,
            database=options.database,
            query=query
        )

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'password', 'database', 'port']

    def configure_connection(self, conn: Any) -> None:
        """Configure connection settings for PostgreSQL.

        Every DDL statement issued by the factory commits on its own.
        """
        self.enable_autocommit(get_raw_connection(conn))

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode for PostgreSQL.
        """
        raw_conn.autocommit = True

    def create_schema_sql(self, schema: str) -> str:
        return f'create schema {self.quote_identifier(schema)}'

    def set_schema_sql(self, schema: str) -> str:
        return f"set schema '{escape_literal(schema)}'"

    def clone_table_sql(self, schema: str, table: str, source_schema: str) -> str:
        target = f'{self.quote_identifier(schema)}.{self.quote_identifier(table)}'
        source = f'{self.quote_identifier(source_schema)}.{self.quote_identifier(table)}'
        return f'create table {target} (like {source} including all)'

    def current_schema_sql(self) -> str:
        return 'select current_schema()'

    def drop_schema_sql(self, schema: str) -> str:
        return f'drop schema {self.quote_identifier(schema)} cascade'

    def reset_schema_sql(self) -> str:
        return 'reset search_path'

    def schema_exists(self, cn: 'ConnectionWrapper', schema: str) -> bool:
        """Check whether a schema exists.
        """
        sql = """
select count(*)
from pg_namespace
where nspname = %s
"""
        return cn.select_scalar(sql, schema) > 0

    def get_tables(self, cn: 'ConnectionWrapper', schema: str) -> list[str]:
        """Get base table names in a schema.
        """
        sql = """
select table_name
from information_schema.tables
where table_schema = %s and table_type = 'BASE TABLE'
order by table_name
"""
        return cn.select_column(sql, schema)

    def get_indexes(self, cn: 'ConnectionWrapper', schema: str,
                    table: str) -> list[str]:
        """Get index names for a table.
        """
        sql = """
select indexname
from pg_indexes
where schemaname = %s and tablename = %s
order by indexname
"""
        return cn.select_column(sql, schema, table)

    def get_constraints(self, cn: 'ConnectionWrapper', schema: str,
                        table: str) -> list[str]:
        """Get constraint names for a table.

        Foreign keys are never copied by LIKE ... INCLUDING ALL, so they are
        left out to keep clone and source comparable.
        """
        sql = """
select c.conname
from pg_constraint c
join pg_class r on r.oid = c.conrelid
join pg_namespace n on n.oid = r.relnamespace
where n.nspname = %s and r.relname = %s and c.contype <> 'f'
order by c.conname
"""
        return cn.select_column(sql, schema, table)
