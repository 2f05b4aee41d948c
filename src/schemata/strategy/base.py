"""
Base strategy interface for schema factory operations.

Defines the abstract base class that all database-specific strategy
implementations must inherit from. A strategy renders the DDL surface the
schema factory relies on (create, bind, clone, query, drop) and the catalog
queries used to inspect provisioned schemas, so the factory itself never
contains dialect-specific SQL.
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from schemata.sql import quote_identifier as sql_quote_identifier

if TYPE_CHECKING:
    from schemata.connection import ConnectionWrapper
    from schemata.options import DatabaseOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for database-specific operations.
    """

    #: Longest identifier the server stores without truncation.
    max_identifier_length: int = 63

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'postgresql')."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> Any:
        """Build the database connection URL for this dialect.

        Args:
            options: DatabaseOptions containing connection parameters

        Returns
            Connection URL suitable for SQLAlchemy
        """

    @abstractmethod
    def configure_connection(self, conn: Any) -> None:
        """Configure connection settings.

        Args:
            conn: Database connection to configure with database-specific settings
        """

    @abstractmethod
    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode on a raw database connection.

        Args:
            raw_conn: The raw DBAPI connection (not wrapped)
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.

        Returns
            List of field names that must have non-None/non-zero values
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Args:
            options: DatabaseOptions to validate

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    def quote_identifier(self, identifier: str) -> str:
        """Quote a database identifier.

        Default implementation uses standard SQL double-quote escaping.
        Override in subclasses if database requires different quoting.
        """
        return sql_quote_identifier(identifier, self.dialect_name)

    # DDL surface

    @abstractmethod
    def create_schema_sql(self, schema: str) -> str:
        """Statement creating an empty schema."""

    @abstractmethod
    def set_schema_sql(self, schema: str) -> str:
        """Statement making ``schema`` the session's default schema."""

    @abstractmethod
    def clone_table_sql(self, schema: str, table: str, source_schema: str) -> str:
        """Statement creating ``schema.table`` as a structural clone of
        ``source_schema.table``, including indexes, constraints and defaults
        but no rows.
        """

    @abstractmethod
    def current_schema_sql(self) -> str:
        """Query returning the session's current schema as one scalar."""

    @abstractmethod
    def drop_schema_sql(self, schema: str) -> str:
        """Statement dropping ``schema`` and everything in it."""

    @abstractmethod
    def reset_schema_sql(self) -> str:
        """Statement restoring the session's default schema setting."""

    # Catalog queries

    @abstractmethod
    def schema_exists(self, cn: 'ConnectionWrapper', schema: str) -> bool:
        """Check whether a schema exists.

        Args:
            cn: Database connection object
            schema: Schema name
        """

    @abstractmethod
    def get_tables(self, cn: 'ConnectionWrapper', schema: str) -> list[str]:
        """Get base table names in a schema, sorted.

        Args:
            cn: Database connection object
            schema: Schema name
        """

    @abstractmethod
    def get_indexes(self, cn: 'ConnectionWrapper', schema: str,
                    table: str) -> list[str]:
        """Get index names for a table, sorted.

        Args:
            cn: Database connection object
            schema: Schema containing the table
            table: Table name
        """

    @abstractmethod
    def get_constraints(self, cn: 'ConnectionWrapper', schema: str,
                        table: str) -> list[str]:
        """Get constraint names for a table, sorted.

        Args:
            cn: Database connection object
            schema: Schema containing the table
            table: Table name
        """
