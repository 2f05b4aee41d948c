"""
Schema introspection for provisioned and source schemas.

These helpers let tests check what a provisioned schema actually contains
(tables, indexes, constraints, rows) and whether it still exists after
release. Catalog SQL is delegated to the dialect strategy.
"""
import logging
from typing import TYPE_CHECKING

from schemata.sql import qualify
from schemata.strategy import get_db_strategy

if TYPE_CHECKING:
    from schemata.connection import ConnectionWrapper

logger = logging.getLogger(__name__)


def current_schema(cn: 'ConnectionWrapper') -> str | None:
    """Return the session's current schema, or None when the search path
    names no existing schema.
    """
    strategy = get_db_strategy(cn)
    return cn.select_scalar(strategy.current_schema_sql())


def schema_exists(cn: 'ConnectionWrapper', schema: str) -> bool:
    """Check whether a schema exists.
    """
    strategy = get_db_strategy(cn)
    return strategy.schema_exists(cn, schema)


def table_names(cn: 'ConnectionWrapper', schema: str) -> list[str]:
    """Get base table names in a schema, sorted.
    """
    strategy = get_db_strategy(cn)
    return strategy.get_tables(cn, schema)


def index_names(cn: 'ConnectionWrapper', schema: str, table: str) -> list[str]:
    """Get index names for a table, sorted.
    """
    strategy = get_db_strategy(cn)
    return strategy.get_indexes(cn, schema, table)


def constraint_names(cn: 'ConnectionWrapper', schema: str, table: str) -> list[str]:
    """Get constraint names for a table, sorted.

    Foreign keys are excluded; structural clones never carry them.
    """
    strategy = get_db_strategy(cn)
    return strategy.get_constraints(cn, schema, table)


def row_count(cn: 'ConnectionWrapper', schema: str, table: str) -> int:
    """Count the rows in ``schema.table``.
    """
    return cn.select_scalar(f'select count(*) from {qualify(schema, table, cn.dialect)}')
