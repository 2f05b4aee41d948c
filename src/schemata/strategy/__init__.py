"""
Dialect strategies for the schema factory.

Concrete strategies register themselves with `register_strategy`; importing
this package loads the PostgreSQL one. Lookups accept either a dialect name
or anything `get_dialect_name` understands (a pool, connection or engine).
"""
from functools import lru_cache

from schemata.strategy.base import _STRATEGY_REGISTRY
from schemata.strategy.base import DatabaseStrategy as DatabaseStrategy
from schemata.strategy.base import register_strategy as register_strategy
from schemata.strategy.postgres import PostgresStrategy as PostgresStrategy
from schemata.utils import get_dialect_name


def get_available_dialects() -> list[str]:
    return sorted(_STRATEGY_REGISTRY)


def is_supported_dialect(dialect: str) -> bool:
    return dialect in _STRATEGY_REGISTRY


def get_strategy_class(dialect: str) -> type[DatabaseStrategy]:
    """Look up the registered strategy class.

    Raises ValueError naming the registered dialects when ``dialect`` has
    no strategy.
    """
    try:
        return _STRATEGY_REGISTRY[dialect]
    except KeyError:
        raise ValueError(f'Unsupported dialect: {dialect}. '
                         f'Available: {get_available_dialects()}') from None


@lru_cache(maxsize=8)
def get_strategy(dialect: str) -> DatabaseStrategy:
    """Shared strategy instance for a dialect name."""
    return get_strategy_class(dialect)()


def get_db_strategy(obj) -> DatabaseStrategy:
    """Shared strategy instance for a pool, connection or engine."""
    return get_strategy(get_dialect_name(obj))
