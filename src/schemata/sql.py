"""
SQL text helpers shared by the dialect strategies.
"""
import re

__all__ = [
    'quote_identifier',
    'qualify',
    'escape_literal',
    'is_simple_identifier',
]

_SIMPLE_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def quote_identifier(identifier: str, dialect: str = 'postgresql') -> str:
    """Safely quote database identifiers.

    Parameters
        identifier: Schema or table name
        dialect: Database dialect

    Returns
        Quoted identifier

    Raises
        ValueError: If dialect is unsupported
    """
    if dialect == 'postgresql':
        return '"' + identifier.replace('"', '""') + '"'

    raise ValueError(f'Unknown dialect: {dialect}')


def qualify(schema: str, table: str, dialect: str = 'postgresql') -> str:
    """Return the quoted ``schema.table`` reference.
    """
    return f'{quote_identifier(schema, dialect)}.{quote_identifier(table, dialect)}'


def escape_literal(s: str) -> str:
    """Escape a string for use inside a single-quoted SQL literal."""
    return s.replace("'", "''")


def is_simple_identifier(name: str) -> bool:
    """Check that a name is a plain unquoted-style identifier."""
    return bool(name) and bool(_SIMPLE_IDENTIFIER.match(name))
