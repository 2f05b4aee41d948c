"""
Schema factory exception classes.
"""
import psycopg
import sqlalchemy.exc


class DatabaseError(Exception):
    """Base class for all schemata errors.
    """


class ConnectionFailure(DatabaseError):
    """Error acquiring a connection from the pool.
    """


class QueryError(DatabaseError):
    """Error in query execution or an unexpected result shape.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class SchemaError(DatabaseError):
    """Base class for errors raised while provisioning or releasing a schema.
    """

    def __init__(self, message: str, schema: str | None = None) -> None:
        super().__init__(message)
        self.schema = schema


class SchemaCreateError(SchemaError):
    """CREATE SCHEMA failed.
    """


class SchemaBindError(SchemaError):
    """Setting the session schema failed.
    """


class TableCloneError(SchemaError):
    """Cloning a source table into the new schema failed.

    Tables cloned before the failing one remain in the schema.
    """

    def __init__(self, message: str, schema: str | None = None,
                 table: str | None = None) -> None:
        super().__init__(message, schema)
        self.table = table


class CurrentSchemaError(SchemaError):
    """Querying the session's current schema failed.
    """


class SchemaDropError(SchemaError):
    """DROP SCHEMA failed.
    """


class SearchPathResetError(SchemaError):
    """The schema was dropped but the session search path could not be reset.

    The drop itself succeeded; only the connection is unusable.
    """


class SourceSchemaViolation(SchemaError):
    """The connection is still bound to the source schema.

    Raised before any drop is attempted. Signals a usage bug, not a
    transient database error.
    """


class SchemaMismatchError(SchemaError):
    """The live schema differs from the one recorded at provision time.
    """


DriverError = (
    psycopg.Error,
    sqlalchemy.exc.SQLAlchemyError,
    )
