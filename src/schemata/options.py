from dataclasses import dataclass

from schemata.sql import is_simple_identifier
from schemata.strategy import get_available_dialects, get_strategy_class
from schemata.strategy import is_supported_dialect

from libb import ConfigOptions, scriptname

__all__ = [
    'DatabaseOptions',
    'FactoryOptions',
]


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`

    Connection pooling options:
    - use_pool: Whether to use connection pooling (default: True)
    - pool_max_connections: Maximum connections in pool (default: 5)
    - pool_max_idle_time: Maximum seconds a connection can be idle (default: 300)
    - pool_wait_timeout: Maximum seconds to wait for a connection (default: 30)
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None
    # Connection pooling parameters
    use_pool: bool = True
    pool_max_connections: int = 5
    pool_max_idle_time: int = 300
    pool_wait_timeout: int = 30

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        self.appname = self.appname or scriptname() or 'python_console'
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)


@dataclass
class FactoryOptions(DatabaseOptions):
    """Database options plus the schema factory settings.

    - source_schema: Schema whose tables serve as templates (default: public)
    - schema_prefix: Prefix of generated schema names (default: test)
    """
    source_schema: str = 'public'
    schema_prefix: str = 'test'

    def __post_init__(self):
        super().__post_init__()
        if not self.source_schema:
            raise ValueError('source_schema cannot be empty')
        if not is_simple_identifier(self.schema_prefix):
            raise ValueError(f'schema_prefix must be a simple identifier, got {self.schema_prefix!r}')
