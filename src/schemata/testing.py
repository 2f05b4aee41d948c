"""
pytest failure sink for the schema factory.

`SchemaFactory` raises on failure and leaves aborting to the caller. These
helpers are that caller for pytest: any error fails the current test
immediately with the database message, and their own frames are hidden from
the traceback so the failure points at the test.

    @pytest.fixture
    def cn(factory):
        with isolated_schema(factory, 'users', 'orders') as cn:
            yield cn
"""
import logging
from collections.abc import Iterator
from contextlib import contextmanager

import pytest
from schemata.connection import ConnectionWrapper
from schemata.exceptions import DatabaseError
from schemata.factory import SchemaFactory

__all__ = ['provision_or_fail', 'release_or_fail', 'isolated_schema']

logger = logging.getLogger(__name__)


def provision_or_fail(factory: SchemaFactory, *tables: str) -> ConnectionWrapper:
    """Provision a schema or fail the calling test.
    """
    __tracebackhide__ = True
    try:
        return factory.provision(*tables)
    except DatabaseError as err:
        pytest.fail(f'{type(err).__name__}: {err}', pytrace=False)


def release_or_fail(factory: SchemaFactory, cn: ConnectionWrapper) -> None:
    """Release a schema or fail the calling test.
    """
    __tracebackhide__ = True
    try:
        factory.release(cn)
    except DatabaseError as err:
        pytest.fail(f'{type(err).__name__}: {err}', pytrace=False)


@contextmanager
def isolated_schema(factory: SchemaFactory, *tables: str) -> Iterator[ConnectionWrapper]:
    """Context-manager form of `provision_or_fail` / `release_or_fail`.

    When the block raises, its exception propagates even if the release
    fails as well; the release error is logged.
    """
    __tracebackhide__ = True
    cn = provision_or_fail(factory, *tables)
    try:
        yield cn
    except BaseException:
        try:
            factory.release(cn)
        except DatabaseError as err:
            logger.error(f'Release after failed test body also failed: {type(err).__name__}: {err}')
        raise
    release_or_fail(factory, cn)
