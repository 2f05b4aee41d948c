"""
Fake pool and connection for schema factory unit tests.

The fake connection records every statement, tracks the session schema the
way PostgreSQL does for SET SCHEMA / RESET search_path, and raises a
configured error for any statement containing a given fragment.

Usage:
    def test_provision(fake_pool):
        factory = SchemaFactory(fake_pool, 'fixtures', 'test')
        cn = factory.provision('users')
        assert cn.statements[-1].startswith('create table')
"""
import pytest

SOURCE_SCHEMA = 'fixtures'


class FakeConnection:
    """Stands in for ConnectionWrapper."""

    dialect = 'postgresql'

    def __init__(self, current_schema=SOURCE_SCHEMA, failures=None):
        self.current_schema = current_schema
        self.failures = dict(failures or {})
        self.statements = []
        self.closed = False
        self.invalidated = False

    def _check(self, sql):
        for fragment, exc in self.failures.items():
            if fragment in sql:
                raise exc

    def execute(self, sql, *args):
        self.statements.append(sql)
        self._check(sql)
        if sql.startswith('set schema'):
            self.current_schema = sql.split("'")[1]
        elif sql == 'reset search_path':
            self.current_schema = 'public'
        return 0

    def select_scalar(self, sql, *args):
        self.statements.append(sql)
        self._check(sql)
        return self.current_schema

    def invalidate(self):
        self.invalidated = True

    def close(self):
        self.closed = True


class FakePool:
    """Stands in for ConnectionPool; records checkouts and returns."""

    dialect = 'postgresql'

    def __init__(self, failures=None, acquire_error=None):
        self.failures = failures
        self.acquire_error = acquire_error
        self.acquired = []
        self.released = []

    def acquire(self):
        if self.acquire_error is not None:
            raise self.acquire_error
        cn = FakeConnection(failures=self.failures)
        self.acquired.append(cn)
        return cn

    def release(self, cn, invalidate=False):
        if invalidate:
            cn.invalidate()
        cn.close()
        self.released.append((cn, invalidate))


@pytest.fixture
def fake_pool():
    """A pool whose connections never fail."""
    return FakePool()


@pytest.fixture
def make_fake_pool():
    """Factory for pools whose connections fail on matching statements.

    Example usage:
        def test_drop_failure(make_fake_pool):
            pool = make_fake_pool(failures={'drop schema': error})
    """
    def factory(failures=None, acquire_error=None):
        return FakePool(failures=failures, acquire_error=acquire_error)

    return factory
