"""
Unit tests for the pytest failure sink helpers.
"""
import psycopg
import pytest
from schemata.factory import SchemaFactory
from schemata.testing import isolated_schema, provision_or_fail
from schemata.testing import release_or_fail

from tests.fixtures.mocks import FakeConnection


def test_provision_or_fail_returns_bound_connection(fake_pool):
    factory = SchemaFactory(fake_pool, 'fixtures', 'test')
    cn = provision_or_fail(factory, 'users')
    assert cn.current_schema == 'test_0'


def test_provision_or_fail_fails_test(make_fake_pool):
    pool = make_fake_pool(failures={'"missing"': psycopg.errors.UndefinedTable('relation does not exist')})
    factory = SchemaFactory(pool, 'fixtures', 'test')

    with pytest.raises(pytest.fail.Exception, match='TableCloneError: .*relation does not exist'):
        provision_or_fail(factory, 'missing')


def test_release_or_fail_reports_guard(fake_pool):
    factory = SchemaFactory(fake_pool, 'fixtures', 'test')

    with pytest.raises(pytest.fail.Exception, match='SourceSchemaViolation'):
        release_or_fail(factory, FakeConnection(current_schema='fixtures'))


def test_isolated_schema_round_trip(fake_pool):
    factory = SchemaFactory(fake_pool, 'fixtures', 'test')
    with isolated_schema(factory, 'users') as cn:
        assert cn.current_schema == 'test_0'
    assert fake_pool.released == [(cn, False)]
    assert factory.outstanding() == []


def test_release_or_fail_reports_double_release(fake_pool):
    factory = SchemaFactory(fake_pool, 'fixtures', 'test')
    cn = provision_or_fail(factory, 'users')
    release_or_fail(factory, cn)

    with pytest.raises(pytest.fail.Exception, match='CurrentSchemaError: connection already released'):
        release_or_fail(factory, cn)


def test_isolated_schema_keeps_body_error(make_fake_pool, caplog):
    pool = make_fake_pool(failures={'drop schema': psycopg.OperationalError('cannot drop')})
    factory = SchemaFactory(pool, 'fixtures', 'test')

    with pytest.raises(RuntimeError, match='assertion in test body'):
        with isolated_schema(factory, 'users'):
            raise RuntimeError('assertion in test body')

    assert 'SchemaDropError' in caplog.text
    assert pool.released[0][1] is True


if __name__ == '__main__':
    __import__('pytest').main([__file__])
