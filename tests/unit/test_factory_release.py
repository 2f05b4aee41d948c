"""
Unit tests for SchemaFactory.release and the schema context manager.
"""
import psycopg
import pytest
from schemata.exceptions import CurrentSchemaError, QueryError
from schemata.exceptions import SchemaDropError, SchemaMismatchError
from schemata.exceptions import SearchPathResetError, SourceSchemaViolation
from schemata.factory import SchemaFactory

from tests.fixtures.mocks import FakeConnection


@pytest.fixture
def factory(fake_pool):
    return SchemaFactory(fake_pool, 'fixtures', 'test')


def test_release_drops_schema_and_returns_connection(factory, fake_pool):
    cn = factory.provision('users')
    cn.statements.clear()

    factory.release(cn)

    assert cn.statements == [
        'select current_schema()',
        'drop schema "test_0" cascade',
        'reset search_path',
    ]
    assert fake_pool.released == [(cn, False)]
    assert cn.closed
    assert not cn.invalidated
    assert factory.outstanding() == []


def test_release_refuses_source_schema(factory, fake_pool):
    """A connection never rebound must not drop the source schema."""
    cn = FakeConnection(current_schema='fixtures')

    with pytest.raises(SourceSchemaViolation, match='same as source schema') as exc:
        factory.release(cn)

    assert exc.value.schema == 'fixtures'
    assert not any(s.startswith('drop') for s in cn.statements)
    assert fake_pool.released == [(cn, True)]


def test_guard_runs_even_for_issued_connection(factory, fake_pool):
    cn = factory.provision('users')
    cn.execute("set schema 'fixtures'")

    with pytest.raises(SourceSchemaViolation):
        factory.release(cn)

    assert not any(s.startswith('drop') for s in cn.statements)
    assert factory.outstanding() == []


def test_release_refuses_schema_it_did_not_issue(factory, fake_pool):
    cn = factory.provision('users')
    cn.execute("set schema 'somewhere_else'")

    with pytest.raises(SchemaMismatchError, match='somewhere_else'):
        factory.release(cn)

    assert not any(s.startswith('drop') for s in cn.statements)
    assert fake_pool.released == [(cn, True)]


def test_release_refuses_unknown_connection(factory, fake_pool):
    cn = FakeConnection(current_schema='test_0')

    with pytest.raises(SchemaMismatchError, match='provisioned nothing'):
        factory.release(cn)

    assert not any(s.startswith('drop') for s in cn.statements)


def test_current_schema_failure(make_fake_pool):
    pool = make_fake_pool(failures={'current_schema': psycopg.OperationalError('connection lost')})
    factory = SchemaFactory(pool, 'fixtures', 'test')
    cn = factory.provision('users')

    with pytest.raises(CurrentSchemaError, match='connection lost') as exc:
        factory.release(cn)

    assert exc.value.schema == 'test_0'
    assert pool.released == [(cn, True)]


def test_current_schema_wrong_shape(factory, fake_pool, mocker):
    cn = factory.provision('users')
    mocker.patch.object(cn, 'select_scalar', side_effect=QueryError('Expected one row, got 0'))

    with pytest.raises(CurrentSchemaError, match='Expected one row'):
        factory.release(cn)


def test_drop_failure_still_releases_connection(make_fake_pool):
    error = psycopg.errors.DependentObjectsStillExist('cannot drop schema')
    pool = make_fake_pool(failures={'drop schema': error})
    factory = SchemaFactory(pool, 'fixtures', 'test')
    cn = factory.provision('users')

    with pytest.raises(SchemaDropError, match='cannot drop schema') as exc:
        factory.release(cn)

    assert exc.value.__cause__ is error
    assert pool.released == [(cn, True)]
    assert factory.outstanding() == []


def test_release_twice_reports_closed_connection(factory, fake_pool):
    cn = factory.provision('users')
    factory.release(cn)
    statements = list(cn.statements)

    with pytest.raises(CurrentSchemaError, match='already released'):
        factory.release(cn)

    assert cn.statements == statements
    assert fake_pool.released == [(cn, False), (cn, True)]


def test_reset_failure_reports_completed_drop(make_fake_pool):
    error = psycopg.OperationalError('server closed the connection')
    pool = make_fake_pool(failures={'reset search_path': error})
    factory = SchemaFactory(pool, 'fixtures', 'test')
    cn = factory.provision('users')

    with pytest.raises(SearchPathResetError, match='dropped schema test_0 but') as exc:
        factory.release(cn)

    assert exc.value.schema == 'test_0'
    assert 'drop schema "test_0" cascade' in cn.statements
    assert pool.released == [(cn, True)]


def test_names_not_reused_after_release(factory):
    cn = factory.provision('users')
    factory.release(cn)
    cn = factory.provision('users')
    assert cn.current_schema == 'test_1'


def test_schema_context_manager(factory, fake_pool):
    with factory.schema('users') as cn:
        assert cn.current_schema == 'test_0'
        assert factory.outstanding() == ['test_0']

    assert 'drop schema "test_0" cascade' in cn.statements
    assert fake_pool.released == [(cn, False)]


def test_schema_context_manager_releases_on_error(factory, fake_pool):
    with pytest.raises(RuntimeError), factory.schema('users') as cn:
        raise RuntimeError('test body failed')

    assert 'drop schema "test_0" cascade' in cn.statements
    assert factory.outstanding() == []


if __name__ == '__main__':
    __import__('pytest').main([__file__])
