from libb import Setting

Setting.unlock()

postgresql = Setting()
postgresql.drivername='postgresql'
postgresql.hostname='localhost'
postgresql.username='postgres'
postgresql.password='postgres'
postgresql.database='test_db'
postgresql.port=5432
postgresql.timeout=30
postgresql.use_pool=True
postgresql.pool_max_connections=5
postgresql.pool_max_idle_time=600
postgresql.pool_wait_timeout=30

schemata = Setting()
schemata.source_schema='fixtures'
schemata.schema_prefix='it'

Setting.lock()
