# conftest.py - глобальный файл конфигурации pytest.
# Вместо настоящего Postgres подменяем asyncpg.connect на "сервер" в памяти.

import asyncpg
import pytest

from config import BootstrapSettings, DatabaseSettings


TARGET_DB = 'projectzdb'


# MockConnection - имитирует одно соединение asyncpg и понимает только запросы бутстрапа.
class MockConnection:
    def __init__(self, server, database):
        self.server = server
        self.database = database
        self.closed = False

    def _check_failures(self, query):
        for marker, exc in self.server.failures.items():
            if marker in query:
                raise exc

    def _tables(self):
        return self.server.tables.setdefault(self.database, {})

    # имитирует conn.fetchval(...)
    async def fetchval(self, query, *args):
        self.server.statements.append(query)
        self._check_failures(query)
        if 'pg_database' in query:
            return args[0] in self.server.databases
        return None

    # имитирует conn.execute(...)
    async def execute(self, query, *args):
        self.server.statements.append(query)
        self._check_failures(query)

        if 'CREATE DATABASE' in query:
            quoted = query.split('CREATE DATABASE', 1)[1].strip()
            name = quoted[1:-1].replace('""', '"')
            if name in self.server.databases:
                raise asyncpg.exceptions.DuplicateDatabaseError(f'database "{name}" already exists')
            self.server.databases.add(name)
            self.server.created_databases.append(name)
            return 'CREATE DATABASE'

        if 'CREATE TABLE IF NOT EXISTS public.Users' in query:
            self._tables().setdefault('users', {})
        if 'CREATE TABLE IF NOT EXISTS public.Products' in query:
            self._tables().setdefault('products', {})
        return 'CREATE TABLE'

    # имитирует conn.executemany(...)
    async def executemany(self, query, args_list):
        self.server.statements.append(query)
        self._check_failures(query)

        if 'INSERT INTO public.Users' in query:
            table, conflict = 'users', 'ON CONFLICT (Username) DO NOTHING'
        elif 'INSERT INTO public.Products' in query:
            table, conflict = 'products', 'ON CONFLICT (Name) DO NOTHING'
        else:
            raise AssertionError(f'unexpected statement: {query}')

        if table not in self._tables():
            raise asyncpg.exceptions.UndefinedTableError(f'relation "{table}" does not exist')

        rows = self._tables()[table]
        for key, value in args_list:
            if key in rows:
                if conflict not in query:
                    raise asyncpg.exceptions.UniqueViolationError('duplicate key value violates unique constraint')
                continue
            rows[key] = value
            self.server.inserted.append((table, key))

    async def close(self):
        if not self.closed:
            self.closed = True
            self.server.open_connections -= 1


# MockServer - "сервер" Postgres: список баз, таблиц и строк.
class MockServer:
    def __init__(self):
        self.databases = {'postgres'}
        self.created_databases = []
        # {имя БД: {имя таблицы: {уникальный ключ: значение}}}
        self.tables = {}
        self.statements = []
        self.inserted = []
        self.connections = []
        self.open_connections = 0
        # {кусок SQL: исключение} - заставляет соответствующий запрос упасть
        self.failures = {}
        self.connect_error = None

    def fail_on(self, marker, exc):
        self.failures[marker] = exc

    def rows(self, table, database=TARGET_DB):
        return self.tables.get(database, {}).get(table)

    async def connect(self, **kwargs):
        if self.connect_error is not None:
            raise self.connect_error
        database = kwargs['database']
        if database not in self.databases:
            raise asyncpg.exceptions.InvalidCatalogNameError(f'database "{database}" does not exist')
        self.connections.append(database)
        self.open_connections += 1
        return MockConnection(self, database)


# scope='function' - на каждый тест новый пустой сервер
@pytest.fixture(scope='function')
def pg_server(monkeypatch):
    server = MockServer()
    monkeypatch.setattr('asyncpg.connect', server.connect)
    yield server


@pytest.fixture
def db_settings():
    return DatabaseSettings(host='db', port=5432, user='postgres', password='secret', database=TARGET_DB)


@pytest.fixture
def bootstrap_settings(db_settings):
    return BootstrapSettings(database=db_settings)


# Переменные окружения для кода, который сам собирает настройки (main.py, init_db.py)
@pytest.fixture
def db_env(monkeypatch):
    for name in ('ConnectionStrings__projectzdb', 'DATABASE_URL', 'DB_ADMIN_NAME',
                 'DB_CONNECT_TIMEOUT', 'BOOTSTRAP_SEED', 'BOOTSTRAP_SEED_FILE', 'BOOTSTRAP_FAIL_FAST'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv('DB_HOST', 'db')
    monkeypatch.setenv('DB_PORT', '5432')
    monkeypatch.setenv('DB_USER', 'postgres')
    monkeypatch.setenv('DB_PASSWORD', 'secret')
    monkeypatch.setenv('DB_NAME', TARGET_DB)
    yield monkeypatch
