"""
Pytest configuration and shared fixtures for listing tests

Two kinds of fixtures:
- fake_db: a recording execution handle returning canned rows (unit tests)
- db_connection: a DatabaseConnection on a fresh PostgreSQL test database
  (integration tests; skipped when no server is reachable)
"""

import os
import sys
from pathlib import Path

import asyncpg
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import DatabaseConfig, ListingConfig
from database import DatabaseConnection
from tests.test_config import TEST_DB_CONFIG, SCHEMA_FILE
from tests.test_fixtures import FakeDatabase, SampleDataFactory


def pytest_configure(config):
    """Mark that we're in test mode"""
    os.environ['PYTEST_RUNNING'] = '1'


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def listing_config():
    """Listing defaults independent of the environment"""
    return ListingConfig(default_limit=10, default_offset=0)


# ============================================================================
# Integration fixtures
# ============================================================================

async def _sys_connect():
    return await asyncpg.connect(
        host=TEST_DB_CONFIG['host'],
        port=TEST_DB_CONFIG['port'],
        user=TEST_DB_CONFIG['user'],
        password=TEST_DB_CONFIG['password'],
        database='postgres',
        ssl='prefer'
    )


async def _create_test_database():
    """Create test database, skipping the test when PostgreSQL is unavailable"""
    try:
        sys_conn = await _sys_connect()
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    try:
        await sys_conn.execute(f'DROP DATABASE IF EXISTS {TEST_DB_CONFIG["database"]}')
        await sys_conn.execute(f'CREATE DATABASE {TEST_DB_CONFIG["database"]}')
    finally:
        await sys_conn.close()


async def _setup_schema():
    """Load schema into test database"""
    conn = await asyncpg.connect(
        host=TEST_DB_CONFIG['host'],
        port=TEST_DB_CONFIG['port'],
        user=TEST_DB_CONFIG['user'],
        password=TEST_DB_CONFIG['password'],
        database=TEST_DB_CONFIG['database'],
        ssl='prefer'
    )

    try:
        with open(SCHEMA_FILE, 'r', encoding='utf-8') as f:
            schema_sql = f.read()

        await conn.execute(schema_sql)
    finally:
        await conn.close()


async def _drop_test_database():
    """Drop the test database"""
    sys_conn = await _sys_connect()

    try:
        await sys_conn.execute(f"""
            SELECT pg_terminate_backend(pg_stat_activity.pid)
            FROM pg_stat_activity
            WHERE pg_stat_activity.datname = '{TEST_DB_CONFIG["database"]}'
              AND pid <> pg_backend_pid()
        """)
        await sys_conn.execute(f'DROP DATABASE IF EXISTS {TEST_DB_CONFIG["database"]}')
    finally:
        await sys_conn.close()


@pytest.fixture(scope="function")
async def db_connection():
    """
    DatabaseConnection on a fresh test database.

    Each test gets a new database built from schema.sql; it is dropped afterwards.
    """
    await _create_test_database()
    await _setup_schema()

    config = DatabaseConfig(
        host=TEST_DB_CONFIG['host'],
        port=TEST_DB_CONFIG['port'],
        database=TEST_DB_CONFIG['database'],
        user=TEST_DB_CONFIG['user'],
        password=TEST_DB_CONFIG['password'],
        ssl_mode='prefer',
    )
    config.validate_safety('test')

    db = DatabaseConnection(config)
    await db.connect()

    yield db

    await db.disconnect()
    await _drop_test_database()


@pytest.fixture(scope="function")
async def sample_data(db_connection):
    """SampleDataFactory bound to the test database"""
    yield SampleDataFactory(db_connection.pool)
