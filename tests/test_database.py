"""
Tests for the asyncpg execution handle against the PostgreSQL test database.
"""

import pytest

import database
from config import DatabaseConfig
from query import ListingError, StatementExecutionError
from query.articles import Articles
from tests.test_config import TEST_DB_CONFIG


class TestDatabaseConnection:

    @pytest.mark.asyncio
    async def test_backend_errors_are_not_wrapped(self, db_connection):
        with pytest.raises(StatementExecutionError) as exc:
            await db_connection.fetch('SELECT * FROM "Missing"')

        assert not isinstance(exc.value, ListingError)
        # the connection was reset and returned to the pool
        assert [dict(r) for r in await db_connection.fetch("SELECT 1 AS one")] == [{"one": 1}]

    @pytest.mark.asyncio
    async def test_fetch_before_connect(self):
        db = database.DatabaseConnection(DatabaseConfig(**TEST_DB_CONFIG))
        with pytest.raises(RuntimeError, match="not connected"):
            await db.fetch("SELECT 1")


class TestModuleConnection:

    @pytest.mark.asyncio
    async def test_init_list_and_close(self, db_connection, listing_config):
        db = await database.init_database(DatabaseConfig(**TEST_DB_CONFIG))
        try:
            assert database.get_database() is db

            articles = Articles(database.get_database(), config=listing_config)
            await articles.set_data()
            assert (articles.data, articles.total) == ((), 0)
        finally:
            await database.close_database()

        assert database._db_instance is None
        assert db.pool is None
