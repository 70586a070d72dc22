"""
Fixtures for PostgreSQL-specific integration tests.
"""
import pytest

from tests.fixtures.postgres import raw_connection


@pytest.fixture
def raw_conn(psql_docker):
    """Plain psycopg connection with autocommit, composite not registered."""
    with raw_connection() as conn:
        yield conn
