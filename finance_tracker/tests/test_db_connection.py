# finance_tracker/tests/test_db_connection.py

import os

import pytest
from sqlalchemy import inspect
from sqlalchemy.pool import StaticPool

from finance_tracker.core.config import Settings
from finance_tracker.data.database import build_engine, check_db_connection, create_tables


def test_in_memory_sqlite_shares_one_connection():
    engine = build_engine("sqlite://")
    try:
        assert isinstance(engine.pool, StaticPool)
        assert check_db_connection(engine)
    finally:
        engine.dispose()


def test_create_tables_builds_the_schema(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'schema.db'}")
    try:
        create_tables(engine)
        tables = set(inspect(engine).get_table_names())
        assert {"users", "categories", "transactions", "login_tokens"} <= tables
    finally:
        engine.dispose()


def test_unreachable_database_reports_failure(tmp_path):
    # A path whose parent directory does not exist cannot be opened.
    engine = build_engine(f"sqlite:///{tmp_path / 'missing' / 'nope.db'}")
    try:
        assert check_db_connection(engine) is False
    finally:
        engine.dispose()


def test_configured_database_connection():
    """Connects to DATABASE_URL when one is configured (e.g. the Postgres of docker-compose)."""
    if not os.getenv("DATABASE_URL"):
        pytest.skip("DATABASE_URL não está definida")

    settings = Settings.from_env()
    engine = build_engine(settings.database_url)
    try:
        if not check_db_connection(engine):
            pytest.skip(f"Banco de dados indisponível em {settings.database_url}")
    finally:
        engine.dispose()
