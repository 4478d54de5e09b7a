import importlib
import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from alembic import command
from alembic.config import Config

from tests.db_utils import create_postgres_test_database


def _setup_app(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    os.environ["SECRET_KEY"] = "test-secret"

    import app.shiptrack.core.config as config
    import app.shiptrack.db.session as session
    import app.main as main

    importlib.reload(config)
    importlib.reload(session)
    importlib.reload(main)

    return main.create_app(), session


def _run_migrations(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


def _test_database_url(tmp_path: Path):
    database_url = os.getenv("DATABASE_URL", "")
    if database_url.startswith("postgres"):
        return create_postgres_test_database(database_url)
    return f"sqlite+pysqlite:///{tmp_path / 'test.db'}", None


@pytest.fixture()
def client(tmp_path: Path):
    database_url, cleanup = _test_database_url(tmp_path)

    _run_migrations(database_url)
    app, session = _setup_app(database_url)

    with TestClient(app) as client:
        yield client

    session.engine.dispose()
    if cleanup:
        cleanup()


@pytest.fixture()
def db_session(client):
    from app.shiptrack.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def master_data(db_session):
    from tests.shiptrack_helpers import create_master_data

    return create_master_data(db_session)
