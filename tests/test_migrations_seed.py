import os
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, func, inspect, select
from sqlalchemy.orm import sessionmaker

from app.shiptrack.core.config import settings
from app.shiptrack.db.models import Branch, Carrier, Port, Warehouse
from app.shiptrack.db.seed import run_seed


def _run_migrations(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


def test_migrations_apply(tmp_path: Path):
    database_url = f"sqlite+pysqlite:///{tmp_path / 'migrations.db'}"
    _run_migrations(database_url)

    inspector = inspect(create_engine(database_url, future=True))
    tables = set(inspector.get_table_names())

    assert {"branches", "warehouses", "ports", "carriers", "clients", "batches", "shipments", "shipment_events"} <= tables
    batch_columns = {column["name"] for column in inspector.get_columns("batches")}
    assert {"shipment_count", "total_weight", "version", "carrier_assigned_at"} <= batch_columns
    event_indexes = [index["name"] for index in inspector.get_indexes("shipment_events")]
    assert event_indexes.count("ix_shipment_events_shipment_created") == 1


def test_seed_is_idempotent(tmp_path: Path):
    database_url = f"sqlite+pysqlite:///{tmp_path / 'seed.db'}"
    _run_migrations(database_url)

    SessionLocal = sessionmaker(bind=create_engine(database_url, future=True), future=True)
    models = (Branch, Warehouse, Port, Carrier)

    with SessionLocal() as db:
        first = run_seed(db)
        counts = [db.scalar(select(func.count()).select_from(model)) for model in models]

        second = run_seed(db)
        counts_after = [db.scalar(select(func.count()).select_from(model)) for model in models]

        assert counts == [1, 1, 1, 1]
        assert counts_after == counts
        assert first["branch"].id == second["branch"].id
        assert first["branch"].name == settings.DEFAULT_BRANCH_NAME
