import logging

from sqlalchemy import select

from app.shiptrack.core.config import settings
from app.shiptrack.core.logging import configure_logging, log_event
from app.shiptrack.db.models import Branch, Carrier, Port, Warehouse

logger = logging.getLogger(__name__)


def _get_or_create(db, model, name: str, **fields):
    record = db.execute(select(model).where(model.name == name)).scalars().first()
    if record:
        return record, False
    record = model(name=name, **fields)
    db.add(record)
    db.flush()
    return record, True


def run_seed(db) -> dict:
    branch, branch_created = _get_or_create(
        db, Branch, settings.DEFAULT_BRANCH_NAME, address=settings.DEFAULT_BRANCH_ADDRESS
    )
    warehouse, warehouse_created = _get_or_create(db, Warehouse, settings.DEFAULT_WAREHOUSE_NAME)
    port, port_created = _get_or_create(db, Port, settings.DEFAULT_PORT_NAME, country=settings.DEFAULT_PORT_COUNTRY)
    carrier, carrier_created = _get_or_create(db, Carrier, settings.DEFAULT_CARRIER_NAME)
    db.commit()
    created = {
        "branch": branch_created,
        "warehouse": warehouse_created,
        "port": port_created,
        "carrier": carrier_created,
    }
    log_event(logger, "seed.completed", created=created)
    return {"branch": branch, "warehouse": warehouse, "port": port, "carrier": carrier}


if __name__ == "__main__":
    from app.shiptrack.db.session import SessionLocal

    configure_logging()
    session = SessionLocal()
    try:
        run_seed(session)
    finally:
        session.close()
