"""Persistence boundary used by the lifecycle services.

One ``UnitOfWork`` wraps one SQLAlchemy session. Repositories share that
session, so every mutation made through them lands in the same transaction
until ``commit`` or ``rollback`` is called.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from app.shiptrack.repos.batches import BatchRepository
from app.shiptrack.repos.master_data import (
    BranchRepository,
    CarrierRepository,
    ClientRepository,
    PortRepository,
    WarehouseRepository,
)
from app.shiptrack.repos.shipment_events import ShipmentEventRepository
from app.shiptrack.repos.shipments import ShipmentRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, db):
        self.db = db
        self.batches = BatchRepository(db)
        self.shipments = ShipmentRepository(db)
        self.shipment_events = ShipmentEventRepository(db)
        self.branches = BranchRepository(db)
        self.warehouses = WarehouseRepository(db)
        self.ports = PortRepository(db)
        self.carriers = CarrierRepository(db)
        self.clients = ClientRepository(db)

    def begin(self) -> None:
        if not self.db.in_transaction():
            self.db.begin()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def refresh(self, entity) -> None:
        self.db.refresh(entity)

    @contextmanager
    def transaction(self) -> Iterator["UnitOfWork"]:
        """Commit everything done inside the block, or roll all of it back."""
        self.begin()
        try:
            yield self
        except Exception:
            logger.debug("Rolling back unit of work")
            self.rollback()
            raise
        self.commit()
