from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from app.shiptrack.db.enums import ShipmentStatus
from app.shiptrack.db.models import Shipment


@dataclass(frozen=True)
class ShipmentQueryFilters:
    client_id: str | None = None
    batch_id: str | None = None
    status: ShipmentStatus | None = None
    limit: int | None = None


class ShipmentRepository:
    def __init__(self, db):
        self.db = db

    def get(self, shipment_id) -> Shipment | None:
        return self.db.get(Shipment, shipment_id)

    def get_with_events(self, shipment_id) -> Shipment | None:
        return (
            self.db.execute(
                select(Shipment)
                .where(Shipment.id == shipment_id)
                .options(selectinload(Shipment.events), selectinload(Shipment.batch))
            )
            .scalars()
            .first()
        )

    def list_shipments(self, filters: ShipmentQueryFilters) -> list[Shipment]:
        query = select(Shipment).options(selectinload(Shipment.batch))
        if filters.client_id:
            query = query.where(Shipment.client_id == filters.client_id)
        if filters.batch_id:
            query = query.where(Shipment.batch_id == filters.batch_id)
        if filters.status:
            query = query.where(Shipment.status == filters.status)
        query = query.order_by(Shipment.created_at.desc())
        if filters.limit:
            query = query.limit(filters.limit)
        return self.db.execute(query).scalars().all()

    def list_unassigned(self) -> list[Shipment]:
        query = select(Shipment).where(Shipment.batch_id.is_(None)).order_by(Shipment.created_at.desc())
        return self.db.execute(query).scalars().all()

    def list_by_batch(self, batch_id) -> list[Shipment]:
        return (
            self.db.execute(select(Shipment).where(Shipment.batch_id == batch_id).order_by(Shipment.created_at))
            .scalars()
            .all()
        )

    def add(self, shipment: Shipment) -> Shipment:
        self.db.add(shipment)
        self.db.flush()
        return shipment
