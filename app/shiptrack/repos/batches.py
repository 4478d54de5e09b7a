from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from app.shiptrack.db.enums import BatchStatus
from app.shiptrack.db.models import Batch, Shipment


@dataclass(frozen=True)
class BatchQueryFilters:
    branch_id: str | None = None
    status: BatchStatus | None = None


class BatchRepository:
    def __init__(self, db):
        self.db = db

    def get(self, batch_id) -> Batch | None:
        return self.db.get(Batch, batch_id)

    def get_for_update(self, batch_id) -> Batch | None:
        return (
            self.db.execute(select(Batch).where(Batch.id == batch_id).with_for_update())
            .scalars()
            .first()
        )

    def get_with_shipments(self, batch_id) -> Batch | None:
        return (
            self.db.execute(
                select(Batch)
                .where(Batch.id == batch_id)
                .options(selectinload(Batch.shipments), selectinload(Batch.branch))
            )
            .scalars()
            .first()
        )

    def list_batches(self, filters: BatchQueryFilters) -> list[Batch]:
        query = select(Batch).options(selectinload(Batch.branch))
        if filters.branch_id:
            query = query.where(Batch.branch_id == filters.branch_id)
        if filters.status:
            query = query.where(Batch.status == filters.status)
        return self.db.execute(query.order_by(Batch.created_at.desc())).scalars().all()

    def add(self, batch: Batch) -> Batch:
        self.db.add(batch)
        self.db.flush()
        return batch

    def membership_totals(self, batch_id) -> tuple[int, Decimal]:
        query = (
            select(func.count(Shipment.id), func.coalesce(func.sum(Shipment.weight), 0))
            .where(Shipment.batch_id == batch_id)
            .select_from(Shipment)
        )
        count, weight = self.db.execute(query).one()
        return int(count or 0), Decimal(str(weight or 0))
