"""Batch membership changes and the denormalised counters that follow them.

``shipment_count`` and ``total_weight`` on a batch always move together with
the shipment's ``batch_id``: both sides are written in one transaction while
the batch row is locked, and the batch ``version`` column rejects a write
based on a stale read.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from app.shiptrack.core.context import RequestContext
from app.shiptrack.core.error_catalog import AppError, ErrorCatalog, invalid_state, not_found
from app.shiptrack.core.logging import log_event
from app.shiptrack.db.enums import BatchStatus, ShipmentEventType, ShipmentStatus
from app.shiptrack.db.models import Batch, Shipment
from app.shiptrack.db.unit_of_work import UnitOfWork
from app.shiptrack.services.shipment_events import ShipmentEventRecorder

logger = logging.getLogger(__name__)

_MEMBERSHIP_STATUSES = (BatchStatus.OPEN,)


@dataclass(frozen=True)
class BatchAggregates:
    shipment_count: int
    total_weight: Decimal

    @classmethod
    def recompute(cls, uow: UnitOfWork, batch_id) -> "BatchAggregates":
        count, weight = uow.batches.membership_totals(batch_id)
        return cls(shipment_count=count, total_weight=weight)

    def matches(self, batch: Batch) -> bool:
        return self.shipment_count == batch.shipment_count and self.total_weight == Decimal(batch.total_weight)


class MembershipService:
    def __init__(self, uow: UnitOfWork, context: RequestContext | None = None):
        self.uow = uow
        self.context = context
        self.events = ShipmentEventRecorder(uow.shipment_events)

    def _actor(self) -> str | None:
        return self.context.user_id if self.context else None

    def _load_pair(self, batch_id, shipment_id) -> tuple[Batch, Shipment]:
        batch = self.uow.batches.get_for_update(batch_id)
        if batch is None:
            raise not_found("Batch", batch_id)
        shipment = self.uow.shipments.get(shipment_id)
        if shipment is None:
            raise not_found("Shipment", shipment_id)
        if batch.status not in _MEMBERSHIP_STATUSES:
            raise invalid_state("Batch", batch.status, _MEMBERSHIP_STATUSES)
        return batch, shipment

    def add_shipment(self, batch_id, shipment_id) -> Batch:
        with self.uow.transaction():
            batch, shipment = self._load_pair(batch_id, shipment_id)
            if shipment.batch_id is not None:
                raise AppError(
                    ErrorCatalog.CONFLICT,
                    details={"shipment_id": str(shipment.id), "batch_id": str(shipment.batch_id)},
                    message="Shipment is already assigned to a batch",
                )
            shipment.batch_id = batch.id
            shipment.status = ShipmentStatus.IN_BATCH
            batch.shipment_count += 1
            batch.total_weight = Decimal(batch.total_weight) + Decimal(shipment.weight)
            self.events.append(
                shipment.id,
                ShipmentEventType.ADDED_TO_BATCH,
                f"Added to batch {batch.name}",
                actor_user_id=self._actor(),
            )
        log_event(
            logger,
            "batch.shipment_added",
            batch_id=str(batch.id),
            shipment_id=str(shipment.id),
            shipment_count=batch.shipment_count,
            total_weight=batch.total_weight,
        )
        return batch

    def remove_shipment(self, batch_id, shipment_id) -> Batch:
        with self.uow.transaction():
            batch, shipment = self._load_pair(batch_id, shipment_id)
            if shipment.batch_id != batch.id:
                raise AppError(
                    ErrorCatalog.CONFLICT,
                    details={"shipment_id": str(shipment.id), "batch_id": str(batch.id)},
                    message="Shipment is not a member of this batch",
                )
            shipment.batch_id = None
            # Cancelled and other shipment-owned statuses survive leaving the batch.
            if shipment.status == ShipmentStatus.IN_BATCH:
                shipment.status = ShipmentStatus.CREATED
            batch.shipment_count -= 1
            batch.total_weight = Decimal(batch.total_weight) - Decimal(shipment.weight)
            self.events.append(
                shipment.id,
                ShipmentEventType.REMOVED_FROM_BATCH,
                f"Removed from batch {batch.name}",
                actor_user_id=self._actor(),
            )
        log_event(
            logger,
            "batch.shipment_removed",
            batch_id=str(batch.id),
            shipment_id=str(shipment.id),
            shipment_count=batch.shipment_count,
            total_weight=batch.total_weight,
        )
        return batch
