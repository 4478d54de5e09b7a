from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from app.shiptrack.core.config import settings
from app.shiptrack.core.context import RequestContext
from app.shiptrack.core.error_catalog import AppError, ErrorCatalog, invalid_state, not_found, reference_not_found
from app.shiptrack.core.logging import log_event
from app.shiptrack.core.roles import is_client_only
from app.shiptrack.db.enums import BATCH_TERMINAL_STATUSES, BatchStatus, ShipmentEventType, ShipmentStatus
from app.shiptrack.db.models import Shipment
from app.shiptrack.db.unit_of_work import UnitOfWork
from app.shiptrack.repos.shipments import ShipmentQueryFilters
from app.shiptrack.services.shipment_events import ShipmentEventRecorder

logger = logging.getLogger(__name__)

_CANCEL_BLOCKED = (ShipmentStatus.DELIVERED, ShipmentStatus.CANCELLED)

# Statuses a shipment reaches on its own; the batch position never overrides them.
_SHIPMENT_OWNED_STATUSES = frozenset(
    {
        ShipmentStatus.OUT_FOR_DELIVERY,
        ShipmentStatus.DELIVERED,
        ShipmentStatus.RETURNED,
        ShipmentStatus.CANCELLED,
    }
)

_BATCH_TO_SHIPMENT_STATUS = {
    BatchStatus.DRAFT: ShipmentStatus.IN_BATCH,
    BatchStatus.OPEN: ShipmentStatus.IN_BATCH,
    BatchStatus.CLOSED: ShipmentStatus.IN_BATCH,
    BatchStatus.IN_WAREHOUSE: ShipmentStatus.IN_WAREHOUSE,
    BatchStatus.AT_SOURCE_PORT: ShipmentStatus.AT_SOURCE_PORT,
    BatchStatus.CLEARED_SOURCE_PORT: ShipmentStatus.AT_SOURCE_PORT,
    BatchStatus.IN_TRANSIT: ShipmentStatus.IN_TRANSIT,
    BatchStatus.ARRIVED_DESTINATION_PORT: ShipmentStatus.AT_DESTINATION_PORT,
    BatchStatus.IN_DESTINATION_WAREHOUSE: ShipmentStatus.AT_DESTINATION_PORT,
    BatchStatus.ASSIGNED_TO_CARRIERS: ShipmentStatus.WITH_CARRIER,
}


def project_shipment_status(
    batch_status: BatchStatus | None,
    carrier_id,
    stored: ShipmentStatus,
) -> ShipmentStatus:
    """Status a shipment shows given where its batch is in the pipeline.

    Shipment-owned statuses win, then a carrier assignment, then the batch
    position. Terminal batch statuses and unbatched shipments keep ``stored``.
    """
    if stored in _SHIPMENT_OWNED_STATUSES:
        return stored
    if carrier_id is not None:
        return ShipmentStatus.WITH_CARRIER
    if batch_status is None or batch_status in BATCH_TERMINAL_STATUSES:
        return stored
    return _BATCH_TO_SHIPMENT_STATUS.get(batch_status, stored)


def projected_status_for(shipment: Shipment) -> ShipmentStatus:
    batch_status = shipment.batch.status if shipment.batch is not None else None
    return project_shipment_status(batch_status, shipment.carrier_id, shipment.status)


class ShipmentService:
    def __init__(self, uow: UnitOfWork, context: RequestContext | None = None):
        self.uow = uow
        self.context = context
        self.events = ShipmentEventRecorder(uow.shipment_events)

    def _actor(self) -> str | None:
        return self.context.user_id if self.context else None

    def create_shipment(
        self,
        *,
        client_id,
        weight: Decimal,
        pickup_address: str,
        delivery_address: str,
        volume: Decimal | None = None,
    ) -> Shipment:
        if not self.uow.clients.exists(client_id):
            raise reference_not_found("Client", client_id, field="client_id")
        shipment = Shipment(
            client_id=client_id,
            status=ShipmentStatus.CREATED,
            weight=weight,
            volume=volume,
            pickup_address=pickup_address,
            delivery_address=delivery_address,
        )
        with self.uow.transaction():
            self.uow.shipments.add(shipment)
            self.events.append(
                shipment.id,
                ShipmentEventType.CREATED,
                "Shipment created",
                actor_user_id=self._actor(),
            )
        log_event(logger, "shipment.created", shipment_id=str(shipment.id), client_id=str(client_id))
        return shipment

    def get_shipment(self, shipment_id) -> Shipment:
        shipment = self.uow.shipments.get_with_events(shipment_id)
        if shipment is None:
            raise not_found("Shipment", shipment_id)
        if self.context is not None and is_client_only(self.context.roles):
            self._ensure_client_owns(shipment)
        return shipment

    def _ensure_client_owns(self, shipment: Shipment) -> None:
        try:
            user_id = uuid.UUID(str(self.context.user_id))
        except ValueError as exc:
            raise AppError(ErrorCatalog.PERMISSION_DENIED) from exc
        client = self.uow.clients.get_by_user_id(user_id)
        if client is None or client.id != shipment.client_id:
            raise AppError(ErrorCatalog.PERMISSION_DENIED, details={"shipment_id": str(shipment.id)})

    def list_shipments(self, *, client_id=None, batch_id=None, status: ShipmentStatus | None = None) -> list[Shipment]:
        filters = ShipmentQueryFilters(
            client_id=client_id,
            batch_id=batch_id,
            status=status,
            limit=settings.SHIPMENTS_LIST_MAX_ROWS,
        )
        return self.uow.shipments.list_shipments(filters)

    def list_unassigned(self) -> list[Shipment]:
        return self.uow.shipments.list_unassigned()

    def update_status(self, shipment_id, new_status: ShipmentStatus, notes: str | None = None) -> Shipment:
        # No precondition on the current status; carrier operators use this for corrections.
        with self.uow.transaction():
            shipment = self.uow.shipments.get(shipment_id)
            if shipment is None:
                raise not_found("Shipment", shipment_id)
            old_status = shipment.status
            shipment.status = new_status
            self.events.append(
                shipment.id,
                ShipmentEventType.STATUS_CHANGED,
                notes or f"Status changed from {old_status} to {new_status}",
                actor_user_id=self._actor(),
            )
        log_event(
            logger,
            "shipment.status_changed",
            shipment_id=str(shipment.id),
            previous=str(old_status),
            current=str(new_status),
            actor=self._actor(),
        )
        return shipment

    def cancel(self, shipment_id) -> Shipment:
        with self.uow.transaction():
            shipment = self.uow.shipments.get(shipment_id)
            if shipment is None:
                raise not_found("Shipment", shipment_id)
            if shipment.status in _CANCEL_BLOCKED:
                raise invalid_state(
                    "Shipment",
                    shipment.status,
                    [status for status in ShipmentStatus if status not in _CANCEL_BLOCKED],
                )
            shipment.status = ShipmentStatus.CANCELLED
            self.events.append(
                shipment.id,
                ShipmentEventType.CANCELLED,
                "Shipment cancelled",
                actor_user_id=self._actor(),
            )
        log_event(logger, "shipment.cancelled", shipment_id=str(shipment.id), actor=self._actor())
        return shipment
