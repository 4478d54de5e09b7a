"""Bulk carrier assignment for a batch sitting in its destination warehouse.

The whole request is one transaction: every row is validated while the
updates accumulate in the session, and the first bad row rolls all of them
back. Nothing is committed unless every assignment is valid.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from app.shiptrack.core.context import RequestContext
from app.shiptrack.core.error_catalog import AppError, ErrorCatalog, not_found
from app.shiptrack.core.logging import log_event
from app.shiptrack.core.metrics import metrics
from app.shiptrack.db.enums import ShipmentEventType, ShipmentStatus
from app.shiptrack.db.models import Batch, utcnow
from app.shiptrack.db.unit_of_work import UnitOfWork
from app.shiptrack.services.batch_state_machine import (
    BatchOperation,
    TransitionParams,
    apply_transition,
    check_transition,
)
from app.shiptrack.services.shipment_events import ShipmentEventRecorder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CarrierAssignment:
    shipment_id: object
    carrier_id: object


class CarrierAssignmentService:
    def __init__(self, uow: UnitOfWork, context: RequestContext | None = None):
        self.uow = uow
        self.context = context
        self.events = ShipmentEventRecorder(uow.shipment_events)

    def _actor(self) -> str | None:
        return self.context.user_id if self.context else None

    def assign(self, batch_id, assignments: list[CarrierAssignment]) -> Batch:
        operation = BatchOperation.ASSIGN_CARRIERS
        batch = self.uow.batches.get_for_update(batch_id)
        if batch is None:
            self.uow.rollback()
            raise not_found("Batch", batch_id)
        try:
            check_transition(batch, operation)
        except AppError:
            self.uow.rollback()
            metrics.record_batch_transition(str(operation), "rejected")
            raise
        if not assignments:
            self.uow.rollback()
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"field": "assignments"},
                message="At least one carrier assignment is required",
            )

        now = utcnow()
        self.uow.begin()
        try:
            for position, assignment in enumerate(assignments):
                shipment = self.uow.shipments.get(assignment.shipment_id)
                if shipment is None or shipment.batch_id != batch.id:
                    raise AppError(
                        ErrorCatalog.VALIDATION_ERROR,
                        details={"index": position, "shipment_id": str(assignment.shipment_id)},
                        message=f"Shipment {assignment.shipment_id} not found in this batch",
                    )
                carrier = self.uow.carriers.get(assignment.carrier_id)
                if carrier is None:
                    raise AppError(
                        ErrorCatalog.VALIDATION_ERROR,
                        details={"index": position, "carrier_id": str(assignment.carrier_id)},
                        message=f"Carrier {assignment.carrier_id} not found",
                    )
                shipment.carrier_id = carrier.id
                shipment.status = ShipmentStatus.WITH_CARRIER
                self.events.append(
                    shipment.id,
                    ShipmentEventType.CARRIER_ASSIGNED,
                    f"Assigned to carrier {carrier.name}",
                    actor_user_id=self._actor(),
                    timestamp=now,
                )
            result = apply_transition(batch, operation, TransitionParams(now=now))
            self.uow.commit()
        except AppError as exc:
            self.uow.rollback()
            metrics.record_batch_transition(str(operation), "rejected")
            log_event(
                logger,
                "batch.carrier_assignment_rolled_back",
                batch_id=str(batch_id),
                reason=exc.message,
                details=exc.details,
                actor=self._actor(),
            )
            raise
        except Exception:
            self.uow.rollback()
            metrics.record_batch_transition(str(operation), "error")
            raise

        metrics.record_batch_transition(str(operation), "applied")
        log_event(
            logger,
            "batch.transition",
            batch_id=str(batch.id),
            operation=str(result.operation),
            previous=str(result.previous),
            current=str(result.current),
            assignments=len(assignments),
            actor=self._actor(),
        )
        return batch
