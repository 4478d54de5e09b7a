"""Batch lifecycle transition table.

Every batch status change goes through ``apply_transition``. The table maps an
operation to the statuses it may start from, the status it ends in, an optional
guard run before anything is mutated and an optional effect that writes the
operation's extra fields. A failed check leaves the batch untouched.
"""
from __future__ import annotations

import enum
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from app.shiptrack.core.error_catalog import AppError, ErrorCatalog, invalid_state
from app.shiptrack.db.enums import BatchStatus, ShipmentStatus
from app.shiptrack.db.models import Batch, utcnow


class BatchOperation(str, enum.Enum):
    OPEN = "open"
    CLOSE = "close"
    MOVE_TO_WAREHOUSE = "move_to_warehouse"
    ASSIGN_DESTINATION_WAREHOUSE = "assign_destination_warehouse"
    MOVE_TO_SOURCE_PORT = "move_to_source_port"
    CLEAR_SOURCE_PORT = "clear_source_port"
    START_TRANSIT = "start_transit"
    MARK_ARRIVAL = "mark_arrival"
    MOVE_TO_DESTINATION_WAREHOUSE = "move_to_destination_warehouse"
    ASSIGN_CARRIERS = "assign_carriers"
    COMPLETE_DELIVERY = "complete_delivery"
    ARCHIVE = "archive"
    CANCEL = "cancel"

    def __str__(self) -> str:
        return self.value


@dataclass
class TransitionParams:
    warehouse_id: object | None = None
    source_port_id: object | None = None
    destination_port_id: object | None = None
    shipment_statuses: list[ShipmentStatus] = field(default_factory=list)
    now: datetime | None = None


Hook = Callable[[Batch, TransitionParams], None]
Resolver = Callable[[Batch, TransitionParams], BatchStatus]


@dataclass(frozen=True)
class Transition:
    operation: BatchOperation
    required: tuple[BatchStatus, ...]
    target: BatchStatus | None = None
    resolve_target: Resolver | None = None
    guard: Hook | None = None
    effect: Hook | None = None

    def target_for(self, batch: Batch, params: TransitionParams) -> BatchStatus:
        if self.resolve_target is not None:
            return self.resolve_target(batch, params)
        return self.target if self.target is not None else batch.status


@dataclass(frozen=True)
class TransitionResult:
    operation: BatchOperation
    previous: BatchStatus
    current: BatchStatus


def _ordered(statuses: Iterable[BatchStatus]) -> tuple[BatchStatus, ...]:
    wanted = set(statuses)
    return tuple(status for status in BatchStatus if status in wanted)


def _require_members(batch: Batch, params: TransitionParams) -> None:
    if batch.shipment_count <= 0:
        raise AppError(
            ErrorCatalog.INVALID_STATE,
            details={
                "entity": "Batch",
                "current": str(batch.status),
                "required": [str(BatchStatus.OPEN)],
                "shipment_count": batch.shipment_count,
            },
            message="Cannot close an empty batch",
        )


def _set_source_warehouse(batch: Batch, params: TransitionParams) -> None:
    batch.source_warehouse_id = params.warehouse_id


def _set_destination_warehouse(batch: Batch, params: TransitionParams) -> None:
    batch.destination_warehouse_id = params.warehouse_id


def _set_ports(batch: Batch, params: TransitionParams) -> None:
    batch.source_port_id = params.source_port_id
    if params.destination_port_id is not None:
        batch.destination_port_id = params.destination_port_id


def _stamp_carrier_assignment(batch: Batch, params: TransitionParams) -> None:
    batch.carrier_assigned_at = params.now or utcnow()


def _delivery_outcome(batch: Batch, params: TransitionParams) -> BatchStatus:
    deliverable = [status for status in params.shipment_statuses if status != ShipmentStatus.CANCELLED]
    delivered = sum(1 for status in deliverable if status == ShipmentStatus.DELIVERED)
    if deliverable and delivered == len(deliverable):
        return BatchStatus.DELIVERED
    if delivered:
        return BatchStatus.PARTIALLY_DELIVERED
    raise AppError(
        ErrorCatalog.INVALID_STATE,
        details={
            "entity": "Batch",
            "current": str(batch.status),
            "required": [str(BatchStatus.ASSIGNED_TO_CARRIERS)],
            "delivered_shipments": 0,
        },
        message="No shipment in the batch has been delivered",
    )


TRANSITIONS: dict[BatchOperation, Transition] = {
    transition.operation: transition
    for transition in (
        Transition(BatchOperation.OPEN, (BatchStatus.DRAFT,), BatchStatus.OPEN),
        Transition(BatchOperation.CLOSE, (BatchStatus.OPEN,), BatchStatus.CLOSED, guard=_require_members),
        Transition(
            BatchOperation.MOVE_TO_WAREHOUSE,
            (BatchStatus.CLOSED,),
            BatchStatus.IN_WAREHOUSE,
            effect=_set_source_warehouse,
        ),
        Transition(
            BatchOperation.ASSIGN_DESTINATION_WAREHOUSE,
            (BatchStatus.IN_WAREHOUSE, BatchStatus.AT_SOURCE_PORT),
            effect=_set_destination_warehouse,
        ),
        Transition(
            BatchOperation.MOVE_TO_SOURCE_PORT,
            (BatchStatus.IN_WAREHOUSE,),
            BatchStatus.AT_SOURCE_PORT,
            effect=_set_ports,
        ),
        Transition(BatchOperation.CLEAR_SOURCE_PORT, (BatchStatus.AT_SOURCE_PORT,), BatchStatus.CLEARED_SOURCE_PORT),
        Transition(BatchOperation.START_TRANSIT, (BatchStatus.CLEARED_SOURCE_PORT,), BatchStatus.IN_TRANSIT),
        Transition(BatchOperation.MARK_ARRIVAL, (BatchStatus.IN_TRANSIT,), BatchStatus.ARRIVED_DESTINATION_PORT),
        Transition(
            BatchOperation.MOVE_TO_DESTINATION_WAREHOUSE,
            (BatchStatus.ARRIVED_DESTINATION_PORT,),
            BatchStatus.IN_DESTINATION_WAREHOUSE,
            effect=_set_destination_warehouse,
        ),
        Transition(
            BatchOperation.ASSIGN_CARRIERS,
            (BatchStatus.IN_DESTINATION_WAREHOUSE,),
            BatchStatus.ASSIGNED_TO_CARRIERS,
            effect=_stamp_carrier_assignment,
        ),
        Transition(
            BatchOperation.COMPLETE_DELIVERY,
            (BatchStatus.ASSIGNED_TO_CARRIERS,),
            resolve_target=_delivery_outcome,
        ),
        Transition(
            BatchOperation.ARCHIVE,
            (BatchStatus.DELIVERED, BatchStatus.PARTIALLY_DELIVERED, BatchStatus.CANCELLED),
            BatchStatus.ARCHIVED,
        ),
        Transition(
            BatchOperation.CANCEL,
            _ordered(set(BatchStatus) - {BatchStatus.DELIVERED, BatchStatus.CANCELLED}),
            BatchStatus.CANCELLED,
        ),
    )
}


def get_transition(operation: BatchOperation) -> Transition:
    return TRANSITIONS[BatchOperation(operation)]


def check_transition(batch: Batch, operation: BatchOperation) -> Transition:
    transition = get_transition(operation)
    if batch.status not in transition.required:
        raise invalid_state("Batch", batch.status, transition.required)
    return transition


def apply_transition(
    batch: Batch,
    operation: BatchOperation,
    params: TransitionParams | None = None,
) -> TransitionResult:
    params = params or TransitionParams()
    transition = check_transition(batch, operation)
    if transition.guard is not None:
        transition.guard(batch, params)
    target = transition.target_for(batch, params)
    previous = batch.status
    if transition.effect is not None:
        transition.effect(batch, params)
    batch.status = target
    return TransitionResult(operation=transition.operation, previous=previous, current=target)


def allowed_operations(status: BatchStatus) -> list[BatchOperation]:
    return [operation for operation, transition in TRANSITIONS.items() if status in transition.required]
