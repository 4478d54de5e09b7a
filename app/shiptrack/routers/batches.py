from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Body, Depends

from app.shiptrack.core import roles
from app.shiptrack.core.context import RequestContext
from app.shiptrack.core.deps import get_unit_of_work, require_roles
from app.shiptrack.db.enums import BatchStatus
from app.shiptrack.db.models import Batch
from app.shiptrack.db.unit_of_work import UnitOfWork
from app.shiptrack.routers.shipments import shipment_response
from app.shiptrack.schemas.batches import (
    AssignCarriersRequest,
    BatchDetailResponse,
    BatchListResponse,
    BatchNoteRequest,
    BatchResponse,
    CreateBatchRequest,
    DestinationWarehouseRequest,
    MoveToPortRequest,
    MoveToWarehouseRequest,
)
from app.shiptrack.schemas.errors import ERROR_RESPONSES
from app.shiptrack.services.batch_state_machine import allowed_operations
from app.shiptrack.services.batches import BatchLifecycleService
from app.shiptrack.services.carrier_assignment import CarrierAssignment, CarrierAssignmentService
from app.shiptrack.services.membership import BatchAggregates, MembershipService

router = APIRouter(responses=ERROR_RESPONSES)


def _optional_id(value) -> str | None:
    return str(value) if value is not None else None


def _batch_fields(batch: Batch) -> dict:
    return {
        "id": str(batch.id),
        "branch_id": str(batch.branch_id),
        "branch_name": batch.branch.name if batch.branch is not None else None,
        "name": batch.name,
        "status": batch.status,
        "shipment_count": batch.shipment_count,
        "total_weight": batch.total_weight,
        "threshold_count": batch.threshold_count,
        "threshold_weight": batch.threshold_weight,
        "source_warehouse_id": _optional_id(batch.source_warehouse_id),
        "destination_warehouse_id": _optional_id(batch.destination_warehouse_id),
        "source_port_id": _optional_id(batch.source_port_id),
        "destination_port_id": _optional_id(batch.destination_port_id),
        "carrier_assigned_at": batch.carrier_assigned_at,
        "allowed_actions": [str(operation) for operation in allowed_operations(batch.status)],
        "created_at": batch.created_at,
        "updated_at": batch.updated_at,
    }


def batch_response(batch: Batch) -> BatchResponse:
    return BatchResponse(**_batch_fields(batch))


def _batch_detail(uow: UnitOfWork, batch: Batch) -> BatchDetailResponse:
    aggregates = BatchAggregates.recompute(uow, batch.id)
    return BatchDetailResponse(
        **_batch_fields(batch),
        shipments=[shipment_response(shipment) for shipment in batch.shipments],
        aggregates_consistent=aggregates.matches(batch),
    )


def _notes(payload: BatchNoteRequest | None) -> str | None:
    return payload.notes if payload is not None else None


@router.get("/shiptrack/batches", response_model=BatchListResponse)
def list_batches(
    branch_id: UUID | None = None,
    status: BatchStatus | None = None,
    context: RequestContext = Depends(require_roles(*roles.BATCH_INTAKE)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    rows = BatchLifecycleService(uow, context).list_batches(branch_id=branch_id, status=status)
    return BatchListResponse(rows=[batch_response(batch) for batch in rows])


@router.post("/shiptrack/batches", response_model=BatchResponse, status_code=201)
def create_batch(
    payload: CreateBatchRequest,
    context: RequestContext = Depends(require_roles(*roles.BATCH_INTAKE)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    batch = BatchLifecycleService(uow, context).create_batch(
        branch_id=payload.branch_id,
        name=payload.name,
        threshold_count=payload.threshold_count,
        threshold_weight=payload.threshold_weight,
    )
    uow.refresh(batch)
    return batch_response(batch)


@router.get("/shiptrack/batches/{batch_id}", response_model=BatchDetailResponse)
def get_batch(
    batch_id: UUID,
    context: RequestContext = Depends(require_roles(*roles.BATCH_INTAKE)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    batch = BatchLifecycleService(uow, context).get_batch(batch_id)
    return _batch_detail(uow, batch)


@router.post("/shiptrack/batches/{batch_id}/shipments/{shipment_id}", response_model=BatchResponse)
def add_shipment_to_batch(
    batch_id: UUID,
    shipment_id: UUID,
    context: RequestContext = Depends(require_roles(*roles.BATCH_INTAKE)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    return batch_response(MembershipService(uow, context).add_shipment(batch_id, shipment_id))


@router.delete("/shiptrack/batches/{batch_id}/shipments/{shipment_id}", response_model=BatchResponse)
def remove_shipment_from_batch(
    batch_id: UUID,
    shipment_id: UUID,
    context: RequestContext = Depends(require_roles(*roles.BATCH_INTAKE)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    return batch_response(MembershipService(uow, context).remove_shipment(batch_id, shipment_id))


@router.post("/shiptrack/batches/{batch_id}/open", response_model=BatchResponse)
def open_batch(
    batch_id: UUID,
    payload: BatchNoteRequest | None = Body(default=None),
    context: RequestContext = Depends(require_roles(*roles.BATCH_INTAKE)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    return batch_response(BatchLifecycleService(uow, context).open(batch_id, notes=_notes(payload)))


@router.post("/shiptrack/batches/{batch_id}/close", response_model=BatchResponse)
def close_batch(
    batch_id: UUID,
    payload: BatchNoteRequest | None = Body(default=None),
    context: RequestContext = Depends(require_roles(*roles.BATCH_INTAKE)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    return batch_response(BatchLifecycleService(uow, context).close(batch_id, notes=_notes(payload)))


@router.post("/shiptrack/batches/{batch_id}/move-to-warehouse", response_model=BatchResponse)
def move_to_warehouse(
    batch_id: UUID,
    payload: MoveToWarehouseRequest,
    context: RequestContext = Depends(require_roles(*roles.WAREHOUSE_MOVES)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    batch = BatchLifecycleService(uow, context).move_to_warehouse(
        batch_id, payload.source_warehouse_id, notes=payload.notes
    )
    return batch_response(batch)


@router.post("/shiptrack/batches/{batch_id}/assign-destination-warehouse", response_model=BatchResponse)
def assign_destination_warehouse(
    batch_id: UUID,
    payload: DestinationWarehouseRequest,
    context: RequestContext = Depends(require_roles(*roles.WAREHOUSE_MOVES)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    batch = BatchLifecycleService(uow, context).assign_destination_warehouse(
        batch_id, payload.destination_warehouse_id, notes=payload.notes
    )
    return batch_response(batch)


@router.post("/shiptrack/batches/{batch_id}/move-to-source-port", response_model=BatchResponse)
def move_to_source_port(
    batch_id: UUID,
    payload: MoveToPortRequest,
    context: RequestContext = Depends(require_roles(*roles.PORT_MOVES)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    batch = BatchLifecycleService(uow, context).move_to_source_port(
        batch_id, payload.source_port_id, payload.destination_port_id, notes=payload.notes
    )
    return batch_response(batch)


@router.post("/shiptrack/batches/{batch_id}/clear-source-port", response_model=BatchResponse)
def clear_source_port(
    batch_id: UUID,
    payload: BatchNoteRequest | None = Body(default=None),
    context: RequestContext = Depends(require_roles(*roles.PORT_MOVES)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    return batch_response(BatchLifecycleService(uow, context).clear_source_port(batch_id, notes=_notes(payload)))


@router.post("/shiptrack/batches/{batch_id}/start-transit", response_model=BatchResponse)
def start_transit(
    batch_id: UUID,
    payload: BatchNoteRequest | None = Body(default=None),
    context: RequestContext = Depends(require_roles(*roles.PORT_MOVES)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    return batch_response(BatchLifecycleService(uow, context).start_transit(batch_id, notes=_notes(payload)))


@router.post("/shiptrack/batches/{batch_id}/arrival", response_model=BatchResponse)
def mark_arrival(
    batch_id: UUID,
    payload: BatchNoteRequest | None = Body(default=None),
    context: RequestContext = Depends(require_roles(*roles.PORT_MOVES)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    return batch_response(BatchLifecycleService(uow, context).mark_arrival(batch_id, notes=_notes(payload)))


@router.post("/shiptrack/batches/{batch_id}/move-to-destination-warehouse", response_model=BatchResponse)
def move_to_destination_warehouse(
    batch_id: UUID,
    payload: DestinationWarehouseRequest,
    context: RequestContext = Depends(require_roles(*roles.WAREHOUSE_MOVES)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    batch = BatchLifecycleService(uow, context).move_to_destination_warehouse(
        batch_id, payload.destination_warehouse_id, notes=payload.notes
    )
    return batch_response(batch)


@router.post("/shiptrack/batches/{batch_id}/assign-carriers", response_model=BatchResponse)
def assign_carriers(
    batch_id: UUID,
    payload: AssignCarriersRequest,
    context: RequestContext = Depends(require_roles(*roles.BATCH_ADMINISTRATION)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    assignments = [CarrierAssignment(item.shipment_id, item.carrier_id) for item in payload.assignments]
    return batch_response(CarrierAssignmentService(uow, context).assign(batch_id, assignments))


@router.post("/shiptrack/batches/{batch_id}/complete-delivery", response_model=BatchResponse)
def complete_delivery(
    batch_id: UUID,
    payload: BatchNoteRequest | None = Body(default=None),
    context: RequestContext = Depends(require_roles(*roles.DELIVERY_COMPLETION)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    return batch_response(BatchLifecycleService(uow, context).complete_delivery(batch_id, notes=_notes(payload)))


@router.post("/shiptrack/batches/{batch_id}/archive", response_model=BatchResponse)
def archive_batch(
    batch_id: UUID,
    payload: BatchNoteRequest | None = Body(default=None),
    context: RequestContext = Depends(require_roles(*roles.BATCH_ADMINISTRATION)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    return batch_response(BatchLifecycleService(uow, context).archive(batch_id, notes=_notes(payload)))


@router.delete("/shiptrack/batches/{batch_id}", response_model=BatchResponse)
def cancel_batch(
    batch_id: UUID,
    context: RequestContext = Depends(require_roles(*roles.BATCH_ADMINISTRATION)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    return batch_response(BatchLifecycleService(uow, context).cancel(batch_id))
