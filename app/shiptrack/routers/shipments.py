from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.shiptrack.core import roles
from app.shiptrack.core.context import RequestContext
from app.shiptrack.core.deps import get_unit_of_work, require_roles
from app.shiptrack.db.enums import ShipmentStatus
from app.shiptrack.db.models import Shipment, ShipmentEvent
from app.shiptrack.db.unit_of_work import UnitOfWork
from app.shiptrack.schemas.errors import ERROR_RESPONSES
from app.shiptrack.schemas.shipments import (
    CreateShipmentRequest,
    ShipmentDetailResponse,
    ShipmentEventResponse,
    ShipmentListResponse,
    ShipmentResponse,
    UpdateShipmentStatusRequest,
)
from app.shiptrack.services.shipments import ShipmentService, projected_status_for

router = APIRouter(responses=ERROR_RESPONSES)


def _shipment_fields(shipment: Shipment) -> dict:
    return {
        "id": str(shipment.id),
        "client_id": str(shipment.client_id),
        "batch_id": str(shipment.batch_id) if shipment.batch_id else None,
        "batch_name": shipment.batch.name if shipment.batch is not None else None,
        "status": shipment.status,
        "projected_status": projected_status_for(shipment),
        "weight": shipment.weight,
        "volume": shipment.volume,
        "pickup_address": shipment.pickup_address,
        "delivery_address": shipment.delivery_address,
        "carrier_id": str(shipment.carrier_id) if shipment.carrier_id else None,
        "created_at": shipment.created_at,
        "updated_at": shipment.updated_at,
    }


def shipment_response(shipment: Shipment) -> ShipmentResponse:
    return ShipmentResponse(**_shipment_fields(shipment))


def _event_response(event: ShipmentEvent) -> ShipmentEventResponse:
    return ShipmentEventResponse(
        id=str(event.id),
        shipment_id=str(event.shipment_id),
        event_type=event.event_type,
        actor_user_id=event.actor_user_id,
        location=event.location,
        message=event.message,
        created_at=event.created_at,
    )


@router.get("/shiptrack/shipments", response_model=ShipmentListResponse)
def list_shipments(
    client_id: UUID | None = None,
    batch_id: UUID | None = None,
    status: ShipmentStatus | None = None,
    context: RequestContext = Depends(require_roles(*roles.SHIPMENT_LIST)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    rows = ShipmentService(uow, context).list_shipments(client_id=client_id, batch_id=batch_id, status=status)
    return ShipmentListResponse(rows=[shipment_response(shipment) for shipment in rows])


@router.get("/shiptrack/shipments/unassigned", response_model=ShipmentListResponse)
def list_unassigned_shipments(
    context: RequestContext = Depends(require_roles(*roles.SHIPMENT_INTAKE)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    rows = ShipmentService(uow, context).list_unassigned()
    return ShipmentListResponse(rows=[shipment_response(shipment) for shipment in rows])


@router.post("/shiptrack/shipments", response_model=ShipmentResponse, status_code=201)
def create_shipment(
    payload: CreateShipmentRequest,
    context: RequestContext = Depends(require_roles(*roles.SHIPMENT_INTAKE)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    shipment = ShipmentService(uow, context).create_shipment(
        client_id=payload.client_id,
        weight=payload.weight,
        volume=payload.volume,
        pickup_address=payload.pickup_address,
        delivery_address=payload.delivery_address,
    )
    uow.refresh(shipment)
    return shipment_response(shipment)


@router.get("/shiptrack/shipments/{shipment_id}", response_model=ShipmentDetailResponse)
def get_shipment(
    shipment_id: UUID,
    context: RequestContext = Depends(require_roles(*roles.SHIPMENT_VIEW)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    shipment = ShipmentService(uow, context).get_shipment(shipment_id)
    return ShipmentDetailResponse(
        **_shipment_fields(shipment),
        events=[_event_response(event) for event in shipment.events],
    )


@router.patch("/shiptrack/shipments/{shipment_id}/status", response_model=ShipmentResponse)
def update_shipment_status(
    shipment_id: UUID,
    payload: UpdateShipmentStatusRequest,
    context: RequestContext = Depends(require_roles(*roles.SHIPMENT_STATUS_UPDATE)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    shipment = ShipmentService(uow, context).update_status(shipment_id, payload.status, payload.notes)
    return shipment_response(shipment)


@router.delete("/shiptrack/shipments/{shipment_id}", response_model=ShipmentResponse)
def cancel_shipment(
    shipment_id: UUID,
    context: RequestContext = Depends(require_roles(*roles.SHIPMENT_CANCEL)),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    return shipment_response(ShipmentService(uow, context).cancel(shipment_id))
