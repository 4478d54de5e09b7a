from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.shiptrack.db.enums import BatchStatus
from app.shiptrack.schemas.shipments import ShipmentResponse


_BATCH_EXAMPLE = {
    "id": "0f7d1c8e-3c1b-4a39-9a55-3a8d7f0f2b11",
    "branch_id": "5b1f7c2a-9d4e-4f4f-8f5e-2b8c1d9e0a77",
    "branch_name": "Main Branch",
    "name": "BATCH-2024-001",
    "status": "Open",
    "shipment_count": 2,
    "total_weight": "19.750",
    "threshold_count": 50,
    "threshold_weight": "1000.000",
    "source_warehouse_id": None,
    "destination_warehouse_id": None,
    "source_port_id": None,
    "destination_port_id": None,
    "carrier_assigned_at": None,
    "allowed_actions": ["close", "cancel"],
    "created_at": "2024-03-01T10:00:00",
    "updated_at": "2024-03-01T10:05:00",
}


class CreateBatchRequest(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    branch_id: UUID
    threshold_count: int = Field(ge=1)
    threshold_weight: Decimal = Field(gt=0, max_digits=14, decimal_places=3)


class BatchNoteRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=500)


class MoveToWarehouseRequest(BatchNoteRequest):
    source_warehouse_id: UUID


class DestinationWarehouseRequest(BatchNoteRequest):
    destination_warehouse_id: UUID


class MoveToPortRequest(BatchNoteRequest):
    source_port_id: UUID
    destination_port_id: UUID | None = None


class ShipmentCarrierAssignment(BaseModel):
    shipment_id: UUID
    carrier_id: UUID


class AssignCarriersRequest(BaseModel):
    assignments: list[ShipmentCarrierAssignment]


class BatchResponse(BaseModel):
    id: str
    branch_id: str
    branch_name: str | None
    name: str
    status: BatchStatus
    shipment_count: int
    total_weight: Decimal
    threshold_count: int
    threshold_weight: Decimal
    source_warehouse_id: str | None
    destination_warehouse_id: str | None
    source_port_id: str | None
    destination_port_id: str | None
    carrier_assigned_at: datetime | None
    allowed_actions: list[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"json_schema_extra": {"example": _BATCH_EXAMPLE}}


class BatchDetailResponse(BatchResponse):
    shipments: list[ShipmentResponse]
    aggregates_consistent: bool


class BatchListResponse(BaseModel):
    rows: list[BatchResponse]
