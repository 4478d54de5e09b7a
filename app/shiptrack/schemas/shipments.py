from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.shiptrack.db.enums import ShipmentStatus


class CreateShipmentRequest(BaseModel):
    client_id: UUID
    weight: Decimal = Field(gt=0, max_digits=14, decimal_places=3)
    volume: Decimal | None = Field(default=None, gt=0, max_digits=14, decimal_places=3)
    pickup_address: str = Field(min_length=10, max_length=500)
    delivery_address: str = Field(min_length=10, max_length=500)


class UpdateShipmentStatusRequest(BaseModel):
    status: ShipmentStatus
    notes: str | None = Field(default=None, max_length=500)


class ShipmentEventResponse(BaseModel):
    id: str
    shipment_id: str
    event_type: str
    actor_user_id: str | None
    location: str | None
    message: str
    created_at: datetime


class ShipmentResponse(BaseModel):
    id: str
    client_id: str
    batch_id: str | None
    batch_name: str | None
    status: ShipmentStatus
    projected_status: ShipmentStatus
    weight: Decimal
    volume: Decimal | None
    pickup_address: str
    delivery_address: str
    carrier_id: str | None
    created_at: datetime
    updated_at: datetime


class ShipmentDetailResponse(ShipmentResponse):
    events: list[ShipmentEventResponse]


class ShipmentListResponse(BaseModel):
    rows: list[ShipmentResponse]
