import pytest

from app.shiptrack.db.enums import BatchStatus, ShipmentStatus
from app.shiptrack.services.shipments import project_shipment_status


@pytest.mark.parametrize(
    ("batch_status", "expected"),
    [
        (BatchStatus.OPEN, ShipmentStatus.IN_BATCH),
        (BatchStatus.IN_WAREHOUSE, ShipmentStatus.IN_WAREHOUSE),
        (BatchStatus.CLEARED_SOURCE_PORT, ShipmentStatus.AT_SOURCE_PORT),
        (BatchStatus.IN_TRANSIT, ShipmentStatus.IN_TRANSIT),
        (BatchStatus.IN_DESTINATION_WAREHOUSE, ShipmentStatus.AT_DESTINATION_PORT),
    ],
)
def test_batch_position_drives_projection(batch_status, expected):
    assert project_shipment_status(batch_status, None, ShipmentStatus.IN_BATCH) == expected


def test_unbatched_shipment_keeps_stored_status():
    assert project_shipment_status(None, None, ShipmentStatus.CREATED) == ShipmentStatus.CREATED


def test_terminal_batch_keeps_stored_status():
    assert project_shipment_status(BatchStatus.CANCELLED, None, ShipmentStatus.IN_BATCH) == ShipmentStatus.IN_BATCH


def test_carrier_assignment_wins_over_batch_position():
    assert (
        project_shipment_status(BatchStatus.IN_DESTINATION_WAREHOUSE, "carrier-1", ShipmentStatus.IN_BATCH)
        == ShipmentStatus.WITH_CARRIER
    )


@pytest.mark.parametrize(
    "stored",
    [ShipmentStatus.OUT_FOR_DELIVERY, ShipmentStatus.DELIVERED, ShipmentStatus.RETURNED, ShipmentStatus.CANCELLED],
)
def test_shipment_owned_status_wins(stored):
    assert project_shipment_status(BatchStatus.ASSIGNED_TO_CARRIERS, "carrier-1", stored) == stored
