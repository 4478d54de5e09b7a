import uuid
from decimal import Decimal

from sqlalchemy import select

from app.shiptrack.db.models import Batch, Shipment
from tests.shiptrack_helpers import add_to_batch, admin, advance_batch, batch_action, create_batch, create_shipment


def _remove(client, batch_id: str, shipment_id: str):
    return client.delete(f"/shiptrack/batches/{batch_id}/shipments/{shipment_id}", headers=admin())


def test_add_shipments_keeps_aggregates_in_step(client, db_session, master_data):
    batch = create_batch(client, master_data)
    batch_action(client, batch["id"], "open")
    weights = ["12.5", "7.25", "0.25"]
    for weight in weights:
        shipment = create_shipment(client, master_data, weight=weight)
        response = add_to_batch(client, batch["id"], shipment["id"])
        assert response.status_code == 200

    detail = client.get(f"/shiptrack/batches/{batch['id']}", headers=admin()).json()

    assert detail["shipment_count"] == 3
    assert Decimal(detail["total_weight"]) == Decimal("20.000")
    assert detail["aggregates_consistent"] is True
    assert len(detail["shipments"]) == 3
    assert {row["status"] for row in detail["shipments"]} == {"InBatch"}

    members = db_session.execute(select(Shipment).where(Shipment.batch_id == uuid.UUID(batch["id"]))).scalars().all()
    assert sum((member.weight for member in members), Decimal("0")) == Decimal("20.000")


def test_add_records_event(client, master_data):
    batch = create_batch(client, master_data, name="BATCH-EVENTS")
    batch_action(client, batch["id"], "open")
    shipment = create_shipment(client, master_data)

    add_to_batch(client, batch["id"], shipment["id"])

    detail = client.get(f"/shiptrack/shipments/{shipment['id']}", headers=admin()).json()
    assert [event["event_type"] for event in detail["events"]] == ["Created", "AddedToBatch"]
    assert detail["events"][1]["message"] == "Added to batch BATCH-EVENTS"
    assert detail["batch_name"] == "BATCH-EVENTS"


def test_add_shipment_already_in_a_batch_conflicts(client, master_data):
    first = create_batch(client, master_data, name="BATCH-ONE")
    second = create_batch(client, master_data, name="BATCH-TWO")
    batch_action(client, first["id"], "open")
    batch_action(client, second["id"], "open")
    shipment = create_shipment(client, master_data)
    assert add_to_batch(client, first["id"], shipment["id"]).status_code == 200

    response = add_to_batch(client, second["id"], shipment["id"])

    assert response.status_code == 400
    assert response.json()["code"] == "CONFLICT"
    second_detail = client.get(f"/shiptrack/batches/{second['id']}", headers=admin()).json()
    assert second_detail["shipment_count"] == 0
    assert Decimal(second_detail["total_weight"]) == Decimal("0")


def test_add_requires_open_batch(client, master_data):
    batch = create_batch(client, master_data)
    shipment = create_shipment(client, master_data)

    response = add_to_batch(client, batch["id"], shipment["id"])

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_STATE"
    assert response.json()["details"]["current"] == "Draft"
    assert response.json()["details"]["required"] == ["Open"]

    closed = advance_batch(client, master_data, create_batch(client, master_data, name="BATCH-CLOSED"), "Closed")
    response = add_to_batch(client, closed["id"], shipment["id"])
    assert response.status_code == 400
    assert response.json()["details"]["current"] == "Closed"


def test_add_checks_batch_before_shipment(client, master_data):
    missing_batch = uuid.uuid4()
    missing_shipment = uuid.uuid4()

    response = add_to_batch(client, str(missing_batch), str(missing_shipment))
    assert response.status_code == 404
    assert response.json()["details"]["entity"] == "Batch"

    batch = create_batch(client, master_data)
    response = add_to_batch(client, batch["id"], str(missing_shipment))
    assert response.status_code == 404
    assert response.json()["details"]["entity"] == "Shipment"


def test_remove_shipment_reverses_aggregates(client, db_session, master_data):
    batch = create_batch(client, master_data)
    batch_action(client, batch["id"], "open")
    heavy = create_shipment(client, master_data, weight="30")
    light = create_shipment(client, master_data, weight="4.5")
    add_to_batch(client, batch["id"], heavy["id"])
    add_to_batch(client, batch["id"], light["id"])

    response = _remove(client, batch["id"], heavy["id"])

    assert response.status_code == 200
    assert response.json()["shipment_count"] == 1
    assert Decimal(response.json()["total_weight"]) == Decimal("4.5")

    db_session.expire_all()
    removed = db_session.get(Shipment, uuid.UUID(heavy["id"]))
    assert removed.batch_id is None
    assert removed.status == "Created"
    stored = db_session.get(Batch, uuid.UUID(batch["id"]))
    assert stored.shipment_count == 1

    unassigned = client.get("/shiptrack/shipments/unassigned", headers=admin()).json()["rows"]
    assert heavy["id"] in [row["id"] for row in unassigned]


def test_remove_non_member_conflicts(client, master_data):
    batch = create_batch(client, master_data)
    batch_action(client, batch["id"], "open")
    shipment = create_shipment(client, master_data)

    response = _remove(client, batch["id"], shipment["id"])

    assert response.status_code == 400
    assert response.json()["code"] == "CONFLICT"


def test_close_after_removing_last_shipment_is_rejected(client, master_data):
    batch = create_batch(client, master_data)
    batch_action(client, batch["id"], "open")
    shipment = create_shipment(client, master_data)
    add_to_batch(client, batch["id"], shipment["id"])
    _remove(client, batch["id"], shipment["id"])

    response = batch_action(client, batch["id"], "close")

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot close an empty batch"


def test_remove_keeps_cancelled_shipment_cancelled(client, db_session, master_data):
    batch = create_batch(client, master_data)
    batch_action(client, batch["id"], "open")
    shipment = create_shipment(client, master_data, weight="6")
    add_to_batch(client, batch["id"], shipment["id"])
    cancelled = client.delete(f"/shiptrack/shipments/{shipment['id']}", headers=admin())
    assert cancelled.status_code == 200

    response = _remove(client, batch["id"], shipment["id"])

    assert response.status_code == 200
    assert response.json()["shipment_count"] == 0
    db_session.expire_all()
    stored = db_session.get(Shipment, uuid.UUID(shipment["id"]))
    assert stored.batch_id is None
    assert stored.status == "Cancelled"

    second = client.delete(f"/shiptrack/shipments/{shipment['id']}", headers=admin())
    assert second.status_code == 400
    assert second.json()["code"] == "INVALID_STATE"
