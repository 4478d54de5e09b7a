import uuid
from decimal import Decimal

from tests.shiptrack_helpers import (
    add_to_batch,
    admin,
    advance_batch,
    batch_action,
    create_batch,
    create_shipment,
)


def test_create_batch_starts_in_draft(client, master_data):
    batch = create_batch(client, master_data)

    assert batch["status"] == "Draft"
    assert batch["shipment_count"] == 0
    assert Decimal(batch["total_weight"]) == Decimal("0")
    assert batch["threshold_count"] == 50
    assert batch["branch_name"] == master_data.branch.name
    assert batch["allowed_actions"] == ["open", "cancel"]


def test_create_batch_unknown_branch(client, master_data):
    response = client.post(
        "/shiptrack/batches",
        json={"name": "BATCH-X", "branch_id": str(uuid.uuid4()), "threshold_count": 1, "threshold_weight": "10"},
        headers=admin(),
    )
    assert response.status_code == 400
    payload = response.json()
    assert payload["code"] == "REFERENCE_NOT_FOUND"
    assert payload["details"]["field"] == "branch_id"


def test_create_batch_rejects_bad_payload(client, master_data):
    response = client.post(
        "/shiptrack/batches",
        json={"name": "B", "branch_id": str(master_data.branch.id), "threshold_count": 0, "threshold_weight": "0"},
        headers=admin(),
    )
    assert response.status_code == 422
    payload = response.json()
    assert payload["code"] == "REQUEST_VALIDATION_ERROR"
    fields = {error["field"] for error in payload["details"]["errors"]}
    assert {"name", "threshold_count", "threshold_weight"} <= fields


def test_create_batch_rejects_threshold_weight_beyond_stored_scale(client, master_data):
    response = client.post(
        "/shiptrack/batches",
        json={"name": "BATCH-SCALE", "branch_id": str(master_data.branch.id), "threshold_count": 5, "threshold_weight": "250.0005"},
        headers=admin(),
    )
    assert response.status_code == 422
    errors = response.json()["details"]["errors"]
    assert [(error["field"], error["type"]) for error in errors] == [("threshold_weight", "decimal_max_places")]


def test_full_pipeline_to_delivered_and_archived(client, master_data):
    batch = create_batch(client, master_data)
    batch = advance_batch(client, master_data, batch, "InDestinationWarehouse", weights=("10", "2.5"))
    assert batch["source_warehouse_id"] == str(master_data.source_warehouse.id)
    assert batch["source_port_id"] == str(master_data.source_port.id)
    assert batch["destination_port_id"] == str(master_data.destination_port.id)
    assert batch["destination_warehouse_id"] == str(master_data.destination_warehouse.id)

    assignments = [
        {"shipment_id": shipment_id, "carrier_id": str(master_data.carrier.id)} for shipment_id in batch["member_ids"]
    ]
    response = batch_action(client, batch["id"], "assign-carriers", {"assignments": assignments})
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "AssignedToCarriers"
    assert response.json()["carrier_assigned_at"] is not None

    for shipment_id in batch["member_ids"]:
        response = client.patch(
            f"/shiptrack/shipments/{shipment_id}/status", json={"status": "Delivered"}, headers=admin()
        )
        assert response.status_code == 200

    response = batch_action(client, batch["id"], "complete-delivery")
    assert response.status_code == 200
    assert response.json()["status"] == "Delivered"

    response = batch_action(client, batch["id"], "archive")
    assert response.status_code == 200
    assert response.json()["status"] == "Archived"
    assert response.json()["allowed_actions"] == ["cancel"]


def test_complete_delivery_partial(client, master_data):
    batch = create_batch(client, master_data)
    batch = advance_batch(client, master_data, batch, "InDestinationWarehouse", weights=("1", "2"))
    first, second = batch["member_ids"]
    response = batch_action(
        client,
        batch["id"],
        "assign-carriers",
        {
            "assignments": [
                {"shipment_id": first, "carrier_id": str(master_data.carrier.id)},
                {"shipment_id": second, "carrier_id": str(master_data.other_carrier.id)},
            ]
        },
    )
    assert response.status_code == 200

    client.patch(f"/shiptrack/shipments/{first}/status", json={"status": "Delivered"}, headers=admin())
    client.patch(f"/shiptrack/shipments/{second}/status", json={"status": "Returned"}, headers=admin())

    response = batch_action(client, batch["id"], "complete-delivery")
    assert response.status_code == 200
    assert response.json()["status"] == "PartiallyDelivered"


def test_complete_delivery_requires_a_delivered_shipment(client, master_data):
    batch = create_batch(client, master_data)
    batch = advance_batch(client, master_data, batch, "InDestinationWarehouse")
    response = batch_action(
        client,
        batch["id"],
        "assign-carriers",
        {"assignments": [{"shipment_id": batch["member_ids"][0], "carrier_id": str(master_data.carrier.id)}]},
    )
    assert response.status_code == 200

    response = batch_action(client, batch["id"], "complete-delivery")
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_STATE"

    detail = client.get(f"/shiptrack/batches/{batch['id']}", headers=admin()).json()
    assert detail["status"] == "AssignedToCarriers"


def test_move_to_source_port_from_draft_is_rejected(client, master_data):
    batch = create_batch(client, master_data)

    response = batch_action(
        client, batch["id"], "move-to-source-port", {"source_port_id": str(master_data.source_port.id)}
    )

    assert response.status_code == 400
    payload = response.json()
    assert payload["code"] == "INVALID_STATE"
    assert payload["details"]["current"] == "Draft"
    assert payload["details"]["required"] == ["InWarehouse"]

    detail = client.get(f"/shiptrack/batches/{batch['id']}", headers=admin()).json()
    assert detail["status"] == "Draft"
    assert detail["source_port_id"] is None


def test_each_step_rejects_the_wrong_status(client, master_data):
    batch = create_batch(client, master_data)
    wrong_state_calls = [
        ("close", None, ["Open"]),
        ("move-to-warehouse", {"source_warehouse_id": str(master_data.source_warehouse.id)}, ["Closed"]),
        (
            "assign-destination-warehouse",
            {"destination_warehouse_id": str(master_data.destination_warehouse.id)},
            ["InWarehouse", "AtSourcePort"],
        ),
        ("clear-source-port", None, ["AtSourcePort"]),
        ("start-transit", None, ["ClearedSourcePort"]),
        ("arrival", None, ["InTransit"]),
        (
            "move-to-destination-warehouse",
            {"destination_warehouse_id": str(master_data.destination_warehouse.id)},
            ["ArrivedDestinationPort"],
        ),
        ("complete-delivery", None, ["AssignedToCarriers"]),
        ("archive", None, ["Delivered", "PartiallyDelivered", "Cancelled"]),
    ]
    for action, body, required in wrong_state_calls:
        response = batch_action(client, batch["id"], action, body)
        assert response.status_code == 400, action
        payload = response.json()
        assert payload["code"] == "INVALID_STATE"
        assert payload["details"]["current"] == "Draft"
        assert payload["details"]["required"] == required


def test_open_twice_is_rejected(client, master_data):
    batch = create_batch(client, master_data)
    assert batch_action(client, batch["id"], "open").status_code == 200

    response = batch_action(client, batch["id"], "open")

    assert response.status_code == 400
    assert response.json()["details"] == {"entity": "Batch", "current": "Open", "required": ["Draft"]}


def test_close_empty_batch_then_add_and_close(client, master_data):
    batch = create_batch(client, master_data)
    batch_action(client, batch["id"], "open")

    response = batch_action(client, batch["id"], "close")
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_STATE"
    assert response.json()["message"] == "Cannot close an empty batch"

    shipment = create_shipment(client, master_data, weight="12.5")
    response = add_to_batch(client, batch["id"], shipment["id"])
    assert response.status_code == 200
    assert response.json()["shipment_count"] == 1
    assert Decimal(response.json()["total_weight"]) == Decimal("12.5")

    response = batch_action(client, batch["id"], "close", {"notes": "ready for pickup"})
    assert response.status_code == 200
    assert response.json()["status"] == "Closed"


def test_move_to_warehouse_unknown_warehouse_keeps_batch(client, master_data):
    batch = create_batch(client, master_data)
    batch = advance_batch(client, master_data, batch, "Closed")

    response = batch_action(client, batch["id"], "move-to-warehouse", {"source_warehouse_id": str(uuid.uuid4())})

    assert response.status_code == 400
    assert response.json()["code"] == "REFERENCE_NOT_FOUND"
    assert response.json()["details"]["field"] == "source_warehouse_id"
    detail = client.get(f"/shiptrack/batches/{batch['id']}", headers=admin()).json()
    assert detail["status"] == "Closed"
    assert detail["source_warehouse_id"] is None


def test_assign_destination_warehouse_keeps_status(client, master_data):
    batch = create_batch(client, master_data)
    batch = advance_batch(client, master_data, batch, "AtSourcePort")

    response = batch_action(
        client,
        batch["id"],
        "assign-destination-warehouse",
        {"destination_warehouse_id": str(master_data.destination_warehouse.id)},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "AtSourcePort"
    assert response.json()["destination_warehouse_id"] == str(master_data.destination_warehouse.id)


def test_move_to_source_port_without_destination_port(client, master_data):
    batch = create_batch(client, master_data)
    batch = advance_batch(client, master_data, batch, "InWarehouse")

    response = batch_action(
        client, batch["id"], "move-to-source-port", {"source_port_id": str(master_data.source_port.id)}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "AtSourcePort"
    assert response.json()["destination_port_id"] is None


def test_unknown_batch_is_not_found(client, master_data):
    missing = uuid.uuid4()
    response = batch_action(client, str(missing), "open")
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
    assert response.json()["details"] == {"entity": "Batch", "id": str(missing)}

    response = client.get(f"/shiptrack/batches/{missing}", headers=admin())
    assert response.status_code == 404


def test_malformed_batch_id_is_a_request_error(client, master_data):
    response = client.get("/shiptrack/batches/not-a-uuid", headers=admin())
    assert response.status_code == 422
    assert response.json()["code"] == "REQUEST_VALIDATION_ERROR"


def test_list_batches_filters_by_status(client, master_data):
    draft = create_batch(client, master_data, name="BATCH-DRAFT")
    opened = create_batch(client, master_data, name="BATCH-OPEN")
    batch_action(client, opened["id"], "open")

    response = client.get("/shiptrack/batches", params={"status": "Open"}, headers=admin())

    assert response.status_code == 200
    ids = [row["id"] for row in response.json()["rows"]]
    assert ids == [opened["id"]]
    assert draft["id"] not in ids
