import json
import logging
from types import SimpleNamespace

from starlette.requests import Request
from starlette.responses import Response

from app.shiptrack.middleware.observability import build_request_log_payload
from tests.shiptrack_helpers import batch_action, create_batch


def test_build_request_log_payload():
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/shiptrack/batches/abc/close",
        "headers": [],
        "route": SimpleNamespace(path="/shiptrack/batches/{batch_id}/close"),
    }
    request = Request(scope)
    request.state.trace_id = "trace-1"
    request.state.user_id = "user-1"
    request.state.error_code = "INVALID_STATE"
    response = Response(status_code=400)

    payload = build_request_log_payload(
        request=request,
        response=response,
        latency_ms=12.3456,
        db_time_ms=4.5678,
    )

    assert payload["event"] == "http_request"
    assert payload["trace_id"] == "trace-1"
    assert payload["user_id"] == "user-1"
    assert payload["route"] == "/shiptrack/batches/{batch_id}/close"
    assert payload["method"] == "POST"
    assert payload["status_code"] == 400
    assert payload["latency_ms"] == 12.35
    assert payload["db_time_ms"] == 4.57
    assert payload["error_code"] == "INVALID_STATE"


def test_payload_without_response_defaults_to_500():
    request = Request({"type": "http", "method": "GET", "path": "/shiptrack/batches", "headers": []})

    payload = build_request_log_payload(request=request, response=None, latency_ms=1.0, db_time_ms=None)

    assert payload["status_code"] == 500
    assert payload["route"] == "/shiptrack/batches"
    assert payload["db_time_ms"] is None


def test_transition_is_logged(client, master_data, caplog):
    batch = create_batch(client, master_data)
    with caplog.at_level(logging.INFO, logger="app.shiptrack.services.batches"):
        batch_action(client, batch["id"], "open", {"notes": "first load"})

    events = [
        json.loads(record.getMessage())
        for record in caplog.records
        if record.name == "app.shiptrack.services.batches"
    ]
    transition = next(event for event in events if event["event"] == "batch.transition")
    assert transition["batch_id"] == batch["id"]
    assert transition["previous"] == "Draft"
    assert transition["current"] == "Open"
    assert transition["notes"] == "first load"
