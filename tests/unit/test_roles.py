from app.shiptrack.core.context import build_request_context
from app.shiptrack.core.roles import is_client_only, normalize_roles


def test_normalize_roles_drops_unknown_names():
    assert normalize_roles(["Admin", "Janitor"]) == {"Admin"}
    assert normalize_roles("Client") == {"Client"}
    assert normalize_roles(None) == frozenset()


def test_client_only():
    assert is_client_only(["Client"])
    assert not is_client_only(["Client", "DataEntry"])
    assert not is_client_only([])


def test_request_context_role_check():
    context = build_request_context(user_id="u-1", roles=["PortOperator"], trace_id="t-1")
    assert context.has_any_role(("PortOperator", "Admin"))
    assert not context.has_any_role(("WarehouseOperator",))
