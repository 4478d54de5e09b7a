"""Role names carried in access tokens and the role sets each operation accepts."""

ADMIN = "Admin"
DATA_ENTRY = "DataEntry"
BRANCH_ADMIN = "BranchAdmin"
WAREHOUSE_OPERATOR = "WarehouseOperator"
PORT_OPERATOR = "PortOperator"
CARRIER_OPERATOR = "CarrierOperator"
CLIENT = "Client"

ALL_ROLES = frozenset(
    {ADMIN, DATA_ENTRY, BRANCH_ADMIN, WAREHOUSE_OPERATOR, PORT_OPERATOR, CARRIER_OPERATOR, CLIENT}
)

BATCH_INTAKE = (DATA_ENTRY, BRANCH_ADMIN, ADMIN)
WAREHOUSE_MOVES = (WAREHOUSE_OPERATOR, ADMIN)
PORT_MOVES = (PORT_OPERATOR, ADMIN)
BATCH_ADMINISTRATION = (BRANCH_ADMIN, ADMIN)
DELIVERY_COMPLETION = (BRANCH_ADMIN, CARRIER_OPERATOR, ADMIN)

SHIPMENT_LIST = (DATA_ENTRY, BRANCH_ADMIN, CARRIER_OPERATOR, ADMIN)
SHIPMENT_INTAKE = (DATA_ENTRY, BRANCH_ADMIN, ADMIN)
SHIPMENT_VIEW = (DATA_ENTRY, BRANCH_ADMIN, CARRIER_OPERATOR, CLIENT, ADMIN)
SHIPMENT_STATUS_UPDATE = (CARRIER_OPERATOR, ADMIN)
SHIPMENT_CANCEL = (BRANCH_ADMIN, ADMIN)


def normalize_roles(roles) -> frozenset[str]:
    if not roles:
        return frozenset()
    if isinstance(roles, str):
        roles = [roles]
    return frozenset(role for role in roles if role in ALL_ROLES)


def is_client_only(roles) -> bool:
    return normalize_roles(roles) == {CLIENT}
