import enum


class _NamedStatus(str, enum.Enum):
    def __str__(self) -> str:
        return self.value


class BatchStatus(_NamedStatus):
    DRAFT = "Draft"
    OPEN = "Open"
    CLOSED = "Closed"
    IN_WAREHOUSE = "InWarehouse"
    AT_SOURCE_PORT = "AtSourcePort"
    CLEARED_SOURCE_PORT = "ClearedSourcePort"
    IN_TRANSIT = "InTransit"
    ARRIVED_DESTINATION_PORT = "ArrivedDestinationPort"
    IN_DESTINATION_WAREHOUSE = "InDestinationWarehouse"
    ASSIGNED_TO_CARRIERS = "AssignedToCarriers"
    DELIVERED = "Delivered"
    PARTIALLY_DELIVERED = "PartiallyDelivered"
    CANCELLED = "Cancelled"
    ARCHIVED = "Archived"


class ShipmentStatus(_NamedStatus):
    CREATED = "Created"
    IN_BATCH = "InBatch"
    IN_WAREHOUSE = "InWarehouse"
    AT_SOURCE_PORT = "AtSourcePort"
    IN_TRANSIT = "InTransit"
    AT_DESTINATION_PORT = "AtDestinationPort"
    WITH_CARRIER = "WithCarrier"
    OUT_FOR_DELIVERY = "OutForDelivery"
    DELIVERED = "Delivered"
    RETURNED = "Returned"
    CANCELLED = "Cancelled"


BATCH_TERMINAL_STATUSES = frozenset(
    {BatchStatus.DELIVERED, BatchStatus.PARTIALLY_DELIVERED, BatchStatus.CANCELLED, BatchStatus.ARCHIVED}
)


class ShipmentEventType:
    CREATED = "Created"
    STATUS_CHANGED = "StatusChanged"
    CANCELLED = "Cancelled"
    ADDED_TO_BATCH = "AddedToBatch"
    REMOVED_FROM_BATCH = "RemovedFromBatch"
    CARRIER_ASSIGNED = "CarrierAssigned"
