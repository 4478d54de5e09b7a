from datetime import datetime

from app.shiptrack.db.models import ShipmentEvent, utcnow
from app.shiptrack.repos.shipment_events import ShipmentEventRepository


class ShipmentEventRecorder:
    """Append-only writer for the shipment event log.

    Events are added to the caller's session and committed together with the
    change they describe.
    """

    def __init__(self, repo: ShipmentEventRepository):
        self.repo = repo

    def append(
        self,
        shipment_id,
        event_type: str,
        message: str,
        *,
        actor_user_id: str | None = None,
        location: str | None = None,
        timestamp: datetime | None = None,
    ) -> ShipmentEvent:
        event = ShipmentEvent(
            shipment_id=shipment_id,
            event_type=event_type,
            actor_user_id=actor_user_id,
            location=location,
            message=message,
            created_at=timestamp or utcnow(),
        )
        return self.repo.add(event)
