from app.shiptrack.db.models import ShipmentEvent


class ShipmentEventRepository:
    def __init__(self, db):
        self.db = db

    def add(self, event: ShipmentEvent) -> ShipmentEvent:
        self.db.add(event)
        return event
