from sqlalchemy import select

from app.shiptrack.db.models import Branch, Carrier, Client, Port, Warehouse


class RecordRepository:
    """Lookup-only access to a master-data table."""

    model = None

    def __init__(self, db):
        self.db = db

    def get(self, record_id):
        return self.db.get(self.model, record_id)

    def exists(self, record_id) -> bool:
        stmt = select(self.model.id).where(self.model.id == record_id)
        return self.db.execute(stmt).scalars().first() is not None

    def get_by_name(self, name: str):
        return self.db.execute(select(self.model).where(self.model.name == name)).scalars().first()


class BranchRepository(RecordRepository):
    model = Branch


class WarehouseRepository(RecordRepository):
    model = Warehouse


class PortRepository(RecordRepository):
    model = Port


class CarrierRepository(RecordRepository):
    model = Carrier


class ClientRepository(RecordRepository):
    model = Client

    def get_by_user_id(self, user_id):
        return self.db.execute(select(Client).where(Client.user_id == user_id)).scalars().first()
