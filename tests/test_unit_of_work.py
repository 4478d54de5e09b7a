import uuid

import pytest
from sqlalchemy import select

from app.shiptrack.db.models import Branch
from app.shiptrack.db.unit_of_work import UnitOfWork


def test_transaction_commits_on_success(db_session):
    uow = UnitOfWork(db_session)
    with uow.transaction():
        db_session.add(Branch(id=uuid.uuid4(), name="Committed Branch"))

    db_session.expire_all()
    assert uow.branches.get_by_name("Committed Branch") is not None


def test_transaction_rolls_back_on_error(db_session):
    uow = UnitOfWork(db_session)
    with pytest.raises(RuntimeError):
        with uow.transaction():
            db_session.add(Branch(id=uuid.uuid4(), name="Discarded Branch"))
            db_session.flush()
            raise RuntimeError("abort")

    rows = db_session.execute(select(Branch).where(Branch.name == "Discarded Branch")).scalars().all()
    assert rows == []
