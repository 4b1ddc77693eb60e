"""Pytest fixtures for testing"""

import pytest
from datetime import datetime
from decimal import Decimal
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fiado_ledger.api.main import create_app
from fiado_ledger.api.dependencies import get_clock
from fiado_ledger.domain.ledger import ReceivableLedger
from fiado_ledger.domain.models import Customer, Mechanic
from fiado_ledger.infrastructure.database.models import Base
from fiado_ledger.infrastructure.database.repositories import CustomerRepository, SaleRepository, WorkshopRepository
from fiado_ledger.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FrozenClock:
    """Clock that only moves when a test moves it"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 1, 1, 9, 30))


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session, clock: FrozenClock) -> TestClient:
    """Create FastAPI test client with test database and frozen clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app)


@pytest.fixture
def ledger(db: Session, clock: FrozenClock) -> ReceivableLedger:
    """Ledger over the test database"""
    return ReceivableLedger(
        sales=SaleRepository(db),
        customers=CustomerRepository(db),
        clock=clock,
        shop_name="Kombat Moto Peças",
        workshop=WorkshopRepository(db),
    )


@pytest.fixture
def make_customer(db: Session) -> Callable[..., Customer]:
    """Register a customer straight in the test database"""

    def _make(name: str = "João Silva", credit_limit: str = "500.00", **fields) -> Customer:
        return CustomerRepository(db).create_customer(
            Customer(
                id=None,
                name=name,
                whatsapp=fields.pop("whatsapp", "5511999999999"),
                credit_limit=Decimal(credit_limit),
                **fields,
            )
        )

    return _make


@pytest.fixture
def mechanic(db: Session) -> Mechanic:
    """Mechanic M1 in the workshop registry"""
    return WorkshopRepository(db).create_mechanic(Mechanic(id="M1", name="Carlos"))
