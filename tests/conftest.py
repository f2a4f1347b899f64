"""Pytest fixtures for testing"""

import uuid
import pytest
from decimal import Decimal
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from contract_ledger.api.main import create_app
from contract_ledger.api.dependencies import get_notifier
from contract_ledger.domain.models import Notification
from contract_ledger.infrastructure.database.models import Base, Property, Reservation
from contract_ledger.infrastructure.database.session import build_engine, get_db
from contract_ledger.services.contract_factory import ContractFactory, CreatedContract


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingNotifier:
    """Collects notifications instead of delivering them"""

    def __init__(self):
        self.notifications: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def types(self) -> List[str]:
        return [n.notification_type for n in self.notifications]


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
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def client(db: Session, notifier: RecordingNotifier) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    return TestClient(app)


@pytest.fixture
def property_row(db: Session) -> Property:
    """Reserved property priced at 1,000,000"""
    prop = Property(
        id=uuid.uuid4(),
        property_title="Lot 12 Block 4, Palm Residences",
        property_price=Decimal("1000000.00"),
        property_availability="reserved",
    )
    db.add(prop)
    db.commit()
    return prop


def _insert_reservation(db: Session, property_row: Property, **overrides) -> Reservation:
    fields = dict(
        reservation_id=uuid.uuid4(),
        tracking_number="TRK-2024-0001",
        property_id=property_row.id,
        property_title=property_row.property_title,
        property_price=Decimal("1000000.00"),
        reservation_fee=Decimal("10000.00"),
        user_id="client-001",
        client_name="Maria Santos",
        client_email="maria.santos@example.com",
        client_phone="+63 917 555 0101",
        client_address="12 Mabini St, Quezon City",
        status="approved",
    )
    fields.update(overrides)
    reservation = Reservation(**fields)
    db.add(reservation)
    db.commit()
    return reservation


@pytest.fixture
def reservation(db: Session, property_row: Property) -> Reservation:
    """
    Approved reservation: downpayment 100,000, fee 10,000, so 90,000 is left
    to spread over the installment ledger.
    """
    return _insert_reservation(db, property_row)


@pytest.fixture
def make_reservation(db: Session, property_row: Property):
    """Factory for extra reservations on the seeded property"""

    def factory(**overrides) -> Reservation:
        return _insert_reservation(db, property_row, **overrides)

    return factory


@pytest.fixture
def created_contract(db: Session, reservation: Reservation) -> CreatedContract:
    """Active 12-month monthly contract with 12 x 7,500 installments"""
    return ContractFactory(db).create(reservation.reservation_id, 12, "monthly")
