"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from loan_ledger.api.dependencies import get_clock, get_store
from loan_ledger.api.main import create_app
from loan_ledger.config import settings
from loan_ledger.domain.ledger import LedgerEngine
from loan_ledger.infrastructure.database.models import Base
from loan_ledger.infrastructure.database.repositories import SqlLoanStore
from loan_ledger.infrastructure.store.memory import InMemoryLoanStore


# Test database
TEST_DATABASE_URL = "sqlite:///./test_loan_ledger.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

INITIAL_DEBT = Decimal("1000.00")
PAYMENT_USER = "owner"
PAYMENT_PASSWORD = "s3cret"


class FixedClock:
    """Deterministic stand-in for the wall clock"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


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
def session_factory(db: Session) -> Generator[Callable[[], Session], None, None]:
    """Open extra sessions against the test database, as separate workers would"""
    opened = []

    def _open() -> Session:
        s = TestingSessionLocal()
        opened.append(s)
        return s

    yield _open
    for s in opened:
        s.close()


@pytest.fixture
def sql_store(db: Session) -> SqlLoanStore:
    return SqlLoanStore(db, initial_debt=INITIAL_DEBT)


@pytest.fixture
def memory_store() -> InMemoryLoanStore:
    return InMemoryLoanStore(initial_debt=INITIAL_DEBT)


@pytest.fixture
def clock() -> FixedClock:
    """28 May 2024, 09:00 UTC - an accrual day"""
    return FixedClock(datetime(2024, 5, 28, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def engine_on_memory(memory_store: InMemoryLoanStore, clock: FixedClock) -> LedgerEngine:
    return LedgerEngine(memory_store, clock=clock, max_retries=5)


@pytest.fixture
def auth_settings(monkeypatch):
    """Known credentials and accrual settings for API tests"""
    monkeypatch.setattr(settings, "payment_basic_auth_user", PAYMENT_USER)
    monkeypatch.setattr(settings, "payment_basic_auth_password", PAYMENT_PASSWORD)
    monkeypatch.setattr(settings, "cron_secret", None)
    monkeypatch.setattr(settings, "accrual_timezone", "UTC")
    return PAYMENT_USER, PAYMENT_PASSWORD


@pytest.fixture
def client(sql_store: SqlLoanStore, clock: FixedClock, auth_settings) -> TestClient:
    """Create FastAPI test client with test database and fixed clock"""
    app = create_app()

    def override_get_store():
        yield sql_store

    app.dependency_overrides[get_store] = override_get_store
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app)
