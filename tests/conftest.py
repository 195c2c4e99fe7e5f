# tests/conftest.py

from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi import Depends
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.testclient import TestClient

from studentnest.api import deps
from studentnest.config.settings import Settings
from studentnest.db.base import Base, import_models
from studentnest.db.session import get_db
from studentnest.main import create_app
from studentnest.models.listing import Listing
from studentnest.services.booking import BookingReconciler
from studentnest.services.negotiation import NegotiationService
from studentnest.services.notification import NotificationDispatcher, Notifier
from studentnest.services.payment import PaymentConfirmationService

from tests.helpers import OWNER_ID, PAYMENT_SECRET


class FrozenClock:
    """Deterministic "now" for expiry and move-in checks."""

    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture(scope="function")
def engine():
    import_models()
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def file_session_factory(tmp_path):
    """Sessions over a SQLite file, each on its own connection, for interleaving units of work."""
    import_models()
    engine = create_engine(
        f"sqlite:///{tmp_path / 'studentnest.db'}",
        connect_args={"check_same_thread": False, "timeout": 5},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    engine.dispose()


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 12, 1, 10, 0, 0))


@pytest.fixture
def test_settings():
    return Settings(RAZORPAY_KEY_SECRET=PAYMENT_SECRET, RAZORPAY_KEY_ID="rzp_test_key")


@pytest.fixture
def notifier():
    return MagicMock(spec=Notifier)


@pytest.fixture
def dispatcher(notifier):
    return NotificationDispatcher(notifier)


@pytest.fixture
def make_listing(db_session):
    def _make(price="12000.00", total_rooms=3, available_rooms=None, owner_id=OWNER_ID, **kwargs):
        listing = Listing(
            owner_id=owner_id,
            title=kwargs.pop("title", "Sunrise PG, Koramangala"),
            price=Decimal(price),
            total_rooms=total_rooms,
            available_rooms=total_rooms if available_rooms is None else available_rooms,
            is_available=(total_rooms if available_rooms is None else available_rooms) > 0,
            **kwargs,
        )
        db_session.add(listing)
        db_session.commit()
        return listing

    return _make


@pytest.fixture
def negotiation_service(db_session, dispatcher, clock, test_settings):
    return NegotiationService(db_session, notifications=dispatcher, clock=clock, config=test_settings)


@pytest.fixture
def reconciler(db_session, dispatcher, clock, test_settings):
    return BookingReconciler(db_session, notifications=dispatcher, clock=clock, config=test_settings)


@pytest.fixture
def payment_service(db_session, dispatcher, clock, test_settings):
    return PaymentConfirmationService(db_session, notifications=dispatcher, clock=clock, config=test_settings)


@pytest.fixture
def notified_kinds(notifier):
    """Notification kinds delivered so far, in order."""
    def _kinds():
        return [c.args[1] for c in notifier.notify.call_args_list]

    return _kinds


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def test_client(session_factory, notifier, test_settings):
    """
    TestClient over the in-memory database with a mock notifier.
    Services use the real clock here.
    """
    app = create_app(initialize_db=False)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    def override_get_payment_service(db=Depends(override_get_db)):
        return PaymentConfirmationService(
            db, notifications=NotificationDispatcher(notifier), config=test_settings
        )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_notification_dispatcher] = lambda: NotificationDispatcher(notifier)
    app.dependency_overrides[deps.get_payment_service] = override_get_payment_service

    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
