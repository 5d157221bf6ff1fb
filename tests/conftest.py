import os

# Must be set before boxoffice.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, time
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from boxoffice.db.base import Base
from boxoffice.integrations.identity import IdentityDirectory, SqlIdentityDirectory
from boxoffice.integrations.notifications import LoggingNotifier, NotificationDispatcher
from boxoffice.models.customer import Customer
from boxoffice.models.room import Room
from boxoffice.services import scheduler

SHOW_DATE = date(2024, 6, 1)


class UnreachableIdentity(IdentityDirectory):
    """Identity store that is down."""

    def customer_exists(self, customer_id):
        raise ConnectionError("identity store unreachable")

    def get_customer_email(self, customer_id):
        raise ConnectionError("identity store unreachable")

    def get_subscribed_customer_emails(self):
        raise ConnectionError("identity store unreachable")


class RecordingIdentity(IdentityDirectory):
    """In-memory identity store that remembers which e-mail lookups were made."""

    def __init__(self, emails):
        self.emails = dict(emails)
        self.email_lookups = []

    def customer_exists(self, customer_id):
        return customer_id in self.emails

    def get_customer_email(self, customer_id):
        self.email_lookups.append(customer_id)
        return self.emails.get(customer_id)

    def get_subscribed_customer_emails(self):
        return list(self.emails.values())


class FailingNotifier(LoggingNotifier):
    def send_booking_confirmation(self, email, booking_id, tickets, total):
        raise ConnectionError("mail relay unreachable")

    def send_promotion_broadcast(self, emails, promotion):
        raise ConnectionError("mail relay unreachable")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def room(db):
    """Room R: 50 seats."""
    room = Room(name="Screen 1", seat_count=50)
    db.add(room)
    db.commit()
    return room


@pytest.fixture
def small_room(db):
    room = Room(name="Screening Room", seat_count=2)
    db.add(room)
    db.commit()
    return room


@pytest.fixture
def customers(db):
    """Customer 7 and 9 subscribe to promotions, customer 8 does not."""
    db.add_all([
        Customer(id=7, email="alice@example.com", promotion_subscription=True),
        Customer(id=8, email="bob@example.com", promotion_subscription=False),
        Customer(id=9, email="carol@example.com", promotion_subscription=True),
    ])
    db.commit()


@pytest.fixture
def identity(session_factory, customers):
    return SqlIdentityDirectory(session_factory)


@pytest.fixture
def notifier():
    return LoggingNotifier()


@pytest.fixture
def notifications(notifier):
    # No executor: messages are sent inline so tests can inspect them
    return NotificationDispatcher(notifier)


@pytest.fixture
def showtime_a(db, room):
    """Showtime A: room R, 2024-06-01, 14:00-16:00, $12.50."""
    return scheduler.schedule_showtime(
        db,
        movie_id=1,
        room_id=room.id,
        show_date=SHOW_DATE,
        start_time=time(14, 0),
        duration_minutes=120,
        price=Decimal("12.50"),
    )


@pytest.fixture
def client(session_factory, identity, notifications):
    from boxoffice.api.deps import get_db, get_identity, get_notifications
    from boxoffice.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity] = lambda: identity
    app.dependency_overrides[get_notifications] = lambda: notifications

    # Not entered as a context manager, so the expiry loop never starts
    yield TestClient(app)

    app.dependency_overrides.clear()
