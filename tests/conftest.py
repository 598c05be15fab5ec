import os

# Configure the app for tests before any bookly module reads the environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["RESEND_API_KEY"] = ""
os.environ["SMTP_HOST"] = ""

from datetime import date, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from bookly import worker  # noqa: E402
from bookly.database import Base, get_db  # noqa: E402
from bookly.domain.bookings.service import build_pricing_snapshot  # noqa: E402
from bookly.domain.scheduling.time_calculator import minutes_to_hhmm, parse_hhmm  # noqa: E402
from bookly.main import app  # noqa: E402
from bookly.models import Booking, Category, Service, User  # noqa: E402
from bookly.security_utils import create_access_token  # noqa: E402
from bookly.services import notification_service  # noqa: E402
from bookly.shared.time_utils import utc_now  # noqa: E402

LAST_MINUTE = 23 * 60 + 59


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing emails instead of calling Resend/SMTP"""
    sent = []

    async def fake_dispatch_email(template_name, recipient, data):
        sent.append({"template": template_name, "to": recipient, "data": data})
        return {"success": True, "error": None}

    monkeypatch.setattr(notification_service, "dispatch_email", fake_dispatch_email)
    monkeypatch.setattr(worker, "dispatch_email", fake_dispatch_email)
    return sent


@pytest.fixture
def client(session_factory, sent_emails, monkeypatch):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    # Background email tasks open their own session
    monkeypatch.setattr(notification_service, "SessionLocal", session_factory)
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============================================================================
# FACTORIES
# ============================================================================


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role="user", **overrides):
        counter["n"] += 1
        user = User(
            email=overrides.pop("email", f"{role}{counter['n']}@example.com"),
            first_name=overrides.pop("first_name", role.capitalize()),
            last_name=overrides.pop("last_name", f"Number{counter['n']}"),
            role=role,
            **overrides,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def customer(make_user):
    return make_user("user", first_name="Casey", last_name="Customer")


@pytest.fixture
def provider(make_user):
    return make_user("provider", first_name="Pat", last_name="Provider")


@pytest.fixture
def admin(make_user):
    return make_user("admin", first_name="Alex", last_name="Admin")


@pytest.fixture
def make_category(db_session):
    def _make_category(name="Cleaning", parent=None, **overrides):
        category = Category(
            name=name,
            slug=overrides.pop("slug", name.lower().replace(" ", "-")),
            parent_id=parent.id if parent else None,
            level=(parent.level + 1) if parent else 0,
            **overrides,
        )
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return _make_category


@pytest.fixture
def make_service(db_session):
    def _make_service(provider, duration=60, price=100.0, **overrides):
        service = Service(
            provider_id=provider.id,
            title=overrides.pop("title", "Deep Cleaning"),
            description=overrides.pop("description", "Whole-home deep clean"),
            duration=duration,
            price=price,
            **overrides,
        )
        db_session.add(service)
        db_session.commit()
        db_session.refresh(service)
        return service

    return _make_service


@pytest.fixture
def service(make_service, provider):
    return make_service(provider)


@pytest.fixture
def make_booking(db_session):
    """Insert a booking directly, bypassing the create-time checks"""

    def _make_booking(customer, service, scheduled_date, start_time="10:00", status="pending"):
        booking = Booking(
            customer_id=customer.id,
            provider_id=service.provider_id,
            service_id=service.id,
            scheduled_date=scheduled_date,
            start_time=start_time,
            end_time=minutes_to_hhmm(min(parse_hhmm(start_time) + service.duration, LAST_MINUTE)),
            duration=service.duration,
            status=status,
            pricing=build_pricing_snapshot(service),
            timeline=[{"status": status, "timestamp": utc_now().isoformat(), "updatedBy": customer.id, "note": None}],
        )
        db_session.add(booking)
        db_session.commit()
        db_session.refresh(booking)
        return booking

    return _make_booking


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def headers():
    return auth_headers


@pytest.fixture
def future_date() -> date:
    return (utc_now() + timedelta(days=7)).date()


@pytest.fixture
def slot_at():
    def _slot_at(hours_from_now: float) -> tuple[date, str]:
        """(date, HH:MM) for a start time roughly the given number of hours away"""
        start: datetime = utc_now() + timedelta(hours=hours_from_now)
        return start.date(), f"{start.hour:02d}:{start.minute:02d}"

    return _slot_at
