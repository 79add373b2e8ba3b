"""Test configuration and fixtures."""

import hashlib
import hmac
import json
import os

# Point the application at SQLite before anything imports its settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from adventure_api.core.database import Base, get_db  # noqa: E402
from adventure_api.core.security import create_access_token, hash_password  # noqa: E402
from adventure_api.models import *  # noqa: E402,F403 - Import all models
from adventure_api.models import Event, User, UserRole  # noqa: E402
from adventure_api.services.notifications import get_email_sender  # noqa: E402
from adventure_api.services.payment_gateway import RazorpayGateway, get_payment_gateway  # noqa: E402

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_KEY_ID = "rzp_test_key"
TEST_KEY_SECRET = "test_key_secret"
TEST_WEBHOOK_SECRET = "test_webhook_secret"
TEST_PASSWORD = "trek-safe-123"


def sign(secret: str, message: bytes) -> str:
    """HMAC-SHA256 hex digest, as the gateway signs callbacks and webhooks."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def checkout_signature(order_id: str, payment_id: str) -> str:
    return sign(TEST_KEY_SECRET, f"{order_id}|{payment_id}".encode("utf-8"))


def bearer(user: User) -> dict[str, str]:
    """Authorization header for a user."""
    token = create_access_token(
        subject=str(user.id),
        email=user.email,
        role=str(getattr(user.role, "value", user.role)),
    )
    return {"Authorization": f"Bearer {token}"}


def participant_payload(name: str = "Asha Rao", **overrides) -> dict:
    """A complete participant as the booking form submits it."""
    data = {
        "name": name,
        "age": 29,
        "gender": "FEMALE",
        "phone": "9876543210",
        "email": "asha@example.com",
        "emergencyContact": {"name": "Ravi Rao", "phone": "9876500000", "relationship": "Brother"},
    }
    data.update(overrides)
    return data


def event_values(**overrides) -> dict:
    """
    Column values for a trek with a flat calendar and two departures.

    - flat calendar: March 2030 (5th and 12th), 6 tracked seats; bookable only
      when the departures are overridden away
    - "Delhi to Delhi": April 2030 (10th, 17th), priced transport, 8 tracked seats;
      AC_TRAIN and BUS for the month, FLIGHT only on the 17th
    - "Manali to Manali": own price 7000 with an invalid discount, untracked seats,
      its own itinerary
    """
    values = {
        "title": "Hampta Pass Trek",
        "slug": "hampta-pass-trek",
        "description": "Crossover trek from the green Kullu valley to the stark Lahaul desert.",
        "short_description": "Five days over Hampta Pass",
        "price": 10000.0,
        "discounted_price": 8000.0,
        "duration": "5 Days / 4 Nights",
        "category": "TREKKING",
        "difficulty": "MODERATE",
        "location": {"name": "Manali", "state": "Himachal Pradesh", "country": "India"},
        "max_participants": 10,
        "min_participants": 1,
        "available_dates": [
            {"month": "March", "year": 2030, "dates": [5, 12], "availableSeats": 6, "totalSeats": 6},
        ],
        "departures": [
            {
                "label": "Delhi to Delhi",
                "origin": "Delhi",
                "destination": "Delhi",
                "transportOptions": [
                    {"mode": "AC_TRAIN", "price": 500},
                    {"mode": "BUS", "price": 0},
                    {"mode": "FLIGHT", "price": 4500},
                ],
                "availableDates": [
                    {
                        "month": "April",
                        "year": 2030,
                        "dates": [10, 17],
                        "availableTransportModes": ["AC_TRAIN", "BUS"],
                        "dateTransportModes": {"17": ["FLIGHT"]},
                        "availableSeats": 8,
                        "totalSeats": 8,
                    }
                ],
            },
            {
                "label": "Manali to Manali",
                "origin": "Manali",
                "destination": "Manali",
                "price": 7000,
                "discountedPrice": 7500,
                "availableDates": [{"month": "April", "year": 2030, "dates": [11]}],
                "itinerary": [
                    {"day": 1, "title": "Jobra to Chika", "description": "", "activities": [], "meals": []},
                    {"day": 0, "title": "Report at Manali", "description": "", "activities": [], "meals": []},
                ],
            },
        ],
        "itinerary": [
            {"day": 2, "title": "Chika to Balu ka Ghera", "description": "", "activities": ["Trek"], "meals": []},
            {"day": 1, "title": "Manali to Chika", "description": "", "activities": ["Drive"], "meals": []},
        ],
        "is_active": True,
        "is_featured": False,
    }
    values.update(overrides)
    return values


async def create_user(session: AsyncSession, email: str, role: UserRole = UserRole.USER, **overrides) -> User:
    user = User(
        name=overrides.pop("name", email.split("@")[0].title()),
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        is_verified=overrides.pop("is_verified", True),
        **overrides,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def create_event(session: AsyncSession, **overrides) -> Event:
    event = Event(**event_values(**overrides))
    session.add(event)
    await session.commit()
    await session.refresh(event)
    return event


async def create_flat_event(session: AsyncSession, **overrides) -> Event:
    """Departure-less trek booked straight off its March calendar."""
    values = {"title": "Kedarkantha Trek", "slug": "kedarkantha-trek", "departures": []}
    values.update(overrides)
    return await create_event(session, **values)


def _razorpay_handler(request: httpx.Request) -> httpx.Response:
    """Answer order and refund calls the way the gateway's test mode does."""
    payload = json.loads(request.content or b"{}")
    path = request.url.path

    if path.endswith("/orders"):
        if payload["amount"] <= 0:
            return httpx.Response(400, json={"error": {"description": "The amount must be at least INR 1.00"}})
        return httpx.Response(200, json={
            "id": f"order_{payload['receipt']}",
            "entity": "order",
            "amount": payload["amount"],
            "currency": payload["currency"],
            "receipt": payload["receipt"],
            "status": "created",
        })

    if path.endswith("/refund"):
        payment_id = path.rstrip("/").split("/")[-2]
        return httpx.Response(200, json={
            "id": f"rfnd_{payment_id}",
            "entity": "refund",
            "payment_id": payment_id,
            "amount": payload["amount"],
            "status": "processed",
        })

    return httpx.Response(404, json={"error": {"description": "The requested URL was not found"}})


class RecordingEmailSender:
    """Email sender that keeps the OTPs it was asked to deliver."""

    def __init__(self):
        self.sent: list[dict[str, str]] = []

    async def send_otp(self, email: str, name: str, otp: str, purpose: str) -> None:
        self.sent.append({"email": email, "name": name, "otp": otp, "purpose": purpose})

    def last_otp(self, email: str) -> str:
        return next(item["otp"] for item in reversed(self.sent) if item["email"] == email)


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def gateway_requests() -> list[httpx.Request]:
    """Requests the payment gateway client sent during a test."""
    return []


@pytest.fixture
def payment_gateway(gateway_requests) -> RazorpayGateway:
    """Real gateway client wired to an in-process mock of the Razorpay API."""
    def handler(request: httpx.Request) -> httpx.Response:
        gateway_requests.append(request)
        return _razorpay_handler(request)

    return RazorpayGateway(
        key_id=TEST_KEY_ID,
        key_secret=TEST_KEY_SECRET,
        webhook_secret=TEST_WEBHOOK_SECRET,
        base_url="https://razorpay.test/v1",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest_asyncio.fixture(scope="function")
async def test_app(test_session, payment_gateway, email_sender):
    """Create a test FastAPI application."""
    from fastapi import FastAPI
    from fastapi.exceptions import RequestValidationError
    from fastapi.middleware.cors import CORSMiddleware

    from adventure_api.core.exceptions import (
        ProblemDetailsException,
        generic_exception_handler,
        problem_details_handler,
        request_validation_handler,
    )
    from adventure_api.routers import (
        admin_events,
        admin_users,
        auth,
        bookings,
        events,
        metrics,
        payment,
        settings as settings_router,
        stories,
        teams,
        testimonials,
        transactions,
        user,
    )

    # Create a simplified test app without lifespan
    app = FastAPI(
        title="Adventure Booking API (Test)",
        description="Test version of the API",
        version="1.0.0-test",
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Simplified for tests
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Register API routers
    app.include_router(auth.router)
    app.include_router(events.router)
    app.include_router(bookings.router)
    app.include_router(payment.router)
    app.include_router(user.router)
    app.include_router(testimonials.router)
    app.include_router(stories.router)
    app.include_router(teams.router)
    app.include_router(settings_router.router)
    app.include_router(admin_events.router)
    app.include_router(admin_users.router)
    app.include_router(transactions.router)
    app.include_router(metrics.router)

    # Override database, gateway and email dependencies
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway
    app.dependency_overrides[get_email_sender] = lambda: email_sender

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def customer(test_session) -> User:
    return await create_user(test_session, "asha@example.com", name="Asha Rao")


@pytest_asyncio.fixture
async def other_customer(test_session) -> User:
    return await create_user(test_session, "kabir@example.com", name="Kabir Singh")


@pytest_asyncio.fixture
async def admin(test_session) -> User:
    return await create_user(test_session, "ops@example.com", role=UserRole.ADMIN, name="Ops Desk")


@pytest.fixture
def customer_headers(customer) -> dict[str, str]:
    return bearer(customer)


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return bearer(admin)


@pytest_asyncio.fixture
async def trek_event(test_session) -> Event:
    return await create_event(test_session)


@pytest_asyncio.fixture
async def flat_event(test_session) -> Event:
    return await create_flat_event(test_session)


@pytest.fixture
def sample_event_data():
    """Admin create payload for an event."""
    return {
        "title": "Valley of Flowers Trek",
        "description": "Alpine meadows in full bloom beneath Hathi Parvat.",
        "price": 14500,
        "discountedPrice": 12999,
        "duration": "6 Days",
        "category": "TREKKING",
        "difficulty": "EASY",
        "location": {"name": "Govindghat", "state": "Uttarakhand"},
        "inclusions": ["Meals", "Permits"],
        "maxParticipants": 18,
        "availableDates": [{"month": "July", "year": 2030, "dates": [14, 21], "availableSeats": 18, "totalSeats": 18}],
    }


@pytest.fixture
def departure_booking_payload(trek_event):
    """Two travellers on the Delhi departure by AC train (the 16,500 scenario)."""
    return {
        "eventId": str(trek_event.id),
        "date": "2030-04-10",
        "selectedDeparture": "Delhi to Delhi",
        "selectedTransportMode": "AC_TRAIN",
        "participants": [participant_payload(), participant_payload("Meera Iyer", email="meera@example.com")],
        "totalAmount": 16500,
    }


@pytest.fixture
def flat_booking_payload(flat_event):
    """Two travellers on the flat March calendar."""
    return {
        "eventId": flat_event.slug,
        "date": "2030-03-05",
        "participants": [participant_payload(), participant_payload("Meera Iyer", email="meera@example.com")],
    }
