"""Shared fixtures: in-memory MongoDB, stub identity provider and payment gateway."""

from datetime import datetime, timedelta
from typing import Dict, Optional

import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient

from contesthub.config import Settings
from contesthub.core.exceptions import NotFoundError, UnauthorizedError
from contesthub.database import Database
from contesthub.main import create_app
from contesthub.models.contest.contest import ContestCreate, ContestStatus
from contesthub.services.auth.identity import IdentityProvider
from contesthub.services.contest.contest import ContestService
from contesthub.services.payment.gateways.base import (
    BasePaymentGateway,
    CheckoutSessionDetails,
    CheckoutSessionResult,
)
from contesthub.services.payment.payment_service import PaymentService


ADMIN_EMAIL = "root@example.com"


class StaticIdentityProvider(IdentityProvider):
    """Accepts bearer tokens of the form ``token-<email>``."""

    async def verify(self, token: Optional[str]) -> str:
        if not token or not token.startswith("token-"):
            raise UnauthorizedError()
        return token[len("token-"):]


class FakeGateway(BasePaymentGateway):
    """In-memory checkout sessions; ``pay`` plays the part of the payer."""

    gateway_id = "fake"

    def __init__(self) -> None:
        super().__init__({})
        self.sessions: Dict[str, CheckoutSessionDetails] = {}
        self.created: list = []

    def _validate_config(self) -> None:
        pass

    async def create_checkout_session(
        self,
        amount,
        currency,
        product_name,
        customer_email,
        success_url,
        cancel_url,
        product_description=None,
        product_image=None,
        metadata=None,
    ) -> CheckoutSessionResult:
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.created.append({
            "session_id": session_id,
            "amount": amount,
            "currency": currency,
            "product_name": product_name,
            "customer_email": customer_email,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": dict(metadata or {}),
        })
        self.sessions[session_id] = CheckoutSessionDetails(
            session_id=session_id,
            payment_status="unpaid",
            amount=amount,
            currency=currency,
            customer_email=customer_email,
            metadata=dict(metadata or {}),
        )
        return CheckoutSessionResult(session_id=session_id, url=f"https://checkout.test/{session_id}")

    def pay(self, session_id: str) -> None:
        session = self.sessions[session_id]
        session.payment_status = "paid"
        session.transaction_id = f"pi_{session_id}"

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSessionDetails:
        if session_id not in self.sessions:
            raise NotFoundError("Checkout session not found")
        return self.sessions[session_id]


def auth(email: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer token-{email}"}


def contest_payload(**overrides) -> dict:
    payload = {
        "name": "Logo Design Sprint",
        "image": "https://img.test/logo.png",
        "description": "Design a logo for a neighbourhood bakery.",
        "task_instruction": "Upload a PNG and share the link.",
        "contest_type": "Image Design",
        "entry_price": 10.0,
        "prize_money": 100.0,
        "deadline": datetime.utcnow() + timedelta(days=7),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        mongodb_url="mongodb://localhost:27017",
        database_name="contesthub_test",
        firebase_project_id="contesthub-test",
        stripe_secret_key="sk_test_123",
        payment_gateway="stripe",
        payment_currency="usd",
        client_url="http://client.test",
        debug=False,
    )


@pytest.fixture
async def database(settings: Settings) -> Database:
    database = Database(settings.mongodb_url, settings.database_name, client=AsyncMongoMockClient())
    await database.create_indexes()
    return database


@pytest.fixture
def db(database: Database):
    return database.get_db()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
async def users(db) -> Dict[str, dict]:
    """alice is a creator, dave a second creator, bob and carol plain users, root an admin."""
    now = datetime.utcnow()
    people = {
        "alice": ("alice@example.com", "creator", "Alice"),
        "dave": ("dave@example.com", "creator", "Dave"),
        "bob": ("bob@example.com", "user", "Bob"),
        "carol": ("carol@example.com", "user", "Carol"),
        "root": (ADMIN_EMAIL, "admin", "Root"),
    }
    result = {}
    for key, (email, role, name) in people.items():
        await db.users.insert_one({
            "email": email,
            "role": role,
            "name": name,
            "photo_url": None,
            "created_at": now,
            "updated_at": now,
        })
        result[key] = await db.users.find_one({"email": email})
    return result


@pytest.fixture
def contest_factory(db):
    """Create a contest for a creator, optionally approving it."""

    async def _create(creator: dict, approve: bool = False, **overrides) -> str:
        service = ContestService(db)
        contest = await service.create_contest(ContestCreate(**contest_payload(**overrides)), creator)
        contest_id = str(contest["_id"])
        if approve:
            await service.set_status(contest_id, ContestStatus.APPROVED, ADMIN_EMAIL)
        return contest_id

    return _create


@pytest.fixture
def payment_service(db, gateway: FakeGateway, settings: Settings) -> PaymentService:
    return PaymentService(db, gateway, settings)


@pytest.fixture
def enroll(payment_service: PaymentService, gateway: FakeGateway):
    """Run checkout, pay, and completion for one participant."""

    async def _enroll(contest_id: str, participant: dict) -> dict:
        session = await payment_service.create_checkout_session(contest_id, participant)
        gateway.pay(session["session_id"])
        return await payment_service.complete_payment(session["session_id"], participant)

    return _enroll


@pytest.fixture
async def client(settings: Settings, database: Database, gateway: FakeGateway):
    app = create_app(
        settings=settings,
        database=database,
        identity_provider=StaticIdentityProvider(),
        payment_gateway=gateway,
    )
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
