import itertools
import json
import os
from datetime import datetime, timezone
from decimal import Decimal

# до импорта food_court: settings читаются при импорте
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ["ESTIMATED_TIME_TICK_ENABLED"] = "false"

import httpx
import pytest
import pytest_asyncio
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from food_court.config import settings
from food_court.crud import catalog
from food_court.db.base import Base
from food_court.models import Order, OrderItem, OrderStatusEnum, OrderTypeEnum
from food_court.services.payment import PaymentGateway, compute_signature

GATEWAY_ORDER_ID = "order_TEST123"


class FakeRedis:
    """Минимальная замена redis.asyncio: publish, SET NX, ping."""

    def __init__(self):
        self.published = []
        self.store = {}

    async def publish(self, channel, message):
        self.published.append((channel, json.loads(message)))
        return 1

    async def set(self, key, value, nx=False, px=None, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def ping(self):
        return True


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    redis = FakeRedis()
    monkeypatch.setattr("food_court.services.notifications.get_redis", lambda: redis)
    monkeypatch.setattr("food_court.api.health.get_redis", lambda: redis)
    return redis


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(db):
    """
    R001 Spice Hub: Paneer Tikka 120 (+10 takeaway), Masala Dosa 130 (+10).
    R002 Chai Point: Cutting Chai 20 (+5).
    """
    await catalog.create_restaurant(db, "R001", "Spice Hub", phone="9876543210")
    await catalog.create_restaurant(db, "R002", "Chai Point")
    paneer = await catalog.create_menu_item(
        db, "R001", "Paneer Tikka", Decimal("120.00"), Decimal("10.00"), category="Starters"
    )
    dosa = await catalog.create_menu_item(
        db, "R001", "Masala Dosa", Decimal("130.00"), Decimal("10.00"), category="Mains"
    )
    chai = await catalog.create_menu_item(
        db, "R002", "Cutting Chai", Decimal("20.00"), Decimal("5.00"), category="Beverages"
    )
    return {"paneer": paneer, "dosa": dosa, "chai": chai}


_order_numbers = itertools.count(1)


@pytest.fixture
def make_order(db, seeded):
    """
    Вставляет заказ напрямую, минуя оплату: для тестов переходов и аналитики.
    """

    async def _make(
        status=OrderStatusEnum.pending,
        user_id="U1",
        restaurant_id="R001",
        order_type=OrderTypeEnum.dining,
        created_at=None,
        otp="4821",
        estimated_time=0,
        lines=None,
        total=None,
    ):
        if lines is None:
            lines = [
                ("R001-FI001", "Paneer Tikka", Decimal("120.00"), 1),
                ("R001-FI002", "Masala Dosa", Decimal("130.00"), 1),
            ]
        subtotal = sum((price * qty for _, _, price, qty in lines), Decimal("0"))
        service_charge = (
            sum((Decimal("10.00") * qty for *_, qty in lines), Decimal("0"))
            if order_type == OrderTypeEnum.takeaway
            else Decimal("0")
        )
        if total is not None:
            subtotal, service_charge = Decimal(total), Decimal("0")

        order = Order(
            order_id=f"ORD{next(_order_numbers):06d}",
            user_id=user_id,
            restaurant_id=restaurant_id,
            order_type=order_type,
            subtotal=subtotal,
            service_charge=service_charge,
            total=subtotal + service_charge,
            status=status,
            otp=otp,
            created_at=created_at or datetime.now(timezone.utc),
            estimated_time=estimated_time,
            has_rated=False,
            items=[
                OrderItem(
                    food_item_id=food_item_id,
                    name=name,
                    price=price,
                    quantity=qty,
                    restaurant_name="Spice Hub" if restaurant_id == "R001" else "Chai Point",
                )
                for food_item_id, name, price, qty in lines
            ],
        )
        db.add(order)
        await db.commit()
        return order

    return _make


def gateway_handler(request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    return httpx.Response(
        200,
        json={
            "id": GATEWAY_ORDER_ID,
            "entity": "order",
            "amount": body["amount"],
            "currency": body["currency"],
            "receipt": body["receipt"],
            "status": "created",
        },
    )


@pytest.fixture
def gateway():
    return PaymentGateway(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        api_url="https://gateway.test/v1",
        transport=httpx.MockTransport(gateway_handler),
    )


def sign(gateway_order_id: str, payment_id: str) -> str:
    return compute_signature(gateway_order_id, payment_id, settings.RAZORPAY_KEY_SECRET)


def make_token(subject: str, role: str) -> str:
    return jwt.encode({"sub": subject, "role": role}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def auth(subject: str, role: str) -> dict:
    return {"Authorization": f"Bearer {make_token(subject, role)}"}
