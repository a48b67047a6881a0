import pytest
import pytest_asyncio
from datetime import datetime
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import get_event_publisher, get_payment_gateway, get_session
from src.adapter.services.event_publisher import LoggingEventPublisher
from src.domain.plan import Plan

WEBHOOK_SECRET = "whsec_integration"


@pytest_asyncio.fixture(scope="function")
async def engine():
    """In-memory SQLite database, created fresh for every test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    """Create a new database session for each test"""
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_plans(db_session):
    """Free, pro and partner plans, inserted out of display order"""
    plans = [
        Plan(
            id="plan_partner",
            tier="partner",
            name="Partner",
            price_monthly=29900,
            features={"applications_per_month": -1, "ai_matching": True, "api_access": True},
            processor_price_id="price_partner",
        ),
        Plan(
            id="plan_free",
            tier="free",
            name="Free",
            price_monthly=0,
            features={"applications_per_month": 10},
            created_at=datetime(2024, 1, 1),
        ),
        Plan(
            id="plan_pro",
            tier="pro",
            name="Pro",
            price_monthly=9900,
            features={"applications_per_month": 100, "ai_matching": True},
            processor_price_id="price_pro",
        ),
    ]
    for plan in plans:
        db_session.add(plan)
    await db_session.commit()
    return {plan.id: plan for plan in plans}


@pytest.fixture
def webhook_secret(monkeypatch):
    from config import ApplicationConfig

    monkeypatch.setattr(ApplicationConfig, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


@pytest.fixture
def app(db_session):
    """Application with the database session overridden and no payment gateway"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # Override the session dependency to use test session
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_payment_gateway] = lambda: None
    app.dependency_overrides[get_event_publisher] = LoggingEventPublisher
    return app


@pytest_asyncio.fixture
async def client(app):
    """Create test client against the overridden application"""
    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
