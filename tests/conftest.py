import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./gollet-test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_webhook_secret")

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from app.api.deps import get_dojah, get_paystack
from app.api.v1.api import api_router
from app.core.config import settings
from app.core.rate_limit import limiter
from app.db.session import get_db
from app.main import register_exception_handlers
from app.models import transaction, user, wallet  # noqa: F401
from tests.utils import ProviderStub, make_dojah, make_paystack, stub_dojah_defaults, stub_paystack_defaults

# Disable rate limiting globally for tests
limiter.enabled = False

@pytest.fixture
async def engine(tmp_path):
    # File-backed so concurrent sessions see each other's commits
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'gollet.db'}",
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )

    # Take the write lock at BEGIN so concurrent transactions serialize like
    # row locks would on Postgres
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()

@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session

@pytest.fixture
def paystack_stub():
    stub = ProviderStub()
    stub_paystack_defaults(stub)
    return stub

@pytest.fixture
def dojah_stub():
    stub = ProviderStub()
    stub_dojah_defaults(stub)
    return stub

@pytest.fixture
def paystack(paystack_stub):
    return make_paystack(paystack_stub)

@pytest.fixture
def dojah(dojah_stub):
    return make_dojah(dojah_stub)

@pytest.fixture(autouse=True)
def email_queue():
    with patch("app.services.notifications.send_email_task") as task:
        yield task

@pytest.fixture
async def client(session_factory, paystack, dojah):
    # Create a fresh app for each test to avoid middleware/loop issues
    new_app = FastAPI()
    new_app.state.limiter = limiter
    register_exception_handlers(new_app)
    new_app.include_router(api_router, prefix=settings.API_PREFIX)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    new_app.dependency_overrides[get_db] = override_get_db
    new_app.dependency_overrides[get_paystack] = lambda: paystack
    new_app.dependency_overrides[get_dojah] = lambda: dojah

    async with AsyncClient(transport=ASGITransport(app=new_app), base_url="http://test") as c:
        yield c
