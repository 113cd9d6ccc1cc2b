"""
Pytest fixtures for backend API tests.
"""
from __future__ import annotations

import json
import os
import time
from collections.abc import AsyncGenerator
from typing import Any, Callable, Optional

# Settings are read at import time; give the required ones test values first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.database import Base, get_db
from app.core.security import SIGNATURE_HEADER, compute_signature
from app.main import app
from app.models.user import User

WEBHOOK_SECRET = "whsec_test_secret"
PRO_PRICE_ID = "pri_pro_monthly"
TEAM_PRICE_ID = "pri_team_monthly"
WEBHOOK_URL = "/api/v1/webhooks/paddle"


@pytest.fixture(autouse=True)
def paddle_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Deterministic Paddle configuration for every test.
    """
    monkeypatch.setattr(settings, "PADDLE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    monkeypatch.setattr(settings, "PADDLE_PRO_PRICE_ID", PRO_PRICE_ID)
    monkeypatch.setattr(settings, "PADDLE_TEAM_PRICE_ID", TEAM_PRICE_ID)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Fresh in-memory SQLite schema per test, with foreign keys enforced.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enforce_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        # Match PostgreSQL: reject rows pointing at missing users
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client whose requests share the test session.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as async_client:
        yield async_client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[..., Any]:
    """
    Factory inserting a committed user row.
    """

    async def _make_user(user_id: str, email: Optional[str] = None) -> User:
        user = User(id=user_id, email=email or f"{user_id}@example.com", name=user_id)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


def sign(body: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[str] = None) -> str:
    """
    Paddle-Signature header value for ``body``.
    """
    ts = timestamp or str(int(time.time()))
    digest = compute_signature(secret, ts.encode("utf-8") + b":" + body)
    return f"ts={ts};h1={digest}"


def event_body(event_type: str, data: dict[str, Any], event_id: Optional[str] = None) -> bytes:
    """
    Serialized notification envelope.
    """
    payload: dict[str, Any] = {
        "event_type": event_type,
        "occurred_at": "2026-01-01T00:00:00Z",
        "data": data,
    }
    if event_id is not None:
        payload["event_id"] = event_id
    return json.dumps(payload).encode("utf-8")


def subscription_data(
    sub_id: str,
    *,
    user_id: Optional[str] = None,
    status: str = "active",
    price_id: Optional[str] = PRO_PRICE_ID,
    next_billed_at: Optional[str] = "2026-02-01T00:00:00Z",
    **extra: Any,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": sub_id,
        "customer_id": "ctm_1",
        "status": status,
        "next_billed_at": next_billed_at,
        "items": [{"price": {"id": price_id}, "quantity": 1}] if price_id else [],
    }
    if user_id is not None:
        data["custom_data"] = {"userId": user_id}
    data.update(extra)
    return data


async def post_event(
    client: AsyncClient,
    body: bytes,
    *,
    signature: Optional[str] = None,
) -> Any:
    headers = {"Content-Type": "application/json"}
    headers[SIGNATURE_HEADER] = signature if signature is not None else sign(body)
    return await client.post(WEBHOOK_URL, content=body, headers=headers)
