"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of bittap.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

from datetime import UTC, datetime  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from bittap.config import BitTapConfig  # noqa: E402
from bittap.database.models import Account, Base  # noqa: E402

# Fixed clock used by service tests
T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)

OPERATOR_ID = 424242


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all BitTap tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` and the threaded tap tests).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def make_account(db_engine: Engine):
    """Factory that inserts an account with the given column overrides."""
    def _make(account_id: int, **fields) -> None:
        fields.setdefault("display_name", f"player{account_id}")
        fields.setdefault("last_energy_update", T0)
        fields.setdefault("created_at", T0)
        with Session(db_engine) as session:
            session.add(Account(id=account_id, **fields))
            session.commit()
    return _make


@pytest.fixture
def load_account(db_engine: Engine):
    """Factory that reads an account back from the store."""
    def _load(account_id: int) -> Account | None:
        with Session(db_engine) as session:
            return session.get(Account, account_id)
    return _load


@pytest.fixture
def game_config() -> BitTapConfig:
    return BitTapConfig(
        game_name="BitTap",
        game_tagline="Tap to earn",
        bot_prefix="!",
        operator_id=OPERATOR_ID,
        api_port=3000,
    )


def make_operator_token(sub: str = str(OPERATOR_ID), is_operator: bool = True) -> str:
    """Create an operator JWT.  Usable as both a fixture and a factory function."""
    import jwt

    from bittap.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": sub, "username": "FixtureOperator", "is_operator": is_operator},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


@pytest.fixture
def operator_token() -> str:
    return make_operator_token()


@pytest.fixture
def client(db_engine: Engine, game_config: BitTapConfig):
    """FastAPI TestClient wired to the in-memory store.

    The lifespan is not entered, so no real DATABASE_URL is needed.
    """
    from fastapi.testclient import TestClient

    from bittap.api.main import app
    from bittap.api.routes import admin as admin_routes

    # Key on the objects the routes captured at import time
    app.dependency_overrides[admin_routes.get_engine] = lambda: db_engine
    app.dependency_overrides[admin_routes.get_config] = lambda: game_config
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
