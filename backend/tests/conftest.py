import os
import sys
import asyncio
from collections.abc import Iterable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Honour an externally provided DATABASE_URL but default to in-memory SQLite
# so local runs stay isolated.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000")

# Register every model with the declarative Base before create_all runs.
from app import db, models  # noqa: F401


@pytest.fixture()
def api_client():
    """TestClient for the v0 routers backed by a private in-memory database."""

    from app.main import (
        domain_exception_handler,
        validation_exception_handler,
    )
    from app.exceptions import DomainException
    from app.routers import matches, modes, players
    from fastapi.exceptions import RequestValidationError

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db.enable_sqlite_foreign_keys(engine.sync_engine)
    async_session_maker = sessionmaker(
        engine, expire_on_commit=False, class_=AsyncSession
    )

    async def init_schema() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(db.Base.metadata.create_all)

    asyncio.run(init_schema())

    async def override_get_session() -> Iterable[AsyncSession]:
        async with async_session_maker() as session:
            yield session

    app = FastAPI()
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(modes.router, prefix="/api/v0")
    app.include_router(players.router, prefix="/api/v0")
    app.include_router(matches.router, prefix="/api/v0")
    app.dependency_overrides[db.get_session] = override_get_session

    with TestClient(app) as client:
        yield client, async_session_maker

    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())
