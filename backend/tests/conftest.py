"""Shared fixtures: in-memory SQLite sessions, an API client, workbook builder."""
import io
import os
import tempfile

# Must be set before app.core.config is imported anywhere.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="catalog-uploads-"))
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DB_AUTO_CREATE", "false")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from openpyxl import Workbook
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import get_session
from app.main import app
from app import models  # noqa: F401

DEFAULT_HEADER = [
    "Special ID", "Main Category", "Group", "Class Name",
    "Class Features", "Class Price", "Class KG", "Class Video",
]


# ─── Database ─────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ─── API client ───────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.clear()


# ─── Spreadsheets ─────────────────────────────────────────────────────────────

@pytest.fixture
def build_workbook():
    """Return a helper that renders rows into .xlsx bytes (header first)."""
    def _build(rows: list[list], header: list[str] | None = None) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.append(header or DEFAULT_HEADER)
        for row in rows:
            ws.append(row)
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()
    return _build
