"""
Shared fixtures: an in-memory SQLite database per test and an HTTP client
bound to the FastAPI app.
"""
import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DATABASE_AUTO_CREATE", "false")
os.environ.setdefault("TRANSLATION_DEFAULT_PROVIDER", "mock")
os.environ.setdefault("TRANSFER_UPLOAD_DIR", tempfile.mkdtemp(prefix="phrase-uploads-"))
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401 - register models on Base.metadata
from app.core.db import Base, build_engine, build_session_factory, get_db
from app.core.dependencies import get_provider_registry
from app.models.project import Project
from app.services.translation_providers import MockTranslationProvider, TranslationProviderRegistry


@pytest_asyncio.fixture
async def db_engine():
    engine = build_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    session_factory = build_session_factory(db_engine)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def project(db_session):
    project = Project(
        name="Storefront",
        project_key="storefront-key",
        source_locale="en",
        supported_locales=["en", "fr", "de"],
    )
    db_session.add(project)
    await db_session.commit()
    await db_session.refresh(project)
    return project


@pytest.fixture
def mock_provider():
    return MockTranslationProvider()


@pytest_asyncio.fixture
async def async_client(db_session, mock_provider):
    from app.main import app

    async def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_provider_registry] = lambda: TranslationProviderRegistry(
        {"mock": mock_provider}, "mock"
    )
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
