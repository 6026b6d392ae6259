import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config import settings
from database import Base, get_db
from main import app
from services.assets import UploadedAsset, get_asset_resolver
from services.session_token import create_session_token


ADMIN_EMAIL = "admin@researchhub.test"
ADMIN_PASSWORD = "correct-horse-battery-staple"
TEST_JWT_SECRET = "research-hub-test-secret-0123456789"


class FakeAssetResolver:
    """Records uploads and hands back predictable CDN URLs."""

    def __init__(self):
        self.calls = []

    async def store(self, asset: UploadedAsset, folder: str) -> str:
        self.calls.append({"filename": asset.filename, "folder": folder, "data": asset.data})
        return f"https://cdn.test/{folder}/{asset.filename}"


@pytest.fixture(autouse=True)
def admin_settings(monkeypatch):
    """Pin the admin credentials and signing secret for every test."""
    monkeypatch.setattr(settings, "ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setattr(settings, "JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setattr(settings, "ENVIRONMENT", "test")


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {create_session_token(ADMIN_EMAIL)['token']}"}


@pytest.fixture
def asset_resolver():
    return FakeAssetResolver()


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "research_hub.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker

    await engine.dispose()


@pytest_asyncio.fixture
async def research_client(session_maker, asset_resolver):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_asset_resolver] = lambda: asset_resolver
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_asset_resolver, None)
